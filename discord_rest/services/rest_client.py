"""Discord REST API client.

Every request, authorized or raw, goes through one rate-limited queue per
client: it is wrapped in a RequestDescriptor, enqueued, and released by the
scheduler loop one per tick while the global budget allows it.

Usage:
    async with DiscordRest("[bot token]") as discord:
        message = await discord.create_message("[channel ID]", {"content": "Hello, world!"})
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Callable, Mapping, Sequence

from pydantic import BaseModel

from discord_rest.adapters.transport import AbstractTransport, create_transport
from discord_rest.core.config import Settings, settings
from discord_rest.core.errors import DiscordAPIError, ValidationAppError
from discord_rest.limiter import (
    DispatchQueue,
    HttpMethod,
    LimiterSnapshot,
    LimiterState,
    OnComplete,
    RequestDescriptor,
    ResponseHandler,
    SchedulerLoop,
    is_response_success,
)
from discord_rest.services.endpoints import format_endpoint

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any] | BaseModel | str | bytes


def serialize_payload(data: Payload) -> bytes:
    """Encode a structured payload as a JSON request body.

    Strings and bytes are assumed to be pre-encoded and sent as is.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, BaseModel):
        return data.model_dump_json(exclude_none=True).encode("utf-8")
    return json.dumps(data).encode("utf-8")


def decode_body(body: bytes) -> Any:
    """Decode a success response body; empty bodies (e.g. 204) give None."""
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


def create_future_callback(future: asyncio.Future) -> OnComplete:
    """Continuation that settles ``future`` from the response status.

    2xx resolves with the decoded body; anything else fails with
    DiscordAPIError. A future the caller already cancelled is left alone.
    """

    def callback(status: int, body: bytes, headers: Mapping[str, str]) -> None:
        if future.done():
            return
        if is_response_success(status):
            future.set_result(decode_body(body))
        else:
            future.set_exception(DiscordAPIError(status, body))

    return callback


class DiscordRest:
    """Rate-limited Discord REST API client.

    Args:
        bot_token: Default bot token; falls back to DISCORD_BOT_TOKEN.
        transport: Transport to issue requests with. Created from settings
            (and closed by aclose()) when omitted.
        client_settings: Settings to use instead of the global ones.
        clock: Time source returning UNIX time in seconds.
        autostart: Start the scheduler on the first submitted request.
    """

    def __init__(
        self,
        bot_token: str | None = None,
        *,
        transport: AbstractTransport | None = None,
        client_settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
        autostart: bool = True,
    ) -> None:
        cfg = client_settings or settings
        self.autostart = autostart
        self._closed = False

        self.bot_token = bot_token if bot_token is not None else cfg.discord.bot_token
        self.base_url = cfg.discord.api_base_url
        self._owns_transport = transport is None
        self.transport = transport or create_transport(cfg.discord)

        self.state = LimiterState()
        self.queue = DispatchQueue()
        self.handler = ResponseHandler(
            self.state,
            cooldown_seconds=cfg.limiter.cooldown_seconds,
            clock=clock,
        )
        self.scheduler = SchedulerLoop(
            self.queue,
            self.state,
            self.transport,
            self.handler,
            tick_interval=cfg.limiter.tick_interval_seconds,
            max_retries=cfg.limiter.transport_max_retries,
            backoff_base=cfg.limiter.backoff_base_seconds,
            backoff_max=cfg.limiter.backoff_max_seconds,
            clock=clock,
        )

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"DiscordRest(base_url={self.base_url!r}, pending={self.pending})"

    async def __aenter__(self) -> "DiscordRest":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def pending(self) -> int:
        """Number of requests queued and not yet dispatched."""
        return len(self.queue)

    def limiter_snapshot(self) -> LimiterSnapshot:
        return self.state.snapshot()

    def start(self) -> None:
        """Start the scheduler loop on the running event loop."""
        self._ensure_open()
        self.scheduler.start()

    async def aclose(self, *, drain: bool = True) -> None:
        """Stop the scheduler and release the transport.

        Args:
            drain: Dispatch everything still queued before stopping. When
                False, queued requests stay unresolved.
        """
        if self._closed:
            return
        if drain and (self.pending or self.scheduler.in_flight):
            self.scheduler.start()
            await self.scheduler.join()
        await self.scheduler.stop()
        if self._owns_transport:
            await self.transport.aclose()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValidationAppError(
                code="client_closed",
                message="DiscordRest client is closed",
                details={"hint": "Create a new client after aclose()."},
            )

    def get_authorization(self, bot_token: str | None = None) -> str:
        return "Bot " + (bot_token or self.bot_token or "")

    def submit(self, descriptor: RequestDescriptor) -> None:
        """Enqueue a descriptor, starting the scheduler if needed."""
        self._ensure_open()
        self.queue.enqueue(descriptor)
        if not self.autostart:
            return
        try:
            self.scheduler.start()
        except RuntimeError:
            # No running loop yet; the descriptor waits for start().
            logger.debug("rest.scheduler_deferred", extra={"queue_size": self.pending})

    def perform_http_request(
        self,
        url: str,
        callback: OnComplete | None = None,
        method: HttpMethod | str = HttpMethod.GET,
        data: bytes | str = b"",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Perform a custom HTTP request while respecting the rate limit.

        The result arrives through ``callback(status, body, headers)``, which
        is invoked exactly once whatever the outcome.

        Args:
            url: Fully-qualified request URL.
            callback: Optional continuation for the response.
            method: HTTP method.
            data: Raw request body.
            headers: Request headers, used as given.
        """
        self.submit(RequestDescriptor.build(method, url, headers, data, callback))

    def perform_authorized_request(
        self,
        url: str,
        method: HttpMethod | str,
        data: Payload | None = None,
        bot_token: str | None = None,
    ) -> asyncio.Future:
        """Perform a bot-authorized request.

        Args:
            url: Fully-qualified request URL.
            method: HTTP method.
            data: Optional payload; dicts and models are sent as JSON.
            bot_token: Overrides the client's default token for this call.

        Returns:
            Future resolving with the decoded JSON body, or failing with
            DiscordAPIError for a non-2xx status.
        """
        self._ensure_open()
        future = asyncio.get_running_loop().create_future()

        headers = {"Authorization": self.get_authorization(bot_token)}
        if data is not None:
            headers["Content-Type"] = "application/json"
            body = serialize_payload(data)
        else:
            headers["Content-Length"] = "0"
            body = b""

        self.perform_http_request(url, create_future_callback(future), method, body, headers)
        return future

    def _endpoint(
        self,
        name: str,
        variables: Sequence[Any] | str | int,
        parameters: Mapping[str, Any] | None = None,
    ) -> str:
        return format_endpoint(name, variables, parameters, base_url=self.base_url)

    # Channel

    def create_message(self, channel_id: str, message: Payload, bot_token: str | None = None) -> asyncio.Future:
        """Post a message to a channel."""
        return self.perform_authorized_request(
            self._endpoint("messages", [channel_id]), HttpMethod.POST, message, bot_token
        )

    def create_reaction(
        self, channel_id: str, message_id: str, emoji: str, bot_token: str | None = None
    ) -> asyncio.Future:
        """React to a message as the bot."""
        return self.perform_authorized_request(
            self._endpoint("ownReaction", [channel_id, message_id, emoji]), HttpMethod.PUT, None, bot_token
        )

    def delete_channel(self, channel_id: str, bot_token: str | None = None) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("channel", [channel_id]), HttpMethod.DELETE, None, bot_token
        )

    def delete_message(self, channel_id: str, message_id: str, bot_token: str | None = None) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("message", [channel_id, message_id]), HttpMethod.DELETE, None, bot_token
        )

    def delete_own_reaction(
        self, channel_id: str, message_id: str, emoji: str, bot_token: str | None = None
    ) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("ownReaction", [channel_id, message_id, emoji]), HttpMethod.DELETE, None, bot_token
        )

    def delete_user_reaction(
        self,
        channel_id: str,
        message_id: str,
        emoji: str,
        user_id: str,
        bot_token: str | None = None,
    ) -> asyncio.Future:
        """Remove another user's reaction from a message."""
        return self.perform_authorized_request(
            self._endpoint("userReaction", [channel_id, message_id, emoji, user_id]),
            HttpMethod.DELETE,
            None,
            bot_token,
        )

    def edit_message(
        self, channel_id: str, message_id: str, message: Payload, bot_token: str | None = None
    ) -> asyncio.Future:
        """Edit a previously sent message; resolves with the edited message."""
        return self.perform_authorized_request(
            self._endpoint("message", [channel_id, message_id]), HttpMethod.PATCH, message, bot_token
        )

    def get_channel(self, channel_id: str, bot_token: str | None = None) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("channel", [channel_id]), HttpMethod.GET, None, bot_token
        )

    def get_channel_message(self, channel_id: str, message_id: str, bot_token: str | None = None) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("message", [channel_id, message_id]), HttpMethod.GET, None, bot_token
        )

    def get_channel_messages(
        self,
        channel_id: str,
        options: Mapping[str, Any] | None = None,
        bot_token: str | None = None,
    ) -> asyncio.Future:
        """List messages in a channel; ``options`` become query parameters (limit, before, ...)."""
        return self.perform_authorized_request(
            self._endpoint("messages", [channel_id], options), HttpMethod.GET, None, bot_token
        )

    def get_reactions(
        self,
        channel_id: str,
        message_id: str,
        emoji: str,
        options: Mapping[str, Any] | None = None,
        bot_token: str | None = None,
    ) -> asyncio.Future:
        """List users that reacted to a message with ``emoji``."""
        return self.perform_authorized_request(
            self._endpoint("reactions", [channel_id, message_id, emoji], options),
            HttpMethod.GET,
            None,
            bot_token,
        )

    def modify_channel(self, channel_id: str, channel: Payload, bot_token: str | None = None) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("channel", [channel_id]), HttpMethod.PATCH, channel, bot_token
        )

    # User

    def get_user(self, user_id: str, bot_token: str | None = None) -> asyncio.Future:
        return self.perform_authorized_request(
            self._endpoint("user", [user_id]), HttpMethod.GET, None, bot_token
        )

    # Webhook

    def execute_webhook(self, url: str, data: Payload) -> asyncio.Future:
        """Execute a webhook by URL. Webhooks carry their own token, so no Authorization header is sent."""
        future = asyncio.get_running_loop().create_future()
        self.perform_http_request(
            url,
            create_future_callback(future),
            HttpMethod.POST,
            serialize_payload(data),
            {"Content-Type": "application/json"},
        )
        return future
