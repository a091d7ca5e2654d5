"""Response policy: update the limiter from each completed exchange.

Rules:
- 2xx: numeric ``x-ratelimit-remaining`` / ``x-ratelimit-reset`` headers
  overwrite the local budget; missing or malformed headers leave it as is.
- 429: throttle until the latest of the server's reset hints, or
  ``now + cooldown`` when none of them lies in the future.
- Any non-2xx: emit a ``rest.response_error`` record and keep going.
- The caller's continuation is invoked exactly once in every case.
"""

from __future__ import annotations

import json
import logging
import math
import time
from typing import Any, Callable, Mapping

from discord_rest.limiter.descriptor import RequestDescriptor
from discord_rest.limiter.state import LimiterState

logger = logging.getLogger(__name__)

HEADER_REMAINING = "x-ratelimit-remaining"
HEADER_RESET = "x-ratelimit-reset"
HEADER_RESET_AFTER = "x-ratelimit-reset-after"
HEADER_RETRY_AFTER = "retry-after"

TOO_MANY_REQUESTS = 429
# Synthetic status handed to continuations when the transport gave up
TRANSPORT_FAILURE_STATUS = 0

# Upper bound on response body bytes copied into log records
_LOG_BODY_LIMIT = 2048


def is_response_success(status: int) -> bool:
    return 200 <= status <= 299


def _parse_number(value: Any) -> float | None:
    """Parse a header/body value as a finite number, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _lower_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    return {str(k).lower(): v for k, v in (headers or {}).items()}


def _body_retry_after(body: bytes) -> float | None:
    """Read the ``retry_after`` field Discord puts in 429 JSON bodies."""
    if not body:
        return None
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return _parse_number(payload.get("retry_after"))


class ResponseHandler:
    """Interprets completed exchanges for one client's limiter."""

    def __init__(
        self,
        state: LimiterState,
        *,
        cooldown_seconds: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state = state
        self._cooldown = cooldown_seconds
        self._clock = clock

    def reset_hint(self, headers: Mapping[str, str], body: bytes = b"") -> float | None:
        """Compute the absolute reset epoch a 429 response asks for.

        Args:
            headers: Response headers with lower-cased names.
            body: Raw response body.

        Returns:
            Epoch seconds, or None when the response carries no usable hint.
        """
        now = self._clock()
        candidates = []
        reset = _parse_number(headers.get(HEADER_RESET))
        if reset is not None:
            candidates.append(reset)
        for delay in (
            _parse_number(headers.get(HEADER_RESET_AFTER)),
            _parse_number(headers.get(HEADER_RETRY_AFTER)),
            _body_retry_after(body),
        ):
            if delay is not None and delay >= 0:
                candidates.append(now + delay)
        # The latest deadline wins when hints disagree.
        return max(candidates) if candidates else None

    def _apply_error(self, status: int, body: bytes, headers: Mapping[str, str], request_id: str | None) -> None:
        if status == TOO_MANY_REQUESTS:
            hint = self.reset_hint(headers, body)
            now = self._clock()
            if hint is not None and hint <= now:
                hint = None
            until = hint if hint is not None else now + self._cooldown
            self._state.throttle(until)
            logger.warning(
                "rest.throttled",
                extra={
                    "request_id": request_id,
                    "reset_epoch": until,
                    "server_hint": hint is not None,
                },
            )

        logger.warning(
            "rest.response_error",
            extra={
                "request_id": request_id,
                "status": status,
                "body": body[:_LOG_BODY_LIMIT].decode("utf-8", errors="replace"),
                "headers": dict(headers),
            },
        )

    def _apply_success(self, headers: Mapping[str, str]) -> None:
        remaining = _parse_number(headers.get(HEADER_REMAINING))
        reset = _parse_number(headers.get(HEADER_RESET))

        self._state.update(
            remaining=int(remaining) if remaining is not None else None,
            reset_epoch=reset,
        )
        if remaining is not None or reset is not None:
            logger.debug(
                "rest.budget_updated",
                extra={
                    "remaining": self._state.remaining,
                    "reset_epoch": self._state.reset_epoch,
                },
            )

    def handle(
        self,
        descriptor: RequestDescriptor,
        status: int,
        body: bytes,
        headers: Mapping[str, str] | None,
    ) -> None:
        """Update limiter state and resolve the descriptor's continuation.

        Never raises: exceptions from the caller's continuation are logged
        and contained so the scheduler keeps running.

        Args:
            descriptor: The dispatched descriptor.
            status: HTTP status code.
            body: Raw response body.
            headers: Response headers (any case).
        """
        body = body or b""
        lowered = _lower_headers(headers)

        if is_response_success(status):
            self._apply_success(lowered)
        else:
            self._apply_error(status, body, lowered, descriptor.request_id)

        self._resolve(descriptor, status, body, lowered)

    def handle_transport_failure(self, descriptor: RequestDescriptor, error: Exception, *, attempts: int) -> None:
        """Resolve a descriptor whose request never got a response.

        The continuation receives status 0 with an empty body and headers;
        limiter state is left untouched.
        """
        logger.error(
            "rest.transport_error",
            extra={
                "request_id": descriptor.request_id,
                "attempts": attempts,
                "error": str(error),
            },
        )
        self._resolve(descriptor, TRANSPORT_FAILURE_STATUS, b"", {})

    def _resolve(self, descriptor: RequestDescriptor, status: int, body: bytes, headers: Mapping[str, str]) -> None:
        try:
            descriptor.on_complete(status, body, headers)
        except Exception:
            logger.exception(
                "rest.callback_failed",
                extra={"request_id": descriptor.request_id, "status": status},
            )
