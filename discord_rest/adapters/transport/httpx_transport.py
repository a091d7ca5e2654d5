"""httpx-backed transport adapter."""

from __future__ import annotations

from typing import Mapping

import httpx

from discord_rest.adapters.transport.base import AbstractTransport, TransportResponse
from discord_rest.core.errors import TransportAppError


class HttpxTransport(AbstractTransport):
    """Transport issuing requests through a shared ``httpx.AsyncClient``.

    Non-2xx statuses are returned as regular responses; only failures to
    obtain a response at all are raised.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        user_agent: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout_seconds: Per-request timeout when the client is created here.
            user_agent: Optional User-Agent header added to every request.
            client: Pre-built client (e.g. with an ASGI transport in tests).
                It is not closed by aclose().
        """
        headers = {"User-Agent": user_agent} if user_agent else None
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds, headers=headers)

    async def issue(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> TransportResponse:
        try:
            response = await self.client.request(
                method,
                url,
                headers=dict(headers),
                content=body or None,
            )
        except httpx.HTTPError as exc:
            raise TransportAppError(
                code="transport_failed",
                message=f"{type(exc).__name__}: {exc}",
                details={"context": {"method": method}},
            ) from exc

        return TransportResponse(
            status=response.status_code,
            body=response.content,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
