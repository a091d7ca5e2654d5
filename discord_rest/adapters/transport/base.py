"""Transport interface.

The limiter depends on this abstraction only, so the HTTP library can be
swapped (or faked in tests) without touching the scheduling logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class TransportResponse:
    """Result of one completed HTTP exchange.

    Attributes:
        status: HTTP status code.
        body: Raw response body.
        headers: Response headers with lower-cased names.
    """

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)


class AbstractTransport(ABC):
    """Interface for HTTP transports."""

    @abstractmethod
    async def issue(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> TransportResponse:
        """Send one HTTP request and return the server's response.

        Args:
            method: HTTP verb.
            url: Fully-qualified target URL.
            headers: Request headers.
            body: Raw request payload (possibly empty).

        Returns:
            TransportResponse for any status code the server returned.

        Raises:
            TransportAppError: If no response was received.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release underlying connections."""
        return None
