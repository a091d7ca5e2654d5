"""Client exception types.

HTTP and transport failures never escape the scheduler loop; they reach
callers through the continuation's status code. These types are raised at
the edges: bad input to the façade, and failed futures returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: float
    endpoint: str
    attempts: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for client failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when caller input or configuration is invalid."""


class TransportAppError(AppError):
    """Raised by transports when no HTTP response was received."""


class DiscordAPIError(AppError):
    """Failure outcome of an authorized request future.

    Attributes:
        status: HTTP status code, or 0 when the transport gave up.
        body: Raw response body.
    """

    def __init__(self, status: int, body: bytes = b"") -> None:
        self.status = status
        self.body = body
        super().__init__(
            code="discord_http_error" if status else "discord_transport_error",
            message=f"Discord REST API error: {status}",
            details={"http_status": status},
        )
