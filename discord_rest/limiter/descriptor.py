"""Queued unit of outbound work: one HTTP call plus its continuation."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

logger = logging.getLogger(__name__)


OnComplete = Callable[[int, bytes, Mapping[str, str]], None]


class HttpMethod(str, Enum):
    """HTTP verbs accepted by the Discord REST API."""

    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    PUT = "PUT"
    DELETE = "DELETE"


class Completion:
    """One-shot wrapper around a caller continuation.

    The wrapped callback is dropped on first use, so a second resolution
    attempt can never reach the caller.
    """

    def __init__(self, callback: OnComplete | None) -> None:
        self._callback = callback
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def __call__(self, status: int, body: bytes, headers: Mapping[str, str]) -> bool:
        """Resolve the continuation.

        Returns:
            True if this call resolved it, False if it was already resolved.
        """
        if self._done:
            logger.warning("rest.completion_reused", extra={"status": status})
            return False

        callback, self._callback = self._callback, None
        self._done = True
        if callback is not None:
            callback(status, body, headers)
        return True


@dataclass(frozen=True, eq=False)
class RequestDescriptor:
    """Immutable record of one pending HTTP call.

    Attributes:
        method: HTTP verb.
        url: Fully-qualified target; never parsed by the limiter.
        headers: Request headers (authorization, content-type, ...).
        body: Raw payload, possibly empty.
        on_complete: Single-resolution continuation taking (status, body, headers).
        request_id: Correlation id attached to logs for this request.
    """

    method: HttpMethod
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    on_complete: Completion = field(default_factory=lambda: Completion(None))
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        # Plain callables passed to the constructor still get the one-shot guard.
        if not isinstance(self.on_complete, Completion):
            object.__setattr__(self, "on_complete", Completion(self.on_complete))
        if not isinstance(self.method, HttpMethod):
            object.__setattr__(self, "method", HttpMethod(str(self.method).upper()))

    @classmethod
    def build(
        cls,
        method: HttpMethod | str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str = b"",
        on_complete: OnComplete | None = None,
    ) -> "RequestDescriptor":
        """Create a descriptor, normalizing method, headers and body."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(
            method=HttpMethod(method.upper()),
            url=url,
            headers=MappingProxyType(dict(headers or {})),
            body=body or b"",
            on_complete=Completion(on_complete),
        )
