"""Test doubles shared across test modules."""

from __future__ import annotations

from collections import deque
from typing import Mapping

from discord_rest.adapters.transport.base import AbstractTransport, TransportResponse


class FakeClock:
    """Deterministic clock returning UNIX seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeTransport(AbstractTransport):
    """Transport replaying scripted responses and recording every call.

    Script entries are TransportResponse objects or exceptions to raise.
    When the script runs out, a bare 200 is returned.
    """

    def __init__(self, *script: TransportResponse | Exception) -> None:
        self.script: deque[TransportResponse | Exception] = deque(script)
        self.calls: list[dict] = []
        self.closed = False

    async def issue(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> TransportResponse:
        self.calls.append({"method": method, "url": url, "headers": dict(headers), "body": body})
        if not self.script:
            return TransportResponse(status=200)
        item = self.script.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


class Recorder:
    """Continuation that records each invocation."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, bytes, dict]] = []

    def __call__(self, status: int, body: bytes, headers: Mapping[str, str]) -> None:
        self.calls.append((status, body, dict(headers)))
