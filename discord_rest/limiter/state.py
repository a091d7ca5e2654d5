"""Global request budget learned from server responses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LimiterSnapshot:
    """Point-in-time copy of the limiter state.

    Attributes:
        remaining: Requests permitted before the window resets.
        reset_epoch: UNIX epoch seconds at which the budget is presumed refreshed.
    """

    remaining: int
    reset_epoch: float


class LimiterState:
    """Remaining budget and reset deadline for one client.

    OPEN when ``remaining > 0`` or the reset deadline has passed, THROTTLED
    otherwise. The THROTTLED to OPEN transition is purely time based and is
    re-evaluated on every scheduler tick.

    Only the response handler writes this object; the scheduler reads it.
    """

    def __init__(self, remaining: int = 0, reset_epoch: float = 0.0) -> None:
        self._remaining = max(0, int(remaining))
        self._reset_epoch = float(reset_epoch)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"LimiterState(remaining={self._remaining}, reset_epoch={self._reset_epoch})"

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def reset_epoch(self) -> float:
        return self._reset_epoch

    def is_open(self, now: float) -> bool:
        return self._remaining > 0 or now >= self._reset_epoch

    def throttle(self, until: float) -> None:
        """Enter THROTTLED until the given epoch."""
        self._remaining = 0
        self._reset_epoch = float(until)

    def update(self, *, remaining: int | None = None, reset_epoch: float | None = None) -> None:
        """Overwrite the provided fields; omitted fields keep their value."""
        if remaining is not None:
            self._remaining = max(0, int(remaining))
        if reset_epoch is not None:
            self._reset_epoch = float(reset_epoch)

    def snapshot(self) -> LimiterSnapshot:
        return LimiterSnapshot(remaining=self._remaining, reset_epoch=self._reset_epoch)
