"""FIFO buffer of descriptors awaiting dispatch.

Unbounded: producers are trusted not to flood it and no backpressure
signal is exposed. All access happens on the event loop thread.
"""

from __future__ import annotations

import logging
from collections import deque

from discord_rest.limiter.descriptor import RequestDescriptor

logger = logging.getLogger(__name__)


class DispatchQueue:
    """Ordered sequence of pending descriptors, oldest first."""

    def __init__(self) -> None:
        self._items: deque[RequestDescriptor] = deque()
        self._ids: set[int] = set()

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"DispatchQueue(size={len(self._items)})"

    @property
    def is_empty(self) -> bool:
        return not self._items

    def enqueue(self, descriptor: RequestDescriptor) -> None:
        """Append a descriptor to the tail.

        Raises:
            ValueError: If the same descriptor is already queued.
        """
        if id(descriptor) in self._ids:
            raise ValueError("descriptor is already queued")

        self._items.append(descriptor)
        self._ids.add(id(descriptor))
        logger.debug(
            "rest.enqueued",
            extra={
                "request_id": descriptor.request_id,
                "method": descriptor.method.value,
                "queue_size": len(self._items),
            },
        )

    def dequeue_one(self) -> RequestDescriptor | None:
        """Remove and return the head descriptor, or None when empty."""
        if not self._items:
            return None

        descriptor = self._items.popleft()
        self._ids.discard(id(descriptor))
        return descriptor
