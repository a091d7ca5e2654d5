"""Unit tests for the FIFO dispatch queue."""

import pytest

from discord_rest.limiter.descriptor import RequestDescriptor
from discord_rest.limiter.queue import DispatchQueue


def _descriptor(n: int) -> RequestDescriptor:
    return RequestDescriptor.build("GET", f"https://discord.test/api/users/{n}")


def test_dequeue_empty_returns_none() -> None:
    queue = DispatchQueue()

    assert queue.is_empty is True
    assert queue.dequeue_one() is None


def test_fifo_order() -> None:
    queue = DispatchQueue()
    descriptors = [_descriptor(n) for n in range(5)]
    for descriptor in descriptors:
        queue.enqueue(descriptor)

    assert len(queue) == 5
    assert [queue.dequeue_one() for _ in range(5)] == descriptors
    assert queue.is_empty is True


def test_rejects_descriptor_already_queued() -> None:
    queue = DispatchQueue()
    descriptor = _descriptor(1)
    queue.enqueue(descriptor)

    with pytest.raises(ValueError):
        queue.enqueue(descriptor)

    assert len(queue) == 1


def test_descriptor_can_be_requeued_after_dequeue() -> None:
    queue = DispatchQueue()
    descriptor = _descriptor(1)
    queue.enqueue(descriptor)
    queue.dequeue_one()

    queue.enqueue(descriptor)
    assert queue.dequeue_one() is descriptor
