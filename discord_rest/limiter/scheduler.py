"""Periodic ticker that releases queued requests under the limiter.

Each tick evaluates the OPEN predicate once and dispatches at most one
descriptor, so throughput is capped at one request per tick even when the
budget would allow a burst. Everything runs on the event loop: the HTTP
call is the only suspension point, and responses are handled as
continuations of the dispatch task.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from discord_rest.adapters.transport.base import AbstractTransport
from discord_rest.core.errors import TransportAppError
from discord_rest.core.logging import reset_request_id, set_request_id
from discord_rest.limiter.descriptor import RequestDescriptor
from discord_rest.limiter.handler import ResponseHandler
from discord_rest.limiter.queue import DispatchQueue
from discord_rest.limiter.state import LimiterState

logger = logging.getLogger(__name__)


def backoff_seconds(attempt: int, *, base: float, cap: float) -> float:
    """Exponential delay before retry number ``attempt`` (0-based)."""
    return min(cap, base * (2 ** attempt))


class SchedulerLoop:
    """Timer-driven dispatcher for one client.

    Args:
        queue: Pending descriptors.
        state: Limiter state (read only here).
        transport: Capability that issues the HTTP call.
        handler: Response policy that updates ``state`` and resolves callers.
        tick_interval: Seconds between ticks.
        max_retries: Transport retries per descriptor before giving up.
        backoff_base: Base delay of the retry backoff.
        backoff_max: Cap for a single retry delay.
        clock: Time source returning UNIX time in seconds.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        queue: DispatchQueue,
        state: LimiterState,
        transport: AbstractTransport,
        handler: ResponseHandler,
        *,
        tick_interval: float = 0.5,
        max_retries: int = 2,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError("tick_interval must be > 0")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self._queue = queue
        self._state = state
        self._transport = transport
        self._handler = handler
        self._tick_interval = tick_interval
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._clock = clock
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def tick(self) -> RequestDescriptor | None:
        """Run one scheduler evaluation.

        Must be called from a running event loop.

        Returns:
            The dispatched descriptor, or None when nothing was dispatched.
        """
        if self._queue.is_empty:
            return None

        now = self._clock()
        if not self._state.is_open(now):
            logger.debug(
                "rest.tick_throttled",
                extra={
                    "queue_size": len(self._queue),
                    "reset_in_s": round(self._state.reset_epoch - now, 3),
                },
            )
            return None

        # Raises before dequeuing when no loop is running, so nothing is lost.
        loop = asyncio.get_running_loop()
        descriptor = self._queue.dequeue_one()
        if descriptor is None:
            return None

        logger.debug(
            "rest.dispatched",
            extra={
                "request_id": descriptor.request_id,
                "method": descriptor.method.value,
                "remaining": self._state.remaining,
                "queue_size": len(self._queue),
            },
        )
        task = loop.create_task(self._dispatch(descriptor))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return descriptor

    async def _dispatch(self, descriptor: RequestDescriptor) -> None:
        token = set_request_id(descriptor.request_id)
        try:
            attempt = 0
            while True:
                try:
                    response = await self._transport.issue(
                        descriptor.method.value,
                        descriptor.url,
                        descriptor.headers,
                        descriptor.body,
                    )
                except TransportAppError as exc:
                    if attempt >= self._max_retries:
                        self._handler.handle_transport_failure(descriptor, exc, attempts=attempt + 1)
                        return
                    delay = backoff_seconds(attempt, base=self._backoff_base, cap=self._backoff_max)
                    logger.warning(
                        "rest.transport_retry",
                        extra={"attempt": attempt + 1, "delay_s": delay, "error": str(exc)},
                    )
                    attempt += 1
                    await self._sleep(delay)
                    continue

                self._handler.handle(descriptor, response.status, response.body, response.headers)
                return
        except Exception as exc:
            logger.exception("rest.dispatch_failed")
            if not descriptor.on_complete.done:
                self._handler.handle_transport_failure(descriptor, exc, attempts=attempt + 1)
        finally:
            reset_request_id(token)

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("rest.tick_failed")
            await self._sleep(self._tick_interval)

    def start(self) -> None:
        """Start ticking on the running event loop. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="discord-rest-scheduler"
        )
        logger.info("rest.scheduler_started", extra={"tick_interval_s": self._tick_interval})

    async def wait_in_flight(self) -> None:
        """Wait until every dispatched request has been resolved."""
        while self._in_flight:
            await asyncio.wait(set(self._in_flight))

    async def join(self) -> None:
        """Wait until the queue is drained and nothing is in flight.

        Raises:
            RuntimeError: If work is queued but the loop is not running.
        """
        while not self._queue.is_empty or self._in_flight:
            if not self._queue.is_empty and not self.running:
                raise RuntimeError("scheduler is not running; queued requests cannot drain")
            if self._in_flight:
                await asyncio.wait(set(self._in_flight), timeout=self._tick_interval)
            else:
                await asyncio.sleep(self._tick_interval)

    async def stop(self) -> None:
        """Cancel the timer and wait for in-flight requests to resolve.

        Descriptors still queued stay queued; a later start() resumes them.
        """
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("rest.scheduler_stopped", extra={"queue_size": len(self._queue)})

        await self.wait_in_flight()
