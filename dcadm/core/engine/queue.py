"""
Work queue — a bounded pool of asyncio workers.

Units are admitted with ``push()`` (before or after the workers start),
``close()`` says no more will come, and ``join()`` waits for the drain.
At most ``concurrency`` units are in flight at once; the rest wait in
FIFO order.

The queue is fail-soft: an exception raised while processing one unit
becomes that unit's outcome and is reported to the completion
listeners. It never cancels or delays the other units.

    queue = WorkQueue(worker, concurrency=4)
    queue.on_complete(lambda unit, err: ...)
    for unit in units:
        queue.push(unit)
    queue.close()
    await queue.join()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from dcadm.core.errors import InternalError

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4

T = TypeVar("T")

_CLOSED = object()  # end-of-input marker, one per worker


class WorkQueue(Generic[T]):
    """Bounded-concurrency queue of independent units of work.

    Args:
        worker: Coroutine function called once per unit.
        concurrency: Maximum number of units processed at once.
        name: Label used in log messages.
    """

    def __init__(
        self,
        worker: Callable[[T], Awaitable[Any]],
        concurrency: int = DEFAULT_CONCURRENCY,
        name: str = "queue",
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        self.name = name
        self._worker = worker
        self._concurrency = concurrency
        self._pending: asyncio.Queue[Any] = asyncio.Queue()
        self._tasks: list[asyncio.Task[None]] = []
        self._closed = False
        self._ended = False

        self._complete_listeners: list[Callable[[T, BaseException | None], None]] = []
        self._end_listeners: list[Callable[[], None]] = []

        # ── Counters ────────────────────────────────────────────
        self.pushed = 0
        self.completed = 0
        self.failed = 0
        self.running = 0
        self.peak_running = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def waiting(self) -> int:
        """Units admitted but not yet picked up by a worker."""
        return self.pushed - self.completed - self.running

    def on_complete(self, listener: Callable[[T, BaseException | None], None]) -> None:
        """Call ``listener(unit, error)`` after each unit; error is None on success."""
        self._complete_listeners.append(listener)

    def on_end(self, listener: Callable[[], None]) -> None:
        """Call ``listener()`` once, after the last unit completes."""
        self._end_listeners.append(listener)

    def push(self, unit: T) -> None:
        """Admit one unit of work.

        Raises:
            InternalError: If the queue has already been closed.
        """
        if self._closed:
            raise InternalError(f"{self.name}: push() after close()")
        self._pending.put_nowait(unit)
        self.pushed += 1

    def close(self) -> None:
        """Signal that no more units will be pushed."""
        if self._closed:
            return
        self._closed = True
        for _ in range(self._concurrency):
            self._pending.put_nowait(_CLOSED)

    def start(self) -> None:
        """Spawn the workers. Must be called from a running event loop."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._run_worker(), name=f"{self.name}-worker-{i}")
            for i in range(self._concurrency)
        ]
        logger.debug("%s: started %d workers", self.name, self._concurrency)

    async def join(self) -> None:
        """Wait until every admitted unit has completed.

        Starts the workers if needed. Returns only after ``close()`` has
        been called and the queue has drained; the end listeners run
        exactly once, just before the first ``join()`` returns.
        """
        self.start()
        await asyncio.gather(*self._tasks)
        if not self._ended:
            self._ended = True
            logger.debug(
                "%s: drained (%d completed, %d failed, peak %d concurrent)",
                self.name,
                self.completed,
                self.failed,
                self.peak_running,
            )
            for listener in self._end_listeners:
                listener()

    async def _run_worker(self) -> None:
        while True:
            unit = await self._pending.get()
            if unit is _CLOSED:
                return

            self.running += 1
            self.peak_running = max(self.peak_running, self.running)
            error: BaseException | None = None
            try:
                await self._worker(unit)
            except Exception as e:
                # A failed unit is an outcome, not a reason to stop the pool
                error = e
                logger.debug("%s: unit %r failed: %s", self.name, unit, e)
            finally:
                self.running -= 1

            self.completed += 1
            if error is not None:
                self.failed += 1
            for listener in self._complete_listeners:
                listener(unit, error)
