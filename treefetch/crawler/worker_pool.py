"""
Bounded asyncio worker pool for the download phase.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List

from ..errors import PoolSaturatedError


class WorkerPool:
    """
    Runs coroutines with at most ``max_in_flight`` of them active at once.

    ``submit`` waits for a free slot before scheduling (backpressure),
    ``submit_nowait`` refuses instead. ``join`` waits for everything that was
    submitted and returns results in submission order; exceptions are
    returned in place of results, never raised, so one failing unit does not
    cancel its siblings. After ``join`` the pool accepts a fresh batch.
    """

    def __init__(self, max_in_flight: int = 10):
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")

        self.max_in_flight = max_in_flight
        self.logger = logging.getLogger(__name__)

        self._slot_freed = asyncio.Condition()
        self._reserved = 0
        self._tasks: List[asyncio.Task] = []
        self._in_flight = 0
        self._peak_in_flight = 0
        self._completion_order: List[int] = []
        self._joined_order: List[int] = []

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of units that were running simultaneously."""
        return self._peak_in_flight

    @property
    def completion_order(self) -> List[int]:
        """Submission indices of the last joined batch, in the order they finished."""
        return list(self._joined_order)

    async def submit(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> asyncio.Task:
        """Schedule ``func(*args, **kwargs)``, waiting while the pool is full."""
        async with self._slot_freed:
            await self._slot_freed.wait_for(lambda: self._reserved < self.max_in_flight)
            self._reserved += 1
        return self._start(func, args, kwargs)

    def submit_nowait(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> asyncio.Task:
        """Schedule ``func(*args, **kwargs)`` or raise PoolSaturatedError."""
        if self._reserved >= self.max_in_flight:
            raise PoolSaturatedError(
                f"All {self.max_in_flight} worker slots are busy"
            )
        self._reserved += 1
        return self._start(func, args, kwargs)

    def _start(self, func, args, kwargs) -> asyncio.Task:
        index = len(self._tasks)
        task = asyncio.create_task(self._run(index, func, args, kwargs))
        self._tasks.append(task)
        return task

    async def _run(self, index: int, func, args, kwargs):
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        try:
            return await func(*args, **kwargs)
        finally:
            self._in_flight -= 1
            self._completion_order.append(index)
            async with self._slot_freed:
                self._reserved -= 1
                self._slot_freed.notify()

    async def join(self) -> List[Any]:
        """Wait for every submitted unit; return results or exceptions in submission order."""
        if not self._tasks:
            return []

        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        self._joined_order = self._completion_order
        self._tasks = []
        self._completion_order = []

        self.logger.debug(
            f"Worker pool joined {len(results)} units (peak concurrency {self._peak_in_flight})"
        )
        return results
