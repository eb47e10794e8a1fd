"""
Clock implementations.

LoopClock schedules callbacks on the running asyncio event loop and is used
by the service. VirtualClock keeps its own timeline and only moves when
``advance()`` is awaited, which makes cascade timing deterministic in tests.

Example:
    >>> clock = VirtualClock()
    >>> fired = []
    >>> clock.call_later(1.5, lambda: fired.append(clock.monotonic()))
    >>> await clock.advance(2.0)
    >>> fired
    [1.5]
"""

import asyncio
import heapq
import inspect
import itertools
import time
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set, Tuple

import structlog

from plant_autonomy.interfaces.clock import Clock, TimerCallback, TimerHandle

logger = structlog.get_logger(__name__)


class LoopTimerHandle(TimerHandle):
    """TimerHandle bound to an asyncio timer and, once fired, its task."""

    def __init__(self, when: float, callback: TimerCallback) -> None:
        super().__init__(when, callback)
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Future] = None

    def cancel(self) -> None:
        super().cancel()
        if self._timer is not None:
            self._timer.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()


class LoopClock(Clock):
    """
    Clock backed by the asyncio event loop.

    Awaitables returned by callbacks are wrapped in tasks; the clock keeps a
    reference to each task until it completes and logs failures.

    Attributes:
        pending_tasks: Number of callback tasks still running.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._tasks: Set[asyncio.Future] = set()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        loop = self._get_loop()
        delay = max(0.0, delay)
        handle = LoopTimerHandle(loop.time() + delay, callback)
        handle._timer = loop.call_later(delay, self._fire, handle)
        return handle

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def _fire(self, handle: LoopTimerHandle) -> None:
        """Run a due callback, spawning a task for async results."""
        try:
            result = handle.run()
        except Exception as e:
            logger.error(
                "timer_callback_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        if result is None or not inspect.isawaitable(result):
            return

        task = asyncio.ensure_future(result, loop=self._get_loop())
        handle._task = task
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "timer_task_failed",
                error=str(error),
                error_type=type(error).__name__,
            )

    async def drain(self) -> None:
        """Wait for all in-flight callback tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class VirtualClock(Clock):
    """
    Deterministic clock for tests.

    Time only moves inside ``advance()``. Due callbacks run in order of due
    time, ties broken by scheduling order; awaitables they return are awaited
    before the next callback runs. Callback exceptions propagate.

    Attributes:
        start: Wall-clock time corresponding to monotonic 0.
    """

    DEFAULT_START = datetime(2025, 1, 1, 8, 0, 0, tzinfo=timezone.utc)

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.start = start or self.DEFAULT_START
        self._elapsed = 0.0
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        return self._elapsed

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(self._elapsed + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.when, next(self._sequence), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled, non-cancelled callbacks."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    async def advance(self, seconds: float) -> None:
        """
        Move time forward, running every callback that falls due.

        Args:
            seconds: Amount of virtual time to advance (must be >= 0).
        """
        if seconds < 0:
            raise ValueError(f"cannot advance by negative time: {seconds}")

        target = self._elapsed + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._elapsed = max(self._elapsed, when)
            result = handle.run()
            if result is not None and inspect.isawaitable(result):
                await result
        self._elapsed = target

    async def run_pending(self) -> None:
        """Run callbacks that are due now without moving time."""
        await self.advance(0.0)
