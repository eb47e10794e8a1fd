"""
Abstract clock and timer interface.

All delayed work in the engine (the polling tick and every cascade stage) is
scheduled through a Clock so that production code runs on the asyncio loop
while tests advance virtual time deterministically.

A timer callback may return an awaitable; the clock is responsible for
driving it to completion.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

TimerCallback = Callable[[], Union[None, Awaitable[Any]]]


class TimerHandle:
    """
    Handle to a scheduled callback.

    Attributes:
        when: Monotonic time at which the callback is due.
    """

    def __init__(self, when: float, callback: TimerCallback) -> None:
        self.when = when
        self._callback: Optional[TimerCallback] = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._cancelled

    def cancel(self) -> None:
        """Prevent the callback from running; idempotent."""
        self._cancelled = True
        self._callback = None

    def run(self) -> Union[None, Awaitable[Any]]:
        """Invoke the callback once; returns its result."""
        callback = self._callback
        self._callback = None
        if callback is None or self._cancelled:
            return None
        return callback()


class Clock(ABC):
    """Time source and delayed-callback scheduler."""

    @abstractmethod
    def now(self) -> datetime:
        """Current wall-clock time (timezone-aware, UTC)."""
        pass

    @abstractmethod
    def monotonic(self) -> float:
        """Monotonic seconds, used for cooldown arithmetic."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        """
        Schedule callback to run after delay seconds.

        Args:
            delay: Seconds to wait; negative values are treated as zero.
            callback: Zero-argument callable, may return an awaitable.

        Returns:
            TimerHandle: Handle that can cancel the callback.
        """
        pass
