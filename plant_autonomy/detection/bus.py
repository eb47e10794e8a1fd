"""
Event bus with bounded history.

This module provides the EventBus class which records every published
AnomalyEvent in a fixed-capacity history and fans it out synchronously to
registered listeners.

Key Features:
    - Oldest events evicted first once capacity is reached
    - Listeners called in registration order
    - A failing listener is logged and skipped; later listeners still run
    - subscribe() returns an unsubscribe function

Example:
    >>> bus = EventBus(capacity=100)
    >>> unsubscribe = bus.subscribe(lambda event: print(event.message))
    >>> bus.publish(event)
    >>> unsubscribe()
    >>> len(bus.get_history())
    1
"""

import itertools
from collections import deque
from typing import Callable, Deque, List

import structlog

from plant_autonomy.interfaces.clock import Clock
from plant_autonomy.models.events import AnomalyEvent

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_CAPACITY = 100

EventListener = Callable[[AnomalyEvent], None]


class EventIdGenerator:
    """
    Produces unique, time-based event ids.

    Ids have the form ``evt-<epoch_ms>-<sequence>``; the sequence keeps ids
    distinct when several events share a millisecond.
    """

    def __init__(self, clock: Clock, prefix: str = "evt") -> None:
        self.clock = clock
        self.prefix = prefix
        self._sequence = itertools.count(1)

    def next_id(self) -> str:
        millis = int(self.clock.now().timestamp() * 1000)
        return f"{self.prefix}-{millis}-{next(self._sequence):06d}"


class EventBus:
    """
    Bounded event history with synchronous publish/subscribe.

    Attributes:
        capacity: Maximum number of events retained.
        _history: Retained events, oldest first.
        _listeners: Registered listeners in registration order.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._history: Deque[AnomalyEvent] = deque(maxlen=capacity)
        self._listeners: List[EventListener] = []

        logger.debug("event_bus_initialized", capacity=capacity)

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Called with every event published after registration.

        Returns:
            Callable[[], None]: Function that removes this registration.
                Calling it more than once is harmless.
        """
        self._listeners.append(listener)
        logger.debug("listener_subscribed", listeners=len(self._listeners))

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return
            logger.debug("listener_unsubscribed", listeners=len(self._listeners))

        return unsubscribe

    def publish(self, event: AnomalyEvent) -> int:
        """
        Append an event to history and deliver it to every listener.

        Args:
            event: The event to publish.

        Returns:
            int: Number of listeners that handled the event without error.
        """
        self._history.append(event)

        delivered = 0
        # Snapshot so listeners may (un)subscribe during delivery.
        for listener in list(self._listeners):
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    "listener_failed",
                    event_id=event.id,
                    event_type=event.type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logger.debug(
            "event_published",
            event_id=event.id,
            cascade_id=event.cascade_id,
            event_type=event.type.value,
            severity=event.severity.value,
            delivered=delivered,
        )
        return delivered

    def get_history(self) -> List[AnomalyEvent]:
        """Return a copy of the retained events, oldest first."""
        return list(self._history)

    def clear_listeners(self) -> None:
        """Remove every listener."""
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
