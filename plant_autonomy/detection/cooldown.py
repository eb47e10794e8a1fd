"""
Cooldown registry for anomaly debouncing.

This module provides the CooldownRegistry class which remembers when each
anomaly signature last started a response cascade and suppresses repeats
inside a fixed window.

Key Features:
    - Keys distinguish metric, direction and equipment, so "too high" and
      "too low" on the same machine are tracked independently
    - Uses the injected clock's monotonic time
    - Cleared wholesale when monitoring stops

Example:
    >>> registry = CooldownRegistry(clock, window_seconds=60)
    >>> key = build_cooldown_key(MonitoredMetric.TEMPERATURE, AnomalyDirection.HIGH, "filler-2")
    >>> registry.is_on_cooldown(key)
    False
    >>> registry.set_cooldown(key)
    >>> registry.is_on_cooldown(key)
    True
"""

from typing import Dict, NamedTuple, Optional

import structlog

from plant_autonomy.interfaces.clock import Clock
from plant_autonomy.models.equipment import MonitoredMetric
from plant_autonomy.models.events import AnomalyDirection

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN_SECONDS = 60.0


class CooldownKey(NamedTuple):
    """Anomaly signature used for debouncing."""

    metric: MonitoredMetric
    direction: AnomalyDirection
    equipment_id: str

    def __str__(self) -> str:
        return f"{self.metric.value}:{self.direction.value}:{self.equipment_id}"


def build_cooldown_key(
    metric: MonitoredMetric,
    direction: AnomalyDirection,
    equipment_id: str,
) -> CooldownKey:
    """
    Build a cooldown key for an anomaly signature.

    Args:
        metric: The anomalous metric.
        direction: Which bound was crossed.
        equipment_id: Source node id.

    Returns:
        CooldownKey: Hashable signature.
    """
    return CooldownKey(metric, direction, equipment_id)


class CooldownRegistry:
    """
    Tracks the last trigger time per anomaly signature.

    Attributes:
        window_seconds: Minimum seconds between two cascades for one key.
        _last_triggered: Mapping of key to monotonic trigger time.
    """

    def __init__(
        self,
        clock: Clock,
        window_seconds: float = DEFAULT_COOLDOWN_SECONDS,
    ) -> None:
        self.clock = clock
        self.window_seconds = window_seconds
        self._last_triggered: Dict[CooldownKey, float] = {}

        logger.debug(
            "cooldown_registry_initialized",
            window_seconds=window_seconds,
        )

    def is_on_cooldown(self, key: CooldownKey) -> bool:
        """
        Check whether a key triggered within the cooldown window.

        Args:
            key: Anomaly signature.

        Returns:
            bool: True if a prior trigger exists and
                  ``now - last < window_seconds``.
        """
        last = self._last_triggered.get(key)
        if last is None:
            return False
        return (self.clock.monotonic() - last) < self.window_seconds

    def set_cooldown(self, key: CooldownKey) -> None:
        """Record the current time as the key's last trigger."""
        self._last_triggered[key] = self.clock.monotonic()

    def remaining(self, key: CooldownKey) -> Optional[float]:
        """
        Seconds left in the key's window.

        Returns:
            Optional[float]: Remaining seconds, or None if not on cooldown.
        """
        last = self._last_triggered.get(key)
        if last is None:
            return None
        remaining = self.window_seconds - (self.clock.monotonic() - last)
        return remaining if remaining > 0 else None

    def clear(self) -> None:
        """Drop all entries."""
        count = len(self._last_triggered)
        self._last_triggered.clear()
        logger.info("cooldowns_cleared", entries=count)

    def __len__(self) -> int:
        return len(self._last_triggered)

    def __contains__(self, key: object) -> bool:
        return key in self._last_triggered
