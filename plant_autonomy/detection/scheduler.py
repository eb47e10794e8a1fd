"""
Monitoring scheduler.

This module provides the MonitoringScheduler class which owns the polling
loop of the autonomous engine.

Key Features:
    - Idle -> Running -> Idle lifecycle; start() and stop() are idempotent
    - Repeating tick every check_interval_ms on the injected clock
    - Depth-first walk of the equipment tree, parent before children
    - Cooldown gate immediately before each cascade
    - Hierarchy fetch failures are logged and the tick skipped

Example:
    >>> scheduler = MonitoringScheduler(
    ...     config=MonitoringConfig(),
    ...     clock=clock,
    ...     provider=provider,
    ...     evaluator=evaluator,
    ...     cooldowns=cooldowns,
    ...     cascade=cascade,
    ...     bus=bus,
    ... )
    >>> scheduler.start()
    True
"""

from enum import Enum
from typing import Optional
from uuid import uuid4

import structlog

from plant_autonomy.config.models import MonitoringConfig
from plant_autonomy.detection.bus import EventBus, EventIdGenerator
from plant_autonomy.detection.cascade import Cascade, ResponseCascade
from plant_autonomy.detection.cooldown import CooldownRegistry, build_cooldown_key
from plant_autonomy.detection.evaluator import ThresholdEvaluator
from plant_autonomy.interfaces.clock import Clock, TimerHandle
from plant_autonomy.interfaces.hierarchy_provider import HierarchyProvider
from plant_autonomy.models.equipment import EquipmentNode, walk_hierarchy
from plant_autonomy.models.events import (
    AnomalyEvent,
    AnomalyVerdict,
    EventDetails,
    EventSeverity,
    EventType,
)

logger = structlog.get_logger(__name__)

SYSTEM_EQUIPMENT = "Autonomous System"


class SchedulerState(str, Enum):
    """Scheduler lifecycle."""

    IDLE = "idle"
    RUNNING = "running"


class MonitoringScheduler:
    """
    Polls the equipment hierarchy and starts cascades for new anomalies.

    Attributes:
        config: Monitoring configuration.
        state: Current lifecycle state.
        ticks: Number of ticks run since construction.
    """

    def __init__(
        self,
        config: MonitoringConfig,
        clock: Clock,
        provider: HierarchyProvider,
        evaluator: ThresholdEvaluator,
        cooldowns: CooldownRegistry,
        cascade: ResponseCascade,
        bus: EventBus,
        id_generator: Optional[EventIdGenerator] = None,
    ) -> None:
        self.config = config
        self.clock = clock
        self.provider = provider
        self.evaluator = evaluator
        self.cooldowns = cooldowns
        self.cascade = cascade
        self.bus = bus
        self.ids = id_generator or EventIdGenerator(clock)

        self.state = SchedulerState.IDLE
        self.ticks = 0
        self._tick_handle: Optional[TimerHandle] = None
        # Bumped by stop(); a pass whose fetch spans a stop is discarded.
        self._epoch = 0

        logger.info(
            "monitoring_scheduler_initialized",
            site_id=config.site_id,
            interval_ms=config.check_interval_ms,
            cooldown_seconds=config.cooldown_seconds,
        )

    @property
    def is_running(self) -> bool:
        return self.state == SchedulerState.RUNNING

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """
        Start polling.

        Emits one informational alert and arms the repeating tick.

        Returns:
            bool: True if the scheduler transitioned to RUNNING; False if it
            was already running or monitoring is disabled.
        """
        if self.is_running:
            return False
        if not self.config.enabled:
            logger.warning("monitoring_disabled", site_id=self.config.site_id)
            return False

        self.state = SchedulerState.RUNNING
        self._emit_system_alert(
            "Autonomous monitoring system activated - Now continuously monitoring "
            "all production lines for anomalies, performance degradation, and "
            "safety issues.",
            action_taken=(
                "Real-time monitoring initiated across all equipment. Checking "
                "temperature, speed, OEE metrics every "
                f"{self.config.interval_seconds:g} seconds. AI agents on standby "
                "for predictive analysis."
            ),
        )
        self._schedule_tick()

        logger.info("monitoring_started", site_id=self.config.site_id)
        return True

    def stop(self) -> bool:
        """
        Stop polling.

        Cancels the tick, clears all cooldowns, cancels in-flight cascades
        when ``cancel_cascades_on_stop`` is set, and emits one informational
        alert.

        Returns:
            bool: True if the scheduler was running.
        """
        if not self.is_running:
            return False

        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        self.state = SchedulerState.IDLE
        self._epoch += 1
        self.cooldowns.clear()

        cancelled = 0
        if self.config.cancel_cascades_on_stop:
            cancelled = self.cascade.cancel_all()

        self._emit_system_alert(
            "Autonomous monitoring system paused - All active monitoring suspended. "
            "Cooldown timers cleared.",
            action_taken=(
                f"{cancelled} in-flight response cascades cancelled." if cancelled else None
            ),
        )

        logger.info(
            "monitoring_stopped",
            site_id=self.config.site_id,
            ticks=self.ticks,
            cascades_cancelled=cancelled,
            cascades_in_flight=self.cascade.active_count,
        )
        return True

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    def _schedule_tick(self) -> None:
        self._tick_handle = self.clock.call_later(
            self.config.interval_seconds,
            self._on_tick,
        )

    async def _on_tick(self) -> None:
        if not self.is_running:
            return
        self._schedule_tick()
        await self.check_once()

    async def check_once(self) -> int:
        """
        Run one monitoring pass over the whole hierarchy.

        A pass whose hierarchy fetch is still pending when the scheduler is
        stopped evaluates nothing.

        Returns:
            int: Number of cascades started during the pass.
        """
        self.ticks += 1
        epoch = self._epoch

        try:
            root = await self.provider.get_hierarchy(self.config.site_id)
        except Exception as e:
            logger.error(
                "hierarchy_fetch_failed",
                site_id=self.config.site_id,
                tick=self.ticks,
                error=str(e),
                error_type=type(e).__name__,
            )
            return 0

        if epoch != self._epoch:
            logger.info(
                "tick_discarded_after_stop",
                site_id=self.config.site_id,
                tick=self.ticks,
            )
            return 0

        nodes = 0
        started = 0
        for visit in walk_hierarchy(root):
            nodes += 1
            started += self.process_node(visit.node, visit.location)

        logger.debug(
            "tick_completed",
            tick=self.ticks,
            nodes=nodes,
            cascades_started=started,
        )
        return started

    def process_node(self, node: EquipmentNode, location: str) -> int:
        """
        Evaluate one node and start cascades for qualifying verdicts.

        Args:
            node: The node to evaluate.
            location: The node's hierarchical location.

        Returns:
            int: Number of cascades started.
        """
        started = 0
        for verdict in self.evaluator.evaluate_node(node):
            if self.process_verdict(verdict, node.id, node.name, location) is not None:
                started += 1
        return started

    def process_verdict(
        self,
        verdict: AnomalyVerdict,
        equipment_id: str,
        equipment_name: str,
        location: str,
    ) -> Optional[Cascade]:
        """
        Gate a verdict through the cooldown registry and start a cascade.

        Args:
            verdict: The anomaly verdict.
            equipment_id: Source node id.
            equipment_name: Source node name.
            location: Source node location.

        Returns:
            Optional[Cascade]: The started cascade, or None when suppressed.
        """
        key = build_cooldown_key(verdict.metric, verdict.direction, equipment_id)
        if self.cooldowns.is_on_cooldown(key):
            logger.debug(
                "anomaly_suppressed",
                cooldown_key=str(key),
                remaining_seconds=self.cooldowns.remaining(key),
            )
            return None

        self.cooldowns.set_cooldown(key)
        return self.cascade.start(verdict, equipment_id, equipment_name, location)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _emit_system_alert(self, message: str, action_taken: Optional[str] = None) -> None:
        event = AnomalyEvent(
            id=self.ids.next_id(),
            cascade_id=str(uuid4()),
            timestamp=self.clock.now(),
            type=EventType.ALERT,
            severity=EventSeverity.INFO,
            equipment=SYSTEM_EQUIPMENT,
            location=self.config.site_id,
            message=message,
            details=EventDetails(action_taken=action_taken) if action_taken else None,
        )
        self.bus.publish(event)
