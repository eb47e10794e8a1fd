"""
Autonomous monitoring engine.

This module provides the AutonomousEngine class, the public surface of the
monitoring subsystem. It is explicitly constructed with its collaborators
(hierarchy provider, work-order client, clock) and owns every piece of
mutable state: the event history, the cooldown map and the running cascades.

Example:
    >>> engine = AutonomousEngine(
    ...     provider=StaticHierarchyProvider(),
    ...     work_orders=WorkOrderService(),
    ...     clock=LoopClock(),
    ... )
    >>> unsubscribe = engine.subscribe(print)
    >>> engine.start_monitoring()
    >>> engine.simulate_anomaly("temperature")
    >>> engine.shutdown()
"""

from typing import Callable, Dict, List, Optional, Union

import structlog

from plant_autonomy.config.models import MonitoringConfig
from plant_autonomy.detection.bus import EventBus, EventIdGenerator, EventListener
from plant_autonomy.detection.cascade import Cascade, ResponseCascade
from plant_autonomy.detection.cooldown import CooldownRegistry
from plant_autonomy.detection.evaluator import ThresholdEvaluator
from plant_autonomy.detection.scheduler import MonitoringScheduler
from plant_autonomy.interfaces.clock import Clock
from plant_autonomy.interfaces.hierarchy_provider import HierarchyProvider
from plant_autonomy.interfaces.work_order_client import WorkOrderClient
from plant_autonomy.models.equipment import (
    EquipmentNode,
    MonitoredMetric,
    NodeProperty,
    NodeType,
)
from plant_autonomy.models.events import AnomalyEvent

logger = structlog.get_logger(__name__)

# Synthetic node used by simulate_anomaly().
SIMULATED_NODE_ID = "test-node"
SIMULATED_NODE_NAME = "Filler-3"
SIMULATED_LOCATION = "Factory-1 > Line-B"
SIMULATED_READINGS: Dict[MonitoredMetric, float] = {
    MonitoredMetric.TEMPERATURE: 92.0,
    MonitoredMetric.SPEED: 1350.0,
    MonitoredMetric.OEE: 0.62,
}


class AutonomousEngine:
    """
    Facade over scheduler, evaluator, cooldowns, cascades and event bus.

    Attributes:
        config: Immutable monitoring configuration.
        bus: Event bus and history.
        evaluator: Threshold evaluator.
        cooldowns: Cooldown registry.
        cascade: Response cascade orchestrator.
        scheduler: Polling scheduler.
    """

    def __init__(
        self,
        provider: HierarchyProvider,
        work_orders: WorkOrderClient,
        clock: Clock,
        config: Optional[MonitoringConfig] = None,
    ) -> None:
        self.config = config or MonitoringConfig()
        self.clock = clock

        ids = EventIdGenerator(clock)
        self.bus = EventBus(capacity=self.config.history_capacity)
        self.evaluator = ThresholdEvaluator(self.config.thresholds)
        self.cooldowns = CooldownRegistry(clock, window_seconds=self.config.cooldown_seconds)
        self.cascade = ResponseCascade(
            bus=self.bus,
            clock=clock,
            work_orders=work_orders,
            timings=self.config.timings,
            escalation_margin=self.config.escalation_margin,
            id_generator=ids,
        )
        self.scheduler = MonitoringScheduler(
            config=self.config,
            clock=clock,
            provider=provider,
            evaluator=self.evaluator,
            cooldowns=self.cooldowns,
            cascade=self.cascade,
            bus=self.bus,
            id_generator=ids,
        )
        self._shut_down = False

        logger.info(
            "autonomous_engine_initialized",
            site_id=self.config.site_id,
            history_capacity=self.config.history_capacity,
            cancel_cascades_on_stop=self.config.cancel_cascades_on_stop,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_monitoring(self) -> bool:
        """Start polling; no-op if already running. Returns True if started."""
        if self._shut_down:
            raise RuntimeError("engine has been shut down")
        return self.scheduler.start()

    def stop_monitoring(self) -> bool:
        """Stop polling and clear cooldowns. Returns True if it was running."""
        return self.scheduler.stop()

    def is_active(self) -> bool:
        return self.scheduler.is_running

    def shutdown(self) -> None:
        """
        Release the engine.

        Stops monitoring, cancels every in-flight cascade regardless of
        configuration and removes all listeners. The engine cannot be
        restarted afterwards.
        """
        if self._shut_down:
            return
        self.scheduler.stop()
        cancelled = self.cascade.cancel_all()
        self.bus.clear_listeners()
        self._shut_down = True
        logger.info("autonomous_engine_shutdown", cascades_cancelled=cancelled)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register a listener; returns its unsubscribe function."""
        return self.bus.subscribe(listener)

    def get_event_history(self) -> List[AnomalyEvent]:
        """Copy of retained events, oldest first."""
        return self.bus.get_history()

    def active_cascades(self) -> List[str]:
        """Ids of cascades that are still running."""
        return self.cascade.active_ids()

    # -------------------------------------------------------------------------
    # Direct drive
    # -------------------------------------------------------------------------

    async def check_now(self) -> int:
        """Run one monitoring pass immediately, outside the tick schedule."""
        return await self.scheduler.check_once()

    def simulate_anomaly(
        self,
        anomaly_type: Union[str, MonitoredMetric],
    ) -> Optional[Cascade]:
        """
        Inject a synthetic reading for a demo or test.

        A synthetic node (``test-node`` / ``Filler-3`` at
        ``Factory-1 > Line-B``) is evaluated directly, bypassing the tick.
        Cooldowns still apply.

        Args:
            anomaly_type: "temperature", "speed" or "oee".

        Returns:
            Optional[Cascade]: The started cascade, or None if suppressed.

        Raises:
            ValueError: If anomaly_type is not a monitored metric.
        """
        metric = MonitoredMetric(anomaly_type)
        node = EquipmentNode(
            id=SIMULATED_NODE_ID,
            name=SIMULATED_NODE_NAME,
            type=NodeType.MACHINE,
            properties=[
                NodeProperty(
                    key=metric.value,
                    value=SIMULATED_READINGS[metric],
                    unit=metric.default_unit,
                )
            ],
        )

        logger.info(
            "anomaly_simulated",
            metric=metric.value,
            value=SIMULATED_READINGS[metric],
        )

        for verdict in self.evaluator.evaluate_node(node):
            return self.scheduler.process_verdict(
                verdict,
                node.id,
                node.name,
                SIMULATED_LOCATION,
            )

        logger.warning(
            "simulated_reading_within_thresholds",
            metric=metric.value,
            value=SIMULATED_READINGS[metric],
        )
        return None


def create_engine(
    provider: HierarchyProvider,
    work_orders: WorkOrderClient,
    clock: Clock,
    config: Optional[MonitoringConfig] = None,
) -> AutonomousEngine:
    """
    Factory function to create an AutonomousEngine.

    Args:
        provider: Equipment hierarchy provider.
        work_orders: Work-order collaborator.
        clock: Clock for timestamps and scheduling.
        config: Monitoring configuration (defaults to MonitoringConfig()).

    Returns:
        AutonomousEngine: A new, idle engine.
    """
    return AutonomousEngine(
        provider=provider,
        work_orders=work_orders,
        clock=clock,
        config=config,
    )
