"""
Monitoring service entry point.

This service is responsible for:
- Building the autonomous engine on the asyncio loop
- Serving the equipment tree from the static hierarchy provider
- Creating work orders through the in-memory work-order service
- Logging every published event
- Shutting the engine down on SIGINT/SIGTERM

Usage:
    python -m plant_autonomy

Environment Variables:
    CONFIG_PATH: Path to config directory (default: config)
    LOG_LEVEL: Logging level, overrides monitoring.yaml
    SITE_ID: Root node to monitor, overrides monitoring.yaml
    SIMULATE_ANOMALY: Inject a demo anomaly at startup
        (temperature, speed or oee)
"""

import asyncio
import os
import sys
from typing import Optional

import structlog

from plant_autonomy import __version__
from plant_autonomy.adapters.clock import LoopClock
from plant_autonomy.adapters.hierarchy import StaticHierarchyProvider
from plant_autonomy.adapters.work_orders import WorkOrderService
from plant_autonomy.detection.engine import AutonomousEngine, create_engine
from plant_autonomy.models.events import AnomalyEvent, EventSeverity
from plant_autonomy.services import ServiceRunner, setup_logging

logger = structlog.get_logger(__name__)


class MonitorService(ServiceRunner):
    """
    Runs the autonomous engine until a shutdown signal arrives.

    Attributes:
        clock: Loop-backed clock shared by engine and work-order service.
        provider: Equipment hierarchy provider.
        work_orders: Work-order service.
        engine: The autonomous engine.
    """

    def __init__(self, config_path: str = "config") -> None:
        super().__init__(config_path)
        self.clock: Optional[LoopClock] = None
        self.provider: Optional[StaticHierarchyProvider] = None
        self.work_orders: Optional[WorkOrderService] = None
        self.engine: Optional[AutonomousEngine] = None
        self.events_seen = 0

    @property
    def service_name(self) -> str:
        return "plant-monitor"

    async def _initialize(self) -> None:
        """Create the clock, collaborators and engine."""
        if self.config is None:
            raise RuntimeError("Service not properly initialized")

        self.clock = LoopClock(asyncio.get_running_loop())
        self.provider = StaticHierarchyProvider.from_config(self.config.hierarchy)
        self.work_orders = WorkOrderService(clock=self.clock)
        self.engine = create_engine(
            provider=self.provider,
            work_orders=self.work_orders,
            clock=self.clock,
            config=self.config.monitoring,
        )
        self.engine.subscribe(self._log_event)

        self.logger.info(
            "monitor_initialized",
            site_id=self.config.monitoring.site_id,
            interval_ms=self.config.monitoring.check_interval_ms,
        )

    async def _run(self) -> None:
        """Start monitoring and wait for shutdown."""
        if self.engine is None:
            raise RuntimeError("Service not properly initialized")

        self.engine.start_monitoring()

        anomaly = os.getenv("SIMULATE_ANOMALY")
        if anomaly:
            try:
                self.engine.simulate_anomaly(anomaly.strip().lower())
            except ValueError:
                self.logger.error("unknown_simulated_anomaly", anomaly=anomaly)

        await self.shutdown_event.wait()

    async def _cleanup(self) -> None:
        """Shut the engine down and wait for in-flight callbacks."""
        if self.engine is not None:
            self.engine.shutdown()
        if self.clock is not None:
            await self.clock.drain()

        self.logger.info(
            "cleanup_state",
            events_seen=self.events_seen,
            work_orders=len(self.work_orders.get_all_work_orders()) if self.work_orders else 0,
        )

    def _log_event(self, event: AnomalyEvent) -> None:
        self.events_seen += 1
        log = self.logger.info if event.severity == EventSeverity.INFO else self.logger.warning
        log(
            "engine_event",
            event_id=event.id,
            cascade_id=event.cascade_id,
            event_type=event.type.value,
            severity=event.severity.value,
            equipment=event.equipment,
            location=event.location,
            message=event.message,
        )


async def main() -> None:
    """Main entry point."""
    # Set up initial logging
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    config_path = os.getenv("CONFIG_PATH", "config")

    logger.info(
        "plant_monitor_service_starting",
        version=__version__,
        config_path=config_path,
    )

    service = MonitorService(config_path=config_path)

    try:
        await service.run()
    except Exception as e:
        logger.error("service_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
