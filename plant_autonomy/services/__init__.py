"""
Service runtime helpers.

Provides structured logging setup and the ServiceRunner base class that
long-running services build on: config loading, signal handling and an
initialize / run / cleanup lifecycle.

Example:
    >>> class MyService(ServiceRunner):
    ...     @property
    ...     def service_name(self) -> str:
    ...         return "my-service"
    ...     async def _initialize(self) -> None: ...
    ...     async def _run(self) -> None:
    ...         await self.shutdown_event.wait()
    ...     async def _cleanup(self) -> None: ...
    >>> asyncio.run(MyService("config").run())
"""

import asyncio
import logging
import signal
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from plant_autonomy.config import AppConfig, LogFormat, load_config


def setup_logging(level: str = "INFO", log_format: LogFormat = LogFormat.JSON) -> None:
    """
    Configure structlog and the standard logging bridge.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: JSON for machine-readable output, TEXT for console.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == LogFormat.JSON
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )


class ServiceRunner(ABC):
    """
    Base class for long-running services.

    Attributes:
        config_path: Directory holding the YAML configuration.
        config: Loaded configuration, set by run().
        shutdown_event: Set when the service should stop.
        logger: Logger bound to the service name.
    """

    def __init__(self, config_path: str = "config") -> None:
        self.config_path = config_path
        self.config: Optional[AppConfig] = None
        self.shutdown_event = asyncio.Event()
        self.logger = structlog.get_logger(self.service_name)

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Name used in log events."""
        pass

    @abstractmethod
    async def _initialize(self) -> None:
        """Build service components; config is loaded."""
        pass

    @abstractmethod
    async def _run(self) -> None:
        """Main body; should return once shutdown_event is set."""
        pass

    @abstractmethod
    async def _cleanup(self) -> None:
        """Release service components."""
        pass

    def request_shutdown(self) -> None:
        """Ask the service to stop."""
        if not self.shutdown_event.is_set():
            self.logger.info("shutdown_requested", service=self.service_name)
            self.shutdown_event.set()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                # Not supported on this platform's event loop.
                self.logger.debug("signal_handler_unavailable", signal=sig.name)

    async def run(self) -> None:
        """
        Load config, set up logging, then initialize, run and clean up.

        Raises:
            ConfigLoadError: If the configuration cannot be loaded.
        """
        self.config = load_config(self.config_path)
        setup_logging(self.config.logging.level.value, self.config.logging.format)

        self.logger.info(
            "service_starting",
            service=self.service_name,
            config_path=self.config_path,
        )
        self._install_signal_handlers()

        try:
            await self._initialize()
            await self._run()
        finally:
            await self._cleanup()
            self.logger.info("service_stopped", service=self.service_name)
