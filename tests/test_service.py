"""Tests for the monitoring service wiring."""

import asyncio
from pathlib import Path

import pytest

from plant_autonomy.config import load_config
from plant_autonomy.models.events import EventType
from plant_autonomy.services.monitor import MonitorService

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config"


@pytest.fixture
def service(monkeypatch) -> MonitorService:
    monkeypatch.delenv("SITE_ID", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("SIMULATE_ANOMALY", raising=False)
    service = MonitorService(str(REPO_CONFIG))
    service.config = load_config(REPO_CONFIG)
    return service


async def run_briefly(service: MonitorService) -> None:
    await service._initialize()
    task = asyncio.create_task(service._run())
    await asyncio.sleep(0.01)
    service.request_shutdown()
    await task
    await service._cleanup()


class TestMonitorService:
    async def test_start_and_shutdown(self, service):
        await run_briefly(service)

        history = service.engine.get_event_history()
        assert [e.type for e in history] == [EventType.ALERT, EventType.ALERT]
        assert service.events_seen == 2
        assert not service.engine.is_active()

    async def test_simulated_anomaly_at_startup(self, service, monkeypatch):
        monkeypatch.setenv("SIMULATE_ANOMALY", "temperature")

        await run_briefly(service)

        types = [e.type for e in service.engine.get_event_history()]
        assert types[:2] == [EventType.ALERT, EventType.ANOMALY_DETECTED]
        assert service.engine.active_cascades() == []

    async def test_unknown_simulated_anomaly_is_logged(self, service, monkeypatch):
        monkeypatch.setenv("SIMULATE_ANOMALY", "vibration")

        await run_briefly(service)

        assert EventType.ANOMALY_DETECTED not in [
            e.type for e in service.engine.get_event_history()
        ]

    async def test_provider_uses_configured_tree(self, service):
        await service._initialize()

        assert service.provider.root.id == "site-1"
        assert service.work_orders.clock is service.clock

        service.engine.shutdown()
