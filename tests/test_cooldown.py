"""Tests for the cooldown registry."""

import pytest

from plant_autonomy.detection.cooldown import CooldownRegistry, build_cooldown_key
from plant_autonomy.models.equipment import MonitoredMetric
from plant_autonomy.models.events import AnomalyDirection

HOT_FILLER = build_cooldown_key(MonitoredMetric.TEMPERATURE, AnomalyDirection.HIGH, "filler-2")


@pytest.fixture
def registry(clock) -> CooldownRegistry:
    return CooldownRegistry(clock, window_seconds=60.0)


class TestCooldownRegistry:
    def test_unknown_key_is_not_on_cooldown(self, registry):
        assert not registry.is_on_cooldown(HOT_FILLER)
        assert registry.remaining(HOT_FILLER) is None

    async def test_suppresses_inside_window(self, registry, clock):
        registry.set_cooldown(HOT_FILLER)

        await clock.advance(59.9)

        assert registry.is_on_cooldown(HOT_FILLER)
        assert registry.remaining(HOT_FILLER) == pytest.approx(0.1)

    async def test_expires_exactly_at_window(self, registry, clock):
        registry.set_cooldown(HOT_FILLER)

        await clock.advance(60.0)

        assert not registry.is_on_cooldown(HOT_FILLER)
        assert registry.remaining(HOT_FILLER) is None

    async def test_set_cooldown_restarts_window(self, registry, clock):
        registry.set_cooldown(HOT_FILLER)
        await clock.advance(61)
        registry.set_cooldown(HOT_FILLER)

        assert registry.is_on_cooldown(HOT_FILLER)

    def test_keys_are_independent(self, registry):
        registry.set_cooldown(HOT_FILLER)

        cold = build_cooldown_key(MonitoredMetric.TEMPERATURE, AnomalyDirection.LOW, "filler-2")
        other = build_cooldown_key(MonitoredMetric.TEMPERATURE, AnomalyDirection.HIGH, "filler-1")

        assert not registry.is_on_cooldown(cold)
        assert not registry.is_on_cooldown(other)

    def test_clear_drops_all_entries(self, registry):
        registry.set_cooldown(HOT_FILLER)
        registry.clear()

        assert len(registry) == 0
        assert HOT_FILLER not in registry
        assert not registry.is_on_cooldown(HOT_FILLER)

    def test_zero_window_never_suppresses(self, clock):
        registry = CooldownRegistry(clock, window_seconds=0)
        registry.set_cooldown(HOT_FILLER)

        assert not registry.is_on_cooldown(HOT_FILLER)


def test_key_string_form():
    assert str(HOT_FILLER) == "temperature:high:filler-2"
