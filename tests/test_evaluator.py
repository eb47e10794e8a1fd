"""Tests for threshold evaluation."""

import pytest

from plant_autonomy.config.models import AnomalyThresholds, FloorThreshold, RangeThreshold
from plant_autonomy.detection.evaluator import (
    CONFIDENCE_SCORES,
    ThresholdEvaluator,
    create_evaluator,
    normalize_oee,
)
from plant_autonomy.models.equipment import EquipmentNode, MonitoredMetric, NodeProperty
from plant_autonomy.models.events import AnomalyDirection


@pytest.fixture
def evaluator() -> ThresholdEvaluator:
    return create_evaluator()


class TestTemperature:
    def test_at_max_is_normal(self, evaluator):
        assert evaluator.evaluate_temperature(85.0) is None

    def test_just_above_max_is_high(self, evaluator):
        verdict = evaluator.evaluate_temperature(85.01)

        assert verdict is not None
        assert verdict.direction == AnomalyDirection.HIGH
        assert verdict.threshold == 85.0
        assert verdict.confidence == 0.95
        assert verdict.unit == "°C"

    def test_at_min_is_normal(self, evaluator):
        assert evaluator.evaluate_temperature(15.0) is None

    def test_below_min_is_low(self, evaluator):
        verdict = evaluator.evaluate_temperature(14.9)

        assert verdict.direction == AnomalyDirection.LOW
        assert verdict.threshold == 15.0
        assert verdict.confidence == 0.82

    def test_keeps_reported_unit(self, evaluator):
        verdict = evaluator.evaluate_temperature(190.0, unit="°F")
        assert verdict.unit == "°F"


class TestSpeed:
    @pytest.mark.parametrize("value", [80.0, 120.0, 1200.0])
    def test_within_bounds(self, evaluator, value):
        assert evaluator.evaluate_speed(value) is None

    def test_above_max(self, evaluator):
        verdict = evaluator.evaluate_speed(1350.0)

        assert verdict.metric == MonitoredMetric.SPEED
        assert verdict.direction == AnomalyDirection.HIGH
        assert verdict.confidence == 0.88
        assert verdict.unit == "RPM"

    def test_below_min(self, evaluator):
        verdict = evaluator.evaluate_speed(79.0)

        assert verdict.direction == AnomalyDirection.LOW
        assert verdict.confidence == 0.75


class TestOee:
    @pytest.mark.parametrize(
        "raw, expected",
        [(0.62, 0.62), (1.0, 1.0), (78.2, 0.782), (100.0, 1.0)],
    )
    def test_normalize(self, raw, expected):
        assert normalize_oee(raw) == pytest.approx(expected)

    def test_percentage_above_floor_is_normal(self, evaluator):
        assert evaluator.evaluate_oee(78.2) is None

    def test_percentage_below_floor_is_low(self, evaluator):
        verdict = evaluator.evaluate_oee(72.0)

        assert verdict.direction == AnomalyDirection.LOW
        assert verdict.value == pytest.approx(0.72)
        assert verdict.threshold == 0.75
        assert verdict.confidence == 0.91

    def test_ratio_below_floor_is_low(self, evaluator):
        assert evaluator.evaluate_oee(0.62).value == pytest.approx(0.62)

    def test_stopped_equipment_is_skipped(self, evaluator):
        assert evaluator.evaluate_oee(0.0, stopped=True) is None

    def test_running_equipment_is_evaluated(self, evaluator):
        assert evaluator.evaluate_oee(0.0, stopped=False) is not None


class TestEvaluateNode:
    def test_metrics_in_fixed_order(self, evaluator):
        node = EquipmentNode(
            id="m1",
            name="M1",
            properties=[
                NodeProperty(key="oee", value=0.5),
                NodeProperty(key="speed", value=1500),
                NodeProperty(key="temperature", value=99.0),
            ],
        )

        verdicts = evaluator.evaluate_node(node)

        assert [v.metric for v in verdicts] == [
            MonitoredMetric.TEMPERATURE,
            MonitoredMetric.SPEED,
            MonitoredMetric.OEE,
        ]

    def test_non_numeric_values_ignored(self, evaluator):
        node = EquipmentNode(
            id="m1",
            name="M1",
            properties=[
                NodeProperty(key="temperature", value="hot"),
                NodeProperty(key="speed", value=True),
            ],
        )

        assert evaluator.evaluate_node(node) == []

    def test_stopped_node_still_checks_temperature(self, evaluator):
        node = EquipmentNode(
            id="m1",
            name="M1",
            properties=[
                NodeProperty(key="status", value="stopped"),
                NodeProperty(key="oee", value=0),
                NodeProperty(key="temperature", value=95.0),
            ],
        )

        verdicts = evaluator.evaluate_node(node)

        assert [v.metric for v in verdicts] == [MonitoredMetric.TEMPERATURE]

    def test_custom_thresholds(self):
        evaluator = ThresholdEvaluator(
            AnomalyThresholds(
                temperature=RangeThreshold(min=0, max=50),
                oee=FloorThreshold(min=0.9),
            )
        )

        assert evaluator.evaluate_temperature(60.0).threshold == 50.0
        assert evaluator.evaluate_oee(0.85) is not None


def test_every_direction_has_a_confidence():
    assert set(CONFIDENCE_SCORES) == {
        (MonitoredMetric.TEMPERATURE, AnomalyDirection.HIGH),
        (MonitoredMetric.TEMPERATURE, AnomalyDirection.LOW),
        (MonitoredMetric.SPEED, AnomalyDirection.HIGH),
        (MonitoredMetric.SPEED, AnomalyDirection.LOW),
        (MonitoredMetric.OEE, AnomalyDirection.LOW),
    }
