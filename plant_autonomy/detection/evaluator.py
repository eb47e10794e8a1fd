"""
Threshold evaluator for equipment metrics.

This module provides the ThresholdEvaluator class which classifies metric
readings against static bounds.

Key Features:
    - Strict inequalities: readings equal to a bound are not anomalous
    - OEE percentages (> 1) are normalized to ratios before comparison
    - OEE is never evaluated on stopped equipment
    - Each verdict carries a fixed display confidence per (metric, direction)

Example:
    >>> evaluator = ThresholdEvaluator(AnomalyThresholds())
    >>> verdict = evaluator.evaluate_temperature(92.0)
    >>> verdict.direction
    <AnomalyDirection.HIGH: 'high'>
    >>> evaluator.evaluate_temperature(85.0) is None
    True
"""

from typing import Dict, List, Optional, Tuple

import structlog

from plant_autonomy.config.models import AnomalyThresholds, RangeThreshold
from plant_autonomy.models.equipment import EquipmentNode, MonitoredMetric
from plant_autonomy.models.events import AnomalyDirection, AnomalyVerdict

logger = structlog.get_logger(__name__)


# Display-only confidence; not computed from data.
CONFIDENCE_SCORES: Dict[Tuple[MonitoredMetric, AnomalyDirection], float] = {
    (MonitoredMetric.TEMPERATURE, AnomalyDirection.HIGH): 0.95,
    (MonitoredMetric.TEMPERATURE, AnomalyDirection.LOW): 0.82,
    (MonitoredMetric.SPEED, AnomalyDirection.HIGH): 0.88,
    (MonitoredMetric.SPEED, AnomalyDirection.LOW): 0.75,
    (MonitoredMetric.OEE, AnomalyDirection.LOW): 0.91,
}


def normalize_oee(value: float) -> float:
    """Convert a percentage OEE (> 1) to a ratio."""
    return value / 100 if value > 1 else value


class ThresholdEvaluator:
    """
    Classifies metric readings as anomalous or not.

    The evaluator is stateless apart from its thresholds; callers decide what
    to do with a verdict.

    Attributes:
        thresholds: Static per-metric bounds.
    """

    def __init__(self, thresholds: AnomalyThresholds) -> None:
        self.thresholds = thresholds

    def evaluate_temperature(
        self,
        value: float,
        unit: Optional[str] = None,
    ) -> Optional[AnomalyVerdict]:
        """Classify a temperature reading against its min/max."""
        return self._evaluate_range(
            MonitoredMetric.TEMPERATURE,
            self.thresholds.temperature,
            value,
            unit,
        )

    def evaluate_speed(
        self,
        value: float,
        unit: Optional[str] = None,
    ) -> Optional[AnomalyVerdict]:
        """Classify a speed reading against its min/max."""
        return self._evaluate_range(
            MonitoredMetric.SPEED,
            self.thresholds.speed,
            value,
            unit,
        )

    def evaluate_oee(
        self,
        value: float,
        stopped: bool = False,
    ) -> Optional[AnomalyVerdict]:
        """
        Classify an OEE reading.

        Args:
            value: OEE as a ratio or a percentage (> 1).
            stopped: Whether the node is stopped; a stopped node is skipped.

        Returns:
            Optional[AnomalyVerdict]: A LOW verdict when the normalized value
            is below the configured minimum, else None.
        """
        if stopped:
            logger.debug("oee_skipped_stopped_equipment", value=value)
            return None

        normalized = normalize_oee(value)
        floor = self.thresholds.oee.min
        if normalized < floor:
            return self._verdict(
                MonitoredMetric.OEE,
                AnomalyDirection.LOW,
                normalized,
                floor,
                MonitoredMetric.OEE.default_unit,
            )
        return None

    def evaluate_node(self, node: EquipmentNode) -> List[AnomalyVerdict]:
        """
        Evaluate every monitored numeric property of a node.

        Metrics are evaluated in the order temperature, speed, OEE.

        Args:
            node: The equipment node.

        Returns:
            List[AnomalyVerdict]: Verdicts for anomalous readings only.
        """
        verdicts: List[AnomalyVerdict] = []

        temperature = node.metric(MonitoredMetric.TEMPERATURE)
        if temperature is not None:
            verdict = self.evaluate_temperature(float(temperature.value), temperature.unit)
            if verdict is not None:
                verdicts.append(verdict)

        speed = node.metric(MonitoredMetric.SPEED)
        if speed is not None:
            verdict = self.evaluate_speed(float(speed.value), speed.unit)
            if verdict is not None:
                verdicts.append(verdict)

        oee = node.metric(MonitoredMetric.OEE)
        if oee is not None:
            verdict = self.evaluate_oee(float(oee.value), node.is_stopped)
            if verdict is not None:
                verdicts.append(verdict)

        return verdicts

    def _evaluate_range(
        self,
        metric: MonitoredMetric,
        bounds: RangeThreshold,
        value: float,
        unit: Optional[str],
    ) -> Optional[AnomalyVerdict]:
        unit = unit or metric.default_unit
        if value > bounds.max:
            return self._verdict(metric, AnomalyDirection.HIGH, value, bounds.max, unit)
        if value < bounds.min:
            return self._verdict(metric, AnomalyDirection.LOW, value, bounds.min, unit)
        return None

    def _verdict(
        self,
        metric: MonitoredMetric,
        direction: AnomalyDirection,
        value: float,
        threshold: float,
        unit: str,
    ) -> AnomalyVerdict:
        logger.debug(
            "threshold_crossed",
            metric=metric.value,
            direction=direction.value,
            value=value,
            threshold=threshold,
        )
        return AnomalyVerdict(
            metric=metric,
            direction=direction,
            value=value,
            threshold=threshold,
            confidence=CONFIDENCE_SCORES[(metric, direction)],
            unit=unit,
        )


def create_evaluator(thresholds: Optional[AnomalyThresholds] = None) -> ThresholdEvaluator:
    """
    Factory function to create a ThresholdEvaluator.

    Args:
        thresholds: Bounds to use; defaults to AnomalyThresholds().

    Returns:
        ThresholdEvaluator: A new evaluator instance.
    """
    return ThresholdEvaluator(thresholds or AnomalyThresholds())
