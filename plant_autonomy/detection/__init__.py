"""
Anomaly detection and autonomous response.

This module contains threshold evaluation, cooldown tracking, the response
cascade, the event bus and the polling scheduler, wired together by the
AutonomousEngine facade.

Components:
    evaluator: ThresholdEvaluator for static bounds
    cooldown: CooldownRegistry for per-signature debouncing
    bus: EventBus with bounded history and listener fan-out
    cascade: ResponseCascade for staged, time-delayed responses
    scheduler: MonitoringScheduler owning the polling loop
    engine: AutonomousEngine public facade

Example:
    >>> from plant_autonomy.detection import create_engine
    >>> engine = create_engine(provider, work_orders, clock)
    >>> engine.start_monitoring()
"""

from plant_autonomy.detection.bus import (
    DEFAULT_HISTORY_CAPACITY,
    EventBus,
    EventIdGenerator,
    EventListener,
)
from plant_autonomy.detection.cascade import (
    RESPONSE_PLAYBOOKS,
    Cascade,
    CascadeState,
    ResponseCascade,
    ResponsePlaybook,
)
from plant_autonomy.detection.cooldown import (
    DEFAULT_COOLDOWN_SECONDS,
    CooldownKey,
    CooldownRegistry,
    build_cooldown_key,
)
from plant_autonomy.detection.engine import AutonomousEngine, create_engine
from plant_autonomy.detection.evaluator import (
    CONFIDENCE_SCORES,
    ThresholdEvaluator,
    create_evaluator,
    normalize_oee,
)
from plant_autonomy.detection.scheduler import MonitoringScheduler, SchedulerState

__all__ = [
    # Evaluator
    "CONFIDENCE_SCORES",
    "ThresholdEvaluator",
    "create_evaluator",
    "normalize_oee",
    # Cooldown
    "DEFAULT_COOLDOWN_SECONDS",
    "CooldownKey",
    "CooldownRegistry",
    "build_cooldown_key",
    # Bus
    "DEFAULT_HISTORY_CAPACITY",
    "EventBus",
    "EventIdGenerator",
    "EventListener",
    # Cascade
    "RESPONSE_PLAYBOOKS",
    "Cascade",
    "CascadeState",
    "ResponseCascade",
    "ResponsePlaybook",
    # Scheduler
    "MonitoringScheduler",
    "SchedulerState",
    # Engine
    "AutonomousEngine",
    "create_engine",
]
