"""
Response cascade for detected anomalies.

This module provides the ResponseCascade class which turns one anomaly
verdict into a fixed, time-delayed sequence of events:

    1. Detect (t+0): anomaly_detected
    2. Agent trigger (t+agent): agent_triggered, high-severity paths only
    3. Work order (t+work_order): maintenance_scheduled or action_planned
    4. Escalation (t+escalation): line_stopped, temperature-high only and
       only when the reading exceeds max + escalation_margin

Each cascade is a small state machine
(DETECTED -> AGENT_TRIGGERED -> WORK_ORDERED -> ESCALATED | DONE, or
CANCELLED / FAILED) keyed by its cascade id. Stages are scheduled on the
injected clock, so any number of cascades run interleaved without blocking
one another.

Example:
    >>> cascade = ResponseCascade(bus, clock, work_orders, CascadeTimings())
    >>> run = cascade.start(verdict, "filler-2", "Filler-2", "Site > Line 1 > Filler-2")
    >>> run.state
    <CascadeState.DETECTED: 'detected'>
"""

import inspect
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Awaitable, Callable, Deque, Dict, List, Optional, Tuple
from uuid import uuid4

import structlog

from plant_autonomy.config.models import CascadeTimings
from plant_autonomy.detection.bus import EventBus, EventIdGenerator
from plant_autonomy.interfaces.clock import Clock, TimerHandle
from plant_autonomy.interfaces.work_order_client import WorkOrderClient
from plant_autonomy.models.equipment import MonitoredMetric
from plant_autonomy.models.events import (
    AnomalyDirection,
    AnomalyEvent,
    AnomalyVerdict,
    EventDetails,
    EventSeverity,
    EventType,
)
from plant_autonomy.models.work_orders import (
    RequestSeverity,
    WorkOrder,
    WorkOrderRequest,
)

logger = structlog.get_logger(__name__)

DEFAULT_ESCALATION_MARGIN = 5.0
FINISHED_CASCADE_HISTORY = 100


class CascadeState(str, Enum):
    """Lifecycle of a single cascade."""

    DETECTED = "detected"
    AGENT_TRIGGERED = "agent_triggered"
    WORK_ORDERED = "work_ordered"
    ESCALATED = "escalated"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            CascadeState.ESCALATED,
            CascadeState.DONE,
            CascadeState.CANCELLED,
            CascadeState.FAILED,
        )


# =============================================================================
# PLAYBOOKS
# =============================================================================


@dataclass(frozen=True)
class AgentStagePlan:
    """Agent-trigger stage of a playbook."""

    role: str
    severity: EventSeverity
    message: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class WorkOrderStagePlan:
    """Work-order stage of a playbook."""

    event_type: EventType
    severity: EventSeverity
    request_severity: RequestSeverity
    message: str
    action: str


@dataclass(frozen=True)
class ResponsePlaybook:
    """
    What a cascade does for one (metric, direction) pair.

    Attributes:
        detect_severity: Severity of the anomaly_detected event.
        detect_message: Template formatted with value/threshold/unit.
        agent: Optional agent-trigger stage.
        work_order: Optional work-order stage.
        escalates: Whether the escalation stage is scheduled.
    """

    detect_severity: EventSeverity
    detect_message: str
    agent: Optional[AgentStagePlan] = None
    work_order: Optional[WorkOrderStagePlan] = None
    escalates: bool = False


RESPONSE_PLAYBOOKS: Dict[Tuple[MonitoredMetric, AnomalyDirection], ResponsePlaybook] = {
    (MonitoredMetric.TEMPERATURE, AnomalyDirection.HIGH): ResponsePlaybook(
        detect_severity=EventSeverity.CRITICAL,
        detect_message=(
            "Critical temperature anomaly detected: {value}{unit} exceeds safe limit "
            "of {threshold}{unit}. Immediate cooling system attention required."
        ),
        agent=AgentStagePlan(
            role="Maintenance Planner",
            severity=EventSeverity.WARNING,
            message=(
                "Predictive Maintenance Agent activated - Analyzing thermal patterns "
                "and assessing equipment health to prevent potential failure"
            ),
            confidence=0.92,
        ),
        work_order=WorkOrderStagePlan(
            event_type=EventType.MAINTENANCE_SCHEDULED,
            severity=EventSeverity.WARNING,
            request_severity=RequestSeverity.CRITICAL,
            message=(
                "Work Order {work_order_id} automatically created - Cooling system "
                "inspection required. Priority: {priority_upper}. "
                "Estimated duration: {duration} minutes."
            ),
            action="Work order created with {parts} suggested parts.",
        ),
        escalates=True,
    ),
    (MonitoredMetric.TEMPERATURE, AnomalyDirection.LOW): ResponsePlaybook(
        detect_severity=EventSeverity.WARNING,
        detect_message=(
            "Abnormally low temperature detected: {value}{unit} below minimum "
            "threshold of {threshold}{unit}. May indicate heating system "
            "malfunction or calibration issue."
        ),
    ),
    (MonitoredMetric.SPEED, AnomalyDirection.HIGH): ResponsePlaybook(
        detect_severity=EventSeverity.WARNING,
        detect_message=(
            "Speed anomaly detected: {value} {unit} exceeds operational limit of "
            "{threshold} {unit}. Risk of mechanical stress and accelerated wear "
            "on components."
        ),
        agent=AgentStagePlan(
            role="OEE Analyst",
            severity=EventSeverity.INFO,
            message=(
                "OEE Analyst agent deployed - Calculating performance impact, "
                "analyzing cycle times, and assessing quality implications of "
                "elevated speed"
            ),
        ),
        work_order=WorkOrderStagePlan(
            event_type=EventType.ACTION_PLANNED,
            severity=EventSeverity.INFO,
            request_severity=RequestSeverity.MEDIUM,
            message=(
                "Root cause identified: Bearing friction increase. Early stage wear "
                "pattern detected. Work Order {work_order_id} created for bearing "
                "inspection."
            ),
            action="Predictive maintenance scheduled. Assigned to: {assigned_to}.",
        ),
    ),
    (MonitoredMetric.SPEED, AnomalyDirection.LOW): ResponsePlaybook(
        detect_severity=EventSeverity.INFO,
        detect_message=(
            "Performance degradation detected: {value} {unit} below optimal speed "
            "of {threshold} {unit}. Investigating potential bottlenecks or "
            "mechanical resistance."
        ),
    ),
    (MonitoredMetric.OEE, AnomalyDirection.LOW): ResponsePlaybook(
        detect_severity=EventSeverity.WARNING,
        detect_message=(
            "Overall Equipment Effectiveness below target: {value_pct}% vs target "
            "{threshold_pct}%. Indicates reduced availability, performance, or "
            "quality."
        ),
        agent=AgentStagePlan(
            role="Downtime Detective",
            severity=EventSeverity.INFO,
            message=(
                "Downtime Detective agent initiated - Cross-referencing event logs, "
                "analyzing stop patterns, and correlating with quality data to "
                "identify root cause"
            ),
        ),
        work_order=WorkOrderStagePlan(
            event_type=EventType.ACTION_PLANNED,
            severity=EventSeverity.INFO,
            request_severity=RequestSeverity.MEDIUM,
            message=(
                "Root cause analysis complete: Frequent micro-stops detected. Primary "
                "cause: Belt tension drift causing feed inconsistency. Work Order "
                "{work_order_id} created for corrective maintenance."
            ),
            action="Preventive maintenance scheduled.",
        ),
    ),
}

LINE_STOP_MESSAGE = (
    "EMERGENCY SHUTDOWN: {equipment} automatically stopped due to critical "
    "temperature threshold breach. Safety protocols activated, supervisor notified."
)
LINE_STOP_ACTION = (
    "Line shutdown initiated. All operators alerted. Quality hold placed on last "
    "batch. Root cause investigation started."
)
WORK_ORDER_FAILED_MESSAGE = (
    "Work order creation failed for {equipment}: {error}. Manual follow-up required."
)


def format_number(value: float) -> str:
    """Render a reading without trailing zeros (92.0 -> '92')."""
    return f"{value:g}"


# =============================================================================
# CASCADE
# =============================================================================

Stage = Callable[["Cascade"], Awaitable[None]]


@dataclass
class Cascade:
    """
    One running response cascade.

    Attributes:
        cascade_id: Unique id shared by every event of the cascade.
        verdict: The anomaly that started the cascade.
        equipment_id: Source node id.
        equipment_name: Source node name.
        location: Hierarchical path of the source node.
        playbook: Stages to run.
        state: Current state.
        offset: Offset (seconds after detection) of the last stage run.
        work_order: Work order returned by the collaborator, if any.
        events: Ids of events emitted so far.
    """

    cascade_id: str
    verdict: AnomalyVerdict
    equipment_id: str
    equipment_name: str
    location: str
    playbook: ResponsePlaybook
    state: CascadeState = CascadeState.DETECTED
    offset: float = 0.0
    work_order: Optional[WorkOrder] = None
    events: List[str] = field(default_factory=list)
    pending: Deque[Tuple[float, Stage]] = field(default_factory=deque)
    handle: Optional[TimerHandle] = None


class ResponseCascade:
    """
    Orchestrates response cascades.

    Attributes:
        bus: Event bus every stage publishes to.
        clock: Clock used for timestamps and stage scheduling.
        work_orders: Work-order collaborator.
        timings: Stage offsets from detection.
        escalation_margin: Degrees above max that stop the line.
        _active: Running cascades keyed by id.
        _finished: Recently finished cascades, oldest first.
    """

    def __init__(
        self,
        bus: EventBus,
        clock: Clock,
        work_orders: WorkOrderClient,
        timings: Optional[CascadeTimings] = None,
        escalation_margin: float = DEFAULT_ESCALATION_MARGIN,
        id_generator: Optional[EventIdGenerator] = None,
    ) -> None:
        self.bus = bus
        self.clock = clock
        self.work_orders = work_orders
        self.timings = timings or CascadeTimings()
        self.escalation_margin = escalation_margin
        self.ids = id_generator or EventIdGenerator(clock)

        self._active: Dict[str, Cascade] = {}
        self._finished: Deque[Cascade] = deque(maxlen=FINISHED_CASCADE_HISTORY)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def start(
        self,
        verdict: AnomalyVerdict,
        equipment_id: str,
        equipment_name: str,
        location: str,
    ) -> Optional[Cascade]:
        """
        Start a cascade for a qualifying verdict.

        Emits the detection event immediately and schedules the remaining
        stages of the verdict's playbook.

        Args:
            verdict: The anomaly verdict.
            equipment_id: Source node id.
            equipment_name: Source node name.
            location: Hierarchical location of the node.

        Returns:
            Optional[Cascade]: The cascade, or None if no playbook exists for
            the verdict's (metric, direction).
        """
        playbook = RESPONSE_PLAYBOOKS.get((verdict.metric, verdict.direction))
        if playbook is None:
            logger.warning(
                "no_playbook_for_verdict",
                metric=verdict.metric.value,
                direction=verdict.direction.value,
                equipment_id=equipment_id,
            )
            return None

        cascade = Cascade(
            cascade_id=str(uuid4()),
            verdict=verdict,
            equipment_id=equipment_id,
            equipment_name=equipment_name,
            location=location,
            playbook=playbook,
        )
        if playbook.agent is not None:
            cascade.pending.append(
                (self.timings.agent_seconds, partial(self._agent_stage, playbook.agent))
            )
        if playbook.work_order is not None:
            cascade.pending.append(
                (
                    self.timings.work_order_seconds,
                    partial(self._work_order_stage, playbook.work_order),
                )
            )
        if playbook.escalates:
            cascade.pending.append((self.timings.escalation_seconds, self._escalation_stage))

        self._active[cascade.cascade_id] = cascade

        logger.info(
            "cascade_started",
            cascade_id=cascade.cascade_id,
            equipment_id=equipment_id,
            metric=verdict.metric.value,
            direction=verdict.direction.value,
            value=verdict.value,
            threshold=verdict.threshold,
            stages=len(cascade.pending) + 1,
        )

        self._emit_detection(cascade)
        self._schedule_next(cascade)
        return cascade

    def cancel_all(self) -> int:
        """
        Cancel every running cascade.

        Pending stages are unscheduled and will not publish.

        Returns:
            int: Number of cascades cancelled.
        """
        cancelled = list(self._active.values())
        for cascade in cancelled:
            self._cancel(cascade)

        if cancelled:
            logger.info("cascades_cancelled", count=len(cancelled))
        return len(cancelled)

    def get(self, cascade_id: str) -> Optional[Cascade]:
        """Return a running or recently finished cascade by id."""
        cascade = self._active.get(cascade_id)
        if cascade is not None:
            return cascade
        for finished in self._finished:
            if finished.cascade_id == cascade_id:
                return finished
        return None

    def active_ids(self) -> List[str]:
        """Ids of cascades that have not reached a terminal state."""
        return list(self._active.keys())

    @property
    def active_count(self) -> int:
        return len(self._active)

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def _schedule_next(self, cascade: Cascade) -> None:
        if not cascade.pending:
            final = (
                CascadeState.ESCALATED
                if cascade.state == CascadeState.ESCALATED
                else CascadeState.DONE
            )
            self._finish(cascade, final)
            return

        offset, _ = cascade.pending[0]
        cascade.handle = self.clock.call_later(
            offset - cascade.offset,
            partial(self._run_stage, cascade.cascade_id),
        )

    async def _run_stage(self, cascade_id: str) -> None:
        cascade = self._active.get(cascade_id)
        if cascade is None or cascade.state.is_terminal:
            return

        offset, stage = cascade.pending.popleft()
        cascade.offset = offset

        try:
            await stage(cascade)
        except Exception as e:
            logger.error(
                "cascade_stage_failed",
                cascade_id=cascade.cascade_id,
                equipment_id=cascade.equipment_id,
                stage=getattr(getattr(stage, "func", stage), "__name__", repr(stage)),
                error=str(e),
                error_type=type(e).__name__,
            )
            self._finish(cascade, CascadeState.FAILED)
            return

        if cascade.state.is_terminal and cascade.state != CascadeState.ESCALATED:
            return
        cascade.handle = None
        self._schedule_next(cascade)

    def _cancel(self, cascade: Cascade) -> None:
        if cascade.handle is not None:
            cascade.handle.cancel()
            cascade.handle = None
        cascade.pending.clear()
        self._finish(cascade, CascadeState.CANCELLED)

    def _finish(self, cascade: Cascade, state: CascadeState) -> None:
        cascade.state = state
        cascade.handle = None
        if self._active.pop(cascade.cascade_id, None) is not None:
            self._finished.append(cascade)
            logger.info(
                "cascade_finished",
                cascade_id=cascade.cascade_id,
                equipment_id=cascade.equipment_id,
                state=state.value,
                events=len(cascade.events),
            )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _emit_detection(self, cascade: Cascade) -> None:
        verdict = cascade.verdict
        self._emit(
            cascade,
            EventType.ANOMALY_DETECTED,
            cascade.playbook.detect_severity,
            cascade.playbook.detect_message.format(**self._reading_fields(verdict)),
            EventDetails(
                metric=verdict.metric.label,
                value=verdict.value,
                threshold=verdict.threshold,
                confidence=verdict.confidence,
            ),
        )

    async def _agent_stage(self, plan: AgentStagePlan, cascade: Cascade) -> None:
        cascade.state = CascadeState.AGENT_TRIGGERED
        self._emit(
            cascade,
            EventType.AGENT_TRIGGERED,
            plan.severity,
            plan.message,
            EventDetails(agent_triggered=plan.role, confidence=plan.confidence),
        )

    async def _work_order_stage(self, plan: WorkOrderStagePlan, cascade: Cascade) -> None:
        verdict = cascade.verdict
        request = WorkOrderRequest(
            machine_id=cascade.equipment_id or "unknown",
            machine_name=cascade.equipment_name,
            anomaly_type=verdict.metric.value,
            metric=verdict.metric.label,
            value=verdict.value,
            threshold=verdict.threshold,
            confidence=verdict.confidence,
            severity=plan.request_severity,
        )

        try:
            result = self.work_orders.create_autonomous_work_order(request)
            if inspect.isawaitable(result):
                result = await result
            work_order: WorkOrder = result
        except Exception as e:
            if cascade.state.is_terminal:
                return
            logger.error(
                "work_order_creation_failed",
                cascade_id=cascade.cascade_id,
                equipment_id=cascade.equipment_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._emit(
                cascade,
                EventType.ALERT,
                EventSeverity.WARNING,
                WORK_ORDER_FAILED_MESSAGE.format(
                    equipment=cascade.equipment_name,
                    error=str(e) or type(e).__name__,
                ),
                EventDetails(
                    metric=verdict.metric.label,
                    value=verdict.value,
                    threshold=verdict.threshold,
                    action_taken="Automatic work order not created; cascade continued.",
                ),
            )
            return

        # Cancelled while the collaborator was being awaited.
        if cascade.state.is_terminal:
            return

        cascade.work_order = work_order
        cascade.state = CascadeState.WORK_ORDERED
        self._emit(
            cascade,
            plan.event_type,
            plan.severity,
            plan.message.format(**self._work_order_fields(work_order)),
            EventDetails(
                work_order_id=work_order.id,
                action_taken=self._describe_work_order(plan, work_order),
            ),
        )

    async def _escalation_stage(self, cascade: Cascade) -> None:
        verdict = cascade.verdict
        limit = verdict.threshold + self.escalation_margin
        if not verdict.value > limit:
            logger.debug(
                "escalation_not_required",
                cascade_id=cascade.cascade_id,
                value=verdict.value,
                limit=limit,
            )
            return

        cascade.state = CascadeState.ESCALATED
        self._emit(
            cascade,
            EventType.LINE_STOPPED,
            EventSeverity.CRITICAL,
            LINE_STOP_MESSAGE.format(equipment=cascade.equipment_name),
            EventDetails(
                metric=verdict.metric.label,
                value=verdict.value,
                threshold=limit,
                action_taken=LINE_STOP_ACTION,
            ),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _emit(
        self,
        cascade: Cascade,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[EventDetails] = None,
    ) -> AnomalyEvent:
        event = AnomalyEvent(
            id=self.ids.next_id(),
            cascade_id=cascade.cascade_id,
            timestamp=self.clock.now(),
            type=event_type,
            severity=severity,
            equipment=cascade.equipment_name,
            location=cascade.location,
            message=message,
            details=details,
        )
        cascade.events.append(event.id)
        self.bus.publish(event)
        return event

    @staticmethod
    def _reading_fields(verdict: AnomalyVerdict) -> Dict[str, str]:
        return {
            "value": format_number(verdict.value),
            "threshold": format_number(verdict.threshold),
            "unit": verdict.unit,
            "value_pct": f"{verdict.value * 100:.1f}",
            "threshold_pct": f"{verdict.threshold * 100:.0f}",
        }

    @staticmethod
    def _work_order_fields(work_order: WorkOrder) -> Dict[str, str]:
        return {
            "work_order_id": work_order.id,
            "priority": work_order.priority.value,
            "priority_upper": work_order.priority.value.upper(),
            "duration": (
                str(work_order.estimated_duration)
                if work_order.estimated_duration is not None
                else "unknown"
            ),
            "parts": str(len(work_order.parts)),
            "assigned_to": work_order.assigned_to or "unassigned",
        }

    def _describe_work_order(self, plan: WorkOrderStagePlan, work_order: WorkOrder) -> str:
        fields = self._work_order_fields(work_order)
        due = work_order.due_date.isoformat() if work_order.due_date else "not set"
        return (
            f"{plan.action.format(**fields)} Priority: {fields['priority']}. "
            f"Estimated duration: {fields['duration']} minutes. Due: {due}."
        )
