from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.service import AttendanceService
from ..audit.repository import AuditRepository
from ..common.datetime_utils import now_local
from ..common.notifications import notify_parent
from ..common.validators import require_leave_window, require_non_empty
from ..core.enums import DecisionAction, LeaveStatus, LeaveType, Presence, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.permissions import Capability, ensure_capability, has_capability
from ..scoring.service import LeaveQuery, Prediction, PredictionService
from ..stats.service import StatsService
from ..users.model import User
from ..users.repository import UserRepository
from .gate_pass import new_gate_pass_id, render_qr_png
from .model import APPROVED_STATUSES, REVIEWABLE_STATUSES, LeaveRequest, LeaveRow, NewLeave
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

DECISIONS = {"APPROVE": LeaveStatus.APPROVED, "REJECT": LeaveStatus.REJECTED}


def status_for(action: DecisionAction) -> LeaveStatus:
    """Initial status of a new leave from the engine's action; REJECT still goes to a human."""

    if action == DecisionAction.AUTO_APPROVE:
        return LeaveStatus.AUTO_APPROVED
    if action in (DecisionAction.FLAG, DecisionAction.REJECT):
        return LeaveStatus.FLAGGED
    return LeaveStatus.PENDING


def decision_snapshot(prediction: Prediction) -> dict:
    """Frozen copy of the factors behind the initial decision."""

    return {
        "component_scores": prediction.assessment.components_dict(),
        "calendar_modifier": prediction.assessment.calendar_modifier,
        "confidence": prediction.confidence.rounded,
        "calendar_warnings": list(prediction.features.calendar.warnings),
        "attention_points": list(prediction.decision.attention_points),
        "pattern_risk_level": prediction.patterns.risk_level.value,
        "model_version": prediction.model_version,
    }


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserRepository,
        *,
        attendance_service: AttendanceService,
        prediction_service: PredictionService,
        stats_service: StatsService,
        audit: AuditRepository,
    ):
        self._leaves = leaves
        self._users = users
        self._attendance = attendance_service
        self._predictions = prediction_service
        self._stats = stats_service
        self._audit = audit

    def _get(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave not found")
        return leave

    def _student(self, student_id: int) -> User:
        user = self._users.get_by_id(int(student_id))
        if not user or user.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return user

    def _issue_gate_pass(self, leave: LeaveRequest, *, now: datetime) -> str:
        gate_pass_id = new_gate_pass_id(now)
        if not self._leaves.set_gate_pass(leave.leave_id, gate_pass_id):
            raise ConflictError("Gate pass already issued for this leave")
        return gate_pass_id

    def _mark_on_leave(self, leave: LeaveRequest, *, marked_by: Optional[int]) -> int:
        return self._attendance.mark_on_leave_range(
            student_id=leave.student_id,
            start=leave.from_datetime,
            end=leave.to_datetime,
            marked_by=marked_by,
        )

    def _after_approval(self, leave: LeaveRequest, *, marked_by: Optional[int], now: datetime) -> str:
        gate_pass_id = self._issue_gate_pass(leave, now=now)
        days = self._mark_on_leave(leave, marked_by=marked_by)
        logger.info("Leave %s approved: gate pass %s, %s days marked ON_LEAVE", leave.leave_id, gate_pass_id, days)
        return gate_pass_id

    # --- student ------------------------------------------------------

    def apply(
        self,
        *,
        current_role: Role,
        student_id: int,
        leave_type: LeaveType,
        start: datetime,
        end: datetime,
        reason: str,
        now: Optional[datetime] = None,
    ) -> tuple[LeaveRequest, Prediction]:
        ensure_capability(current_role, Capability.APPLY_LEAVE)
        now = now or now_local()
        require_leave_window(start, end, now=now)
        reason = require_non_empty(reason, "Reason")
        student = self._student(student_id)

        prediction = self._predictions.predict(
            LeaveQuery(student_id=student.user_id, leave_type=leave_type, start=start, end=end, reason=reason),
            scope=student.scope,
            now=now,
        )
        status = status_for(prediction.decision.action)
        # an auto-approved leave is stored together with its gate pass
        gate_pass_id = new_gate_pass_id(now) if status == LeaveStatus.AUTO_APPROVED else None

        leave_id = self._leaves.create(
            NewLeave(
                student_id=student.user_id,
                leave_type=leave_type,
                from_datetime=start,
                to_datetime=end,
                reason=reason,
                status=status,
                risk_score=prediction.risk_score,
                risk_category=prediction.risk_category,
                decision_factors=decision_snapshot(prediction),
                ai_decision=prediction.decision.action,
                ai_decision_reason=prediction.decision.reason,
                created_at=now,
                gate_pass_id=gate_pass_id,
            )
        )
        leave = self._get(leave_id)
        logger.info(
            "Leave %s applied by student %s: risk %s, %s",
            leave_id,
            student.user_id,
            prediction.risk_score,
            status.value,
        )

        if status == LeaveStatus.AUTO_APPROVED:
            try:
                days = self._mark_on_leave(leave, marked_by=None)
            except Exception:
                logger.exception("Leave %s auto-approved but ON_LEAVE marking failed", leave_id)
            else:
                logger.info("Leave %s auto-approved: gate pass %s, %s days marked ON_LEAVE", leave_id, gate_pass_id, days)
            notify_parent(
                "AUTO_APPROVED",
                student.name,
                f"Leave from {start:%Y-%m-%d %H:%M} to {end:%Y-%m-%d %H:%M}",
            )

        self._stats.refresh(student.user_id, now=now)
        return leave, prediction

    def mine(self, student_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_for_student(int(student_id))

    def get(self, *, current_role: Role, user_id: int, leave_id: int) -> LeaveRequest:
        """Students may only see their own leaves."""

        leave = self._get(leave_id)
        if current_role == Role.STUDENT:
            if leave.student_id != int(user_id):
                raise AuthorizationError("Not authorized to view this leave")
        elif not (has_capability(current_role, Capability.REVIEW_LEAVES) or has_capability(current_role, Capability.LOG_GATE)):
            raise AuthorizationError("Not authorized to view this leave")
        return leave

    def gate_pass_png(self, *, current_role: Role, user_id: int, leave_id: int) -> tuple[str, bytes]:
        leave = self.get(current_role=current_role, user_id=user_id, leave_id=leave_id)
        if not leave.gate_pass_id or not leave.is_approved:
            raise ConflictError("No gate pass issued for this leave")
        return leave.gate_pass_id, render_qr_png(leave.gate_pass_id)

    # --- warden -------------------------------------------------------

    def pending(self, *, current_role: Role) -> Sequence[LeaveRow]:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        return self._leaves.list_rows(statuses=REVIEWABLE_STATUSES)

    def list_all(
        self,
        *,
        current_role: Role,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
    ) -> Sequence[LeaveRow]:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        return self._leaves.list_rows(statuses=[status] if status else None, leave_type=leave_type)

    def emergency(self, *, current_role: Role) -> Sequence[LeaveRow]:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        return self._leaves.list_rows(statuses=REVIEWABLE_STATUSES, leave_type=LeaveType.EMERGENCY)

    def overstayed(self, *, current_role: Role, now: Optional[datetime] = None) -> Sequence[LeaveRow]:
        """Approved leaves whose student is still out after the leave ended."""

        ensure_capability(current_role, Capability.VIEW_OVERSTAY)
        return self._leaves.list_rows(statuses=APPROVED_STATUSES, presence=Presence.OUT, to_before=now or now_local())

    def decide(
        self,
        *,
        current_role: Role,
        decided_by: int,
        leave_id: int,
        action: str,
        remarks: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        ensure_capability(current_role, Capability.DECIDE_LEAVES)
        new_status = DECISIONS.get((action or "").upper())
        if new_status is None:
            raise ValidationError("Action must be APPROVE or REJECT")

        now = now or now_local()
        leave = self._get(leave_id)
        if leave.status not in REVIEWABLE_STATUSES:
            raise ConflictError("Leave is already processed")

        if not self._leaves.record_decision(
            leave.leave_id,
            status=new_status,
            decided_by=int(decided_by),
            decided_at=now,
            remarks=remarks,
            expected=REVIEWABLE_STATUSES,
        ):
            raise ConflictError("Leave is already processed")

        gate_pass_id = None
        if new_status == LeaveStatus.APPROVED:
            gate_pass_id = self._after_approval(leave, marked_by=int(decided_by), now=now)

        self._audit.record(
            action=f"LEAVE_{new_status.value}",
            performed_by=int(decided_by),
            target_type="Leave",
            target_id=leave.leave_id,
            details={"remarks": remarks, "gate_pass_id": gate_pass_id},
            timestamp=now,
        )

        student = self._users.get_by_id(leave.student_id)
        notify_parent(
            new_status.value,
            student.name if student else str(leave.student_id),
            f"Leave from {leave.from_datetime:%Y-%m-%d %H:%M} to {leave.to_datetime:%Y-%m-%d %H:%M}",
        )

        self._stats.refresh(leave.student_id, now=now)
        return self._get(leave.leave_id)

    def override(
        self,
        *,
        current_role: Role,
        decided_by: int,
        leave_id: int,
        remarks: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        """Revoke an automatic approval before the student has left."""

        ensure_capability(current_role, Capability.DECIDE_LEAVES)
        now = now or now_local()
        leave = self._get(leave_id)
        if leave.status != LeaveStatus.AUTO_APPROVED:
            raise ConflictError("Only auto-approved leaves can be overridden")
        if leave.presence == Presence.OUT:
            raise ConflictError("Student has already exited on this leave")

        if not self._leaves.record_decision(
            leave.leave_id,
            status=LeaveStatus.REJECTED,
            decided_by=int(decided_by),
            decided_at=now,
            remarks=remarks,
            expected=[LeaveStatus.AUTO_APPROVED],
        ):
            raise ConflictError("Leave is already processed")

        self._audit.record(
            action="LEAVE_OVERRIDE",
            performed_by=int(decided_by),
            target_type="Leave",
            target_id=leave.leave_id,
            details={"remarks": remarks, "previous_status": leave.status.value},
            timestamp=now,
        )
        student = self._users.get_by_id(leave.student_id)
        notify_parent(
            "REJECTED",
            student.name if student else str(leave.student_id),
            "Auto-approved leave was revoked by the warden",
        )
        logger.info("Leave %s auto-approval overridden by %s", leave.leave_id, decided_by)

        self._stats.refresh(leave.student_id, now=now)
        return self._get(leave.leave_id)
