from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import covered_days
from ..core.enums import DecisionAction, LeaveStatus, LeaveType, Presence, RiskCategory

APPROVED_STATUSES = (LeaveStatus.APPROVED, LeaveStatus.AUTO_APPROVED)
REVIEWABLE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.FLAGGED)


@dataclass(frozen=True)
class NewLeave:
    """Insert payload; the risk snapshot is written once here and never recalculated."""

    student_id: int
    leave_type: LeaveType
    from_datetime: datetime
    to_datetime: datetime
    reason: str
    status: LeaveStatus
    risk_score: Optional[int] = None
    risk_category: Optional[RiskCategory] = None
    decision_factors: dict = field(default_factory=dict)
    ai_decision: Optional[DecisionAction] = None
    ai_decision_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    gate_pass_id: Optional[str] = None


@dataclass(frozen=True)
class LeaveRequest:
    """Domain entity: a student's leave request and its gate/return outcome."""

    leave_id: int
    student_id: int
    leave_type: LeaveType
    from_datetime: datetime
    to_datetime: datetime
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    risk_score: Optional[int] = None
    risk_category: Optional[RiskCategory] = None
    decision_factors: dict = field(default_factory=dict)
    ai_decision: Optional[DecisionAction] = None
    ai_decision_reason: Optional[str] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    remarks: Optional[str] = None
    gate_pass_id: Optional[str] = None
    presence: Presence = Presence.IN
    returned_at: Optional[datetime] = None
    returned_on_time: Optional[bool] = None
    late_return_hours: float = 0.0
    created_at: Optional[datetime] = None

    @property
    def is_approved(self) -> bool:
        return self.status in APPROVED_STATUSES

    @property
    def duration_days(self) -> int:
        return covered_days(self.from_datetime, self.to_datetime)

    def as_dict(self) -> dict:
        return {
            "leave_id": self.leave_id,
            "student_id": self.student_id,
            "leave_type": self.leave_type.value,
            "from_datetime": self.from_datetime.isoformat(),
            "to_datetime": self.to_datetime.isoformat(),
            "reason": self.reason,
            "status": self.status.value,
            "risk_score": self.risk_score,
            "risk_category": self.risk_category.value if self.risk_category else None,
            "decision_factors": self.decision_factors,
            "ai_decision": self.ai_decision.value if self.ai_decision else None,
            "ai_decision_reason": self.ai_decision_reason,
            "decided_by": self.decided_by,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
            "remarks": self.remarks,
            "gate_pass_id": self.gate_pass_id,
            "presence": self.presence.value,
            "returned_at": self.returned_at.isoformat() if self.returned_at else None,
            "returned_on_time": self.returned_on_time,
            "late_return_hours": self.late_return_hours,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class LeaveRow:
    """Read-model: a leave joined with its student, for warden listings and reports."""

    leave: LeaveRequest
    student_name: str
    email: str
    hostel_block: Optional[str] = None
    room_no: Optional[str] = None
    course: Optional[str] = None
    year: Optional[int] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None
    decided_by_name: Optional[str] = None

    def as_dict(self) -> dict:
        data = self.leave.as_dict()
        data["student"] = {
            "user_id": self.leave.student_id,
            "name": self.student_name,
            "email": self.email,
            "hostel_block": self.hostel_block,
            "room_no": self.room_no,
            "course": self.course,
            "year": self.year,
            "phone": self.phone,
        }
        data["decided_by_name"] = self.decided_by_name
        return data
