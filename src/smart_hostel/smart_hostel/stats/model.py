from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import LeaveType, RiskCategory


@dataclass(frozen=True)
class StudentStatistics:
    """Derived per-student aggregate, rebuilt wholesale from attendance and leave history.

    Defaults are the benefit-of-the-doubt snapshot of a student with no history.
    """

    student_id: int

    # attendance
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    attendance_percentage: int = 100

    # leaves
    total_leaves_applied: int = 0
    total_leaves_approved: int = 0
    total_leaves_rejected: int = 0
    total_leaves_auto_approved: int = 0
    total_leaves_flagged: int = 0
    total_leave_days_taken: int = 0

    # returns
    on_time_returns: int = 0
    late_returns: int = 0
    total_late_return_hours: float = 0.0
    return_reliability_score: int = 100

    # violations
    curfew_violations: int = 0
    total_curfew_violation_minutes: int = 0

    # patterns
    avg_leave_duration: float = 0.0
    avg_leave_gap_days: int = 0
    frequent_leave_type: Optional[LeaveType] = None
    leaves_this_month: int = 0
    leaves_this_semester: int = 0
    last_leave_date: Optional[datetime] = None

    # profile risk
    overall_risk_score: int = 0
    risk_category: RiskCategory = RiskCategory.LOW
    component_scores: dict = field(default_factory=dict)

    last_updated: Optional[datetime] = None

    @property
    def completed_returns(self) -> int:
        return self.on_time_returns + self.late_returns

    def as_dict(self) -> dict:
        data = asdict(self)
        data["frequent_leave_type"] = self.frequent_leave_type.value if self.frequent_leave_type else None
        data["risk_category"] = self.risk_category.value
        data["last_leave_date"] = self.last_leave_date.isoformat() if self.last_leave_date else None
        data["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return data
