"""Rebuild a student's statistics from raw attendance and leave history.

`compute` is a pure function of its inputs; the same records and the same
`now` always give the same snapshot.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import days_between, month_start, now_local, round_half_up, semester_start
from ..core.enums import AttendanceStatus, LeaveStatus
from ..leaves.model import LeaveRequest
from ..leaves.repository import LeaveRepository
from ..scoring.components import (
    attendance_risk,
    category_for,
    frequency_risk,
    history_risk,
    reliability_risk,
    violations_risk,
)
from ..scoring.config import DEFAULT_SCORING_CONFIG, ProfileWeights
from .model import StudentStatistics
from .repository import StatsRepository

logger = logging.getLogger(__name__)


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 100
    return round_half_up(part / whole * 100)


def profile_risk(stats: StudentStatistics, weights: ProfileWeights) -> tuple[int, dict]:
    """Stored profile score, built from the same component formulas as a leave request.

    History here is the rejection rate (rejected / applied * 100), not a count of
    late returns; late returns already feed the reliability component. Violations
    are x20 and monthly frequency x25, matching the request scorer, so
    `component_scores` line up with a prediction's components.
    """

    components = {
        "attendance": attendance_risk(stats.attendance_percentage),
        "reliability": reliability_risk(stats.return_reliability_score),
        "violations": violations_risk(stats.curfew_violations),
        "frequency": frequency_risk(stats.leaves_this_month),
        "history": history_risk(stats.total_leaves_rejected, stats.total_leaves_applied),
    }
    total = sum(components[name] * getattr(weights, name) for name in components)
    score = int(max(0, min(100, round_half_up(total))))
    return score, {name: round_half_up(value) for name, value in components.items()}


def compute(
    student_id: int,
    attendance: Sequence[AttendanceRecord],
    leaves: Sequence[LeaveRequest],
    *,
    now: datetime,
    profile_weights: ProfileWeights = DEFAULT_SCORING_CONFIG.profile_weights,
) -> StudentStatistics:
    statuses = Counter(a.status for a in attendance)
    total_days = len(attendance)
    present = statuses[AttendanceStatus.PRESENT]

    approved = [l for l in leaves if l.is_approved]
    completed = [l for l in leaves if l.returned_on_time is not None]
    on_time = sum(1 for l in completed if l.returned_on_time)
    late = len(completed) - on_time
    leave_days = sum(l.duration_days for l in approved)

    by_created = sorted((l for l in leaves if l.created_at is not None), key=lambda l: l.created_at)
    avg_gap = 0
    if len(by_created) >= 2:
        gaps = [days_between(a.created_at, b.created_at) for a, b in zip(by_created, by_created[1:])]
        avg_gap = round_half_up(sum(gaps) / len(gaps))

    types = Counter(l.leave_type for l in leaves)
    frequent_type = types.most_common(1)[0][0] if types else None

    this_month = month_start(now)
    this_semester = semester_start(now)

    stats = StudentStatistics(
        student_id=int(student_id),
        total_days=total_days,
        present_days=present,
        absent_days=statuses[AttendanceStatus.ABSENT],
        late_days=statuses[AttendanceStatus.LATE],
        attendance_percentage=_percent(present, total_days),
        total_leaves_applied=len(leaves),
        total_leaves_approved=len(approved),
        total_leaves_rejected=sum(1 for l in leaves if l.status == LeaveStatus.REJECTED),
        total_leaves_auto_approved=sum(1 for l in leaves if l.status == LeaveStatus.AUTO_APPROVED),
        total_leaves_flagged=sum(1 for l in leaves if l.status == LeaveStatus.FLAGGED),
        total_leave_days_taken=leave_days,
        on_time_returns=on_time,
        late_returns=late,
        total_late_return_hours=round(sum(l.late_return_hours or 0 for l in leaves), 2),
        return_reliability_score=_percent(on_time, len(completed)),
        curfew_violations=sum(1 for a in attendance if a.curfew_violation),
        total_curfew_violation_minutes=sum(a.violation_minutes or 0 for a in attendance),
        avg_leave_duration=round_half_up(leave_days / len(approved) * 10) / 10 if approved else 0.0,
        avg_leave_gap_days=avg_gap,
        frequent_leave_type=frequent_type,
        leaves_this_month=sum(1 for l in by_created if l.created_at >= this_month),
        leaves_this_semester=sum(1 for l in by_created if l.created_at >= this_semester),
        last_leave_date=by_created[-1].created_at if by_created else None,
        last_updated=now,
    )

    score, components = profile_risk(stats, profile_weights)
    return replace(stats, overall_risk_score=score, risk_category=category_for(score), component_scores=components)


class StatsAggregator:
    def __init__(
        self,
        attendance: AttendanceRepository,
        leaves: LeaveRepository,
        stats: StatsRepository,
        *,
        profile_weights: ProfileWeights = DEFAULT_SCORING_CONFIG.profile_weights,
    ):
        self._attendance = attendance
        self._leaves = leaves
        self._stats = stats
        self._weights = profile_weights

    def compute(self, student_id: int, *, now: Optional[datetime] = None) -> StudentStatistics:
        return compute(
            student_id,
            self._attendance.list_for_student(int(student_id)),
            self._leaves.list_for_student(int(student_id)),
            now=now or now_local(),
            profile_weights=self._weights,
        )

    def refresh(self, student_id: int, *, now: Optional[datetime] = None) -> StudentStatistics:
        stats = self.compute(student_id, now=now)
        self._stats.upsert(stats)
        logger.debug("Stats refreshed for student %s: risk %s", student_id, stats.overall_risk_score)
        return stats
