"""Feature bundle consumed by the scorer, confidence estimator and decision engine."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..academic_calendar.analyzer import CalendarAnalysis
from ..common.datetime_utils import covered_days, days_between, days_until
from ..core.constants import BACK_TO_BACK_GAP_DAYS
from ..core.enums import CalendarRecommendation, LeaveStatus, LeaveType, RiskCategory
from ..leaves.model import LeaveRequest
from ..stats.model import StudentStatistics
from .components import is_weekend_start

RECENT_WINDOW_DAYS = 30
FREQUENCY_ANOMALY_MIN = 3
HISTORY_DAYS_FOR_CONFIDENCE = 30


@dataclass(frozen=True)
class StudentFeatures:
    attendance_percentage: float = 100
    return_reliability_score: float = 100
    curfew_violations: int = 0
    late_returns: int = 0
    total_leaves_applied: int = 0
    total_leaves_approved: int = 0
    total_leaves_rejected: int = 0
    leaves_this_month: int = 0
    avg_leave_duration: float = 0.0
    overall_risk_score: int = 0
    risk_category: RiskCategory = RiskCategory.LOW

    @classmethod
    def from_stats(cls, stats: StudentStatistics) -> "StudentFeatures":
        return cls(
            attendance_percentage=stats.attendance_percentage,
            return_reliability_score=stats.return_reliability_score,
            curfew_violations=stats.curfew_violations,
            late_returns=stats.late_returns,
            total_leaves_applied=stats.total_leaves_applied,
            total_leaves_approved=stats.total_leaves_approved,
            total_leaves_rejected=stats.total_leaves_rejected,
            leaves_this_month=stats.leaves_this_month,
            avg_leave_duration=stats.avg_leave_duration,
            overall_risk_score=stats.overall_risk_score,
            risk_category=stats.risk_category,
        )


@dataclass(frozen=True)
class CalendarFeatures:
    can_apply: bool = True
    calendar_score: int = 0
    risk_modifier: int = 0
    overlapping_events: tuple = ()
    warnings: tuple[str, ...] = ()
    blocked_dates: int = 0
    recommendation: CalendarRecommendation = CalendarRecommendation.AUTO_APPROVE

    @classmethod
    def from_analysis(cls, analysis: CalendarAnalysis) -> "CalendarFeatures":
        return cls(
            can_apply=analysis.can_apply,
            calendar_score=analysis.calendar_score,
            risk_modifier=analysis.risk_modifier,
            overlapping_events=tuple(analysis.overlapping_events),
            warnings=tuple(analysis.warnings),
            blocked_dates=len(analysis.blocked_dates),
            recommendation=analysis.recommendation,
        )


@dataclass(frozen=True)
class RequestFeatures:
    leave_type: LeaveType
    duration_days: int
    reason: str = ""
    is_weekend: bool = False
    days_until_leave: int = 0
    request_day_of_week: int = 0

    @property
    def is_emergency(self) -> bool:
        return self.leave_type == LeaveType.EMERGENCY

    @property
    def is_medical(self) -> bool:
        return self.leave_type == LeaveType.MEDICAL


@dataclass(frozen=True)
class PatternFlags:
    recent_leaves_count: int = 0
    has_recent_rejection: bool = False
    consecutive_leaves: bool = False
    frequency_anomaly: bool = False


@dataclass(frozen=True)
class DataAvailability:
    has_attendance_history: bool = False
    has_leave_history: bool = False
    has_return_history: bool = False
    days_of_history: int = 0

    @classmethod
    def from_stats(cls, stats: StudentStatistics) -> "DataAvailability":
        return cls(
            has_attendance_history=stats.total_days > 0,
            has_leave_history=stats.total_leaves_applied > 0,
            has_return_history=stats.completed_returns > 0,
            days_of_history=stats.total_days,
        )


@dataclass(frozen=True)
class FeatureBundle:
    student: StudentFeatures
    calendar: CalendarFeatures
    request: RequestFeatures
    patterns: PatternFlags = field(default_factory=PatternFlags)
    data: DataAvailability = field(default_factory=DataAvailability)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["student"]["risk_category"] = self.student.risk_category.value
        data["calendar"]["recommendation"] = self.calendar.recommendation.value
        data["calendar"]["overlapping_events"] = list(self.calendar.overlapping_events)
        data["calendar"]["warnings"] = list(self.calendar.warnings)
        data["request"]["leave_type"] = self.request.leave_type.value
        return data


def build_request_features(
    *,
    leave_type: LeaveType,
    start: datetime,
    end: datetime,
    reason: str,
    now: datetime,
) -> RequestFeatures:
    return RequestFeatures(
        leave_type=leave_type,
        duration_days=covered_days(start, end),
        reason=reason or "",
        is_weekend=is_weekend_start(start),
        days_until_leave=days_until(start, now),
        request_day_of_week=now.weekday(),
    )


def build_pattern_flags(
    history: Sequence[LeaveRequest],
    *,
    start: datetime,
    stats: StudentStatistics,
    now: datetime,
) -> PatternFlags:
    """Flags from leaves created in the last 30 days (`history` newest first)."""

    window_start = now - timedelta(days=RECENT_WINDOW_DAYS)
    recent = [l for l in history if l.created_at is not None and l.created_at >= window_start]

    consecutive = False
    if recent:
        gap = days_between(recent[0].to_datetime, start)
        consecutive = math.ceil(gap) <= BACK_TO_BACK_GAP_DAYS

    return PatternFlags(
        recent_leaves_count=len(recent),
        has_recent_rejection=any(l.status == LeaveStatus.REJECTED for l in recent),
        consecutive_leaves=consecutive,
        frequency_anomaly=stats.leaves_this_month > FREQUENCY_ANOMALY_MIN,
    )


def build_features(
    *,
    stats: StudentStatistics,
    analysis: CalendarAnalysis,
    request: RequestFeatures,
    history: Sequence[LeaveRequest] = (),
    start: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> FeatureBundle:
    patterns = PatternFlags()
    if start is not None and now is not None:
        patterns = build_pattern_flags(history, start=start, stats=stats, now=now)

    return FeatureBundle(
        student=StudentFeatures.from_stats(stats),
        calendar=CalendarFeatures.from_analysis(analysis),
        request=request,
        patterns=patterns,
        data=DataAvailability.from_stats(stats),
    )
