"""Component risk formulas (0-100, higher = riskier).

Shared by the per-request scorer and the per-student profile risk so both
use one definition of each component.
"""

from __future__ import annotations

from datetime import datetime

from ..core.constants import HIGH_RISK_MIN_SCORE, MEDIUM_RISK_MIN_SCORE
from ..core.enums import LeaveType, RiskCategory

VIOLATION_POINTS = 20
FREQUENCY_POINTS = 25
DURATION_POINTS = 10

LEAVE_TYPE_RISK = {
    LeaveType.EMERGENCY: 10,
    LeaveType.MEDICAL: 5,
    LeaveType.OTHER: 40,
    LeaveType.REGULAR: 30,
}

TIMING_BASE = 30
WEEKEND_START_BONUS = -20
SAME_DAY_PENALTY = 30
ADVANCE_NOTICE_BONUS = -10
ADVANCE_NOTICE_DAYS = 3

# Friday and Saturday starts (datetime.weekday numbering)
WEEKEND_START_DAYS = (4, 5)


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def attendance_risk(attendance_percentage: float) -> float:
    return max(0, 100 - attendance_percentage)


def reliability_risk(return_reliability_score: float) -> float:
    return max(0, 100 - return_reliability_score)


def violations_risk(curfew_violations: int) -> float:
    return min(100, curfew_violations * VIOLATION_POINTS)


def frequency_risk(leaves_this_month: int) -> float:
    return min(100, leaves_this_month * FREQUENCY_POINTS)


def history_risk(rejected: int, applied: int) -> float:
    """Rejection rate in percent; 0 when nothing was applied."""
    if applied <= 0:
        return 0
    return rejected / applied * 100


def duration_risk(duration_days: int) -> float:
    return min(100, (duration_days - 1) * DURATION_POINTS)


def leave_type_risk(leave_type: LeaveType) -> float:
    return LEAVE_TYPE_RISK.get(leave_type, LEAVE_TYPE_RISK[LeaveType.REGULAR])


def is_weekend_start(start: datetime) -> bool:
    return start.weekday() in WEEKEND_START_DAYS


def timing_risk(*, is_weekend: bool, days_until_leave: int) -> float:
    risk = TIMING_BASE
    if is_weekend:
        risk += WEEKEND_START_BONUS
    if days_until_leave < 1:
        risk += SAME_DAY_PENALTY
    elif days_until_leave >= ADVANCE_NOTICE_DAYS:
        risk += ADVANCE_NOTICE_BONUS
    return clamp(risk)


def category_for(score: float) -> RiskCategory:
    if score >= HIGH_RISK_MIN_SCORE:
        return RiskCategory.HIGH
    if score >= MEDIUM_RISK_MIN_SCORE:
        return RiskCategory.MEDIUM
    return RiskCategory.LOW
