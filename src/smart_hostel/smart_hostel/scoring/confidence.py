"""How much historical data backs a risk score (0-1)."""

from __future__ import annotations

from dataclasses import dataclass

from ..common.datetime_utils import round_half_up
from .features import HISTORY_DAYS_FOR_CONFIDENCE, FeatureBundle

DATA_WEIGHT = 0.3
CONSISTENCY_WEIGHT = 0.3
CALENDAR_WEIGHT = 0.2
REQUEST_WEIGHT = 0.2

MIN_REASON_LENGTH = 10

HIGH_CONFIDENCE = 0.7
LOW_CONFIDENCE = 0.5


@dataclass(frozen=True)
class Confidence:
    overall: float
    data_availability: float
    consistency: float
    calendar_clarity: float
    request_quality: float

    @property
    def rounded(self) -> float:
        return round_half_up(self.overall * 100) / 100

    @property
    def is_high(self) -> bool:
        return self.overall >= HIGH_CONFIDENCE

    @property
    def is_low(self) -> bool:
        return self.overall < LOW_CONFIDENCE

    def as_dict(self) -> dict:
        return {
            "overall": self.rounded,
            "factors": {
                "data_availability": round(self.data_availability, 2),
                "consistency": round(self.consistency, 2),
                "calendar_clarity": round(self.calendar_clarity, 2),
                "request_quality": round(self.request_quality, 2),
            },
            "is_high": self.is_high,
            "is_low": self.is_low,
        }


def data_availability(features: FeatureBundle) -> float:
    d = features.data
    score = 0.0
    if d.has_attendance_history:
        score += 0.3
    if d.has_leave_history:
        score += 0.3
    if d.has_return_history:
        score += 0.2
    if d.days_of_history >= HISTORY_DAYS_FOR_CONFIDENCE:
        score += 0.2
    return score


def consistency(features: FeatureBundle) -> float:
    """Share of the four good-standing indicators that agree with the majority."""

    s = features.student
    indicators = [
        s.attendance_percentage >= 80,
        s.return_reliability_score >= 80,
        s.curfew_violations == 0,
        s.leaves_this_month <= 2,
    ]
    good = sum(indicators)
    return max(good, len(indicators) - good) / len(indicators)


def calendar_clarity(features: FeatureBundle) -> float:
    cal = features.calendar
    if cal.blocked_dates > 0:
        return 0.9
    if cal.overlapping_events:
        return 0.8
    return 1.0


def request_quality(features: FeatureBundle) -> float:
    req = features.request
    score = 0.5
    if len(req.reason or "") > MIN_REASON_LENGTH:
        score += 0.25
    if req.days_until_leave >= 1:
        score += 0.25
    return score


def estimate_confidence(features: FeatureBundle) -> Confidence:
    data = data_availability(features)
    cons = consistency(features)
    clarity = calendar_clarity(features)
    quality = request_quality(features)
    overall = data * DATA_WEIGHT + cons * CONSISTENCY_WEIGHT + clarity * CALENDAR_WEIGHT + quality * REQUEST_WEIGHT
    return Confidence(
        overall=overall,
        data_availability=data,
        consistency=cons,
        calendar_clarity=clarity,
        request_quality=quality,
    )
