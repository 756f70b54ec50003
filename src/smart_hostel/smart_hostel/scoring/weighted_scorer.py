"""Weighted linear risk scorer.

Each of the nine components yields a 0-100 risk; the weighted sum plus the
calendar modifier (not re-weighted) is rounded and clamped to [0, 100].
"""

from __future__ import annotations

from ..common.datetime_utils import round_half_up
from ..core.enums import Impact
from .base import ComponentScore, RiskAssessment, RiskScorer
from .components import (
    attendance_risk,
    category_for,
    clamp,
    duration_risk,
    frequency_risk,
    history_risk,
    leave_type_risk,
    reliability_risk,
    timing_risk,
    violations_risk,
)
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .features import FeatureBundle


def _impact(negative: bool, otherwise: Impact = Impact.NEUTRAL) -> Impact:
    return Impact.NEGATIVE if negative else otherwise


class WeightedRiskScorer(RiskScorer):
    def __init__(self, config: ScoringConfig = DEFAULT_SCORING_CONFIG):
        self._config = config

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score(self, features: FeatureBundle) -> RiskAssessment:
        w = self._config.risk_weights
        s = features.student
        cal = features.calendar
        req = features.request

        att = attendance_risk(s.attendance_percentage)
        rel = reliability_risk(s.return_reliability_score)
        vio = violations_risk(s.curfew_violations)
        freq = frequency_risk(s.leaves_this_month)
        hist = history_risk(s.total_leaves_rejected, s.total_leaves_applied)
        conflict = float(cal.calendar_score)
        dur = duration_risk(req.duration_days)
        ltype = leave_type_risk(req.leave_type)
        timing = timing_risk(is_weekend=req.is_weekend, days_until_leave=req.days_until_leave)

        components = (
            ComponentScore("attendance", s.attendance_percentage, att, w.attendance, _impact(att > 30, Impact.POSITIVE)),
            ComponentScore(
                "reliability", s.return_reliability_score, rel, w.reliability, _impact(rel > 30, Impact.POSITIVE)
            ),
            ComponentScore("violations", s.curfew_violations, vio, w.violations, _impact(s.curfew_violations > 0)),
            ComponentScore("frequency", s.leaves_this_month, freq, w.frequency, _impact(freq > 50)),
            ComponentScore("history", round(hist, 2), hist, w.history, _impact(hist > 20)),
            ComponentScore(
                "calendar_conflict",
                cal.calendar_score,
                conflict,
                w.calendar_conflict,
                _impact(conflict > 30, Impact.POSITIVE),
            ),
            ComponentScore("duration", req.duration_days, dur, w.duration, _impact(dur > 30)),
            ComponentScore(
                "leave_type",
                req.leave_type.value,
                ltype,
                w.leave_type,
                Impact.POSITIVE if ltype < 20 else Impact.NEUTRAL,
            ),
            ComponentScore(
                "timing", req.days_until_leave, timing, w.timing, Impact.POSITIVE if timing < 30 else Impact.NEGATIVE
            ),
        )

        total = sum(c.weighted for c in components) + cal.risk_modifier
        final = int(clamp(round_half_up(total)))

        return RiskAssessment(
            score=final,
            category=category_for(final),
            components=components,
            calendar_modifier=cal.risk_modifier,
        )
