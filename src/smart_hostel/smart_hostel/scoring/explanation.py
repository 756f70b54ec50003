from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import DecisionAction, Impact
from .base import ComponentScore, RiskAssessment
from .decision_engine import Decision
from .features import FeatureBundle


@dataclass(frozen=True)
class Explanation:
    summary: str
    positive_factors: tuple[str, ...] = field(default_factory=tuple)
    negative_factors: tuple[str, ...] = field(default_factory=tuple)
    neutral_info: tuple[str, ...] = field(default_factory=tuple)
    recommendation: str = ""

    def as_dict(self) -> dict:
        return {
            "summary": self.summary,
            "positive_factors": list(self.positive_factors),
            "negative_factors": list(self.negative_factors),
            "neutral_info": list(self.neutral_info),
            "recommendation": self.recommendation,
        }


def summary_for(score: int, action: DecisionAction) -> str:
    if action == DecisionAction.AUTO_APPROVE:
        return f"This request has a low risk score ({score}/100) and qualifies for automatic approval."
    if action == DecisionAction.REJECT:
        return "This request cannot be approved due to calendar restrictions."
    if action == DecisionAction.FLAG:
        return f"This request has a high risk score ({score}/100) and requires careful review."
    return f"This request has a moderate risk score ({score}/100) and requires standard review."


def factor_text(component: ComponentScore, features: FeatureBundle) -> str:
    s = features.student
    req = features.request
    positive = component.impact == Impact.POSITIVE
    negative = component.impact == Impact.NEGATIVE

    name = component.name
    if name == "attendance":
        if positive:
            return f"Good attendance record ({s.attendance_percentage}%)"
        return f"Attendance below expected ({s.attendance_percentage}%)"
    if name == "reliability":
        if positive:
            return f"Reliable return record ({s.return_reliability_score}%)"
        return "Past issues with returning on time"
    if name == "violations":
        return f"{s.curfew_violations} curfew violation(s) on record" if negative else "No curfew violations"
    if name == "frequency":
        return f"{s.leaves_this_month} leave requests this month (high frequency)" if negative else "Normal leave frequency"
    if name == "history":
        return "Previous leave rejections on record" if negative else "Good leave history"
    if name == "calendar_conflict":
        return "Leave overlaps with academic events" if negative else "No calendar conflicts"
    if name == "duration":
        return f"Extended leave duration ({req.duration_days} days)" if negative else "Standard leave duration"
    if name == "leave_type":
        return f"{req.leave_type.value} leave - higher priority" if positive else "Regular leave type"
    if name == "timing":
        return "Good advance notice provided" if positive else "Short notice or weekday leave"
    return f"{name}: {component.value}"


def explain(features: FeatureBundle, assessment: RiskAssessment, decision: Decision) -> Explanation:
    positive: list[str] = []
    negative: list[str] = []
    for c in assessment.components:
        if c.impact == Impact.POSITIVE:
            positive.append(factor_text(c, features))
        elif c.impact == Impact.NEGATIVE:
            negative.append(factor_text(c, features))

    req = features.request
    neutral = [
        f"Leave duration: {req.duration_days} day(s)",
        f"Leave type: {req.leave_type.value}",
    ]
    if req.days_until_leave >= 0:
        neutral.append(f"Notice period: {req.days_until_leave} day(s) in advance")

    return Explanation(
        summary=summary_for(assessment.score, decision.action),
        positive_factors=tuple(positive),
        negative_factors=tuple(negative),
        neutral_info=tuple(neutral),
        recommendation=decision.reason,
    )
