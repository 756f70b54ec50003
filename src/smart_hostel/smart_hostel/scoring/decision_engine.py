"""Map a risk score, confidence and calendar verdict to an action.

Rules apply in order; the calendar veto wins over everything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import DecisionAction
from .config import DEFAULT_SCORING_CONFIG, DecisionThresholds
from .features import FeatureBundle

LOW_ATTENDANCE_NOTE_BELOW = 75


@dataclass(frozen=True)
class Decision:
    action: DecisionAction
    reason: str
    suggested_response: str
    attention_points: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {
            "action": self.action.value,
            "reason": self.reason,
            "suggested_response": self.suggested_response,
            "attention_points": list(self.attention_points),
        }


class DecisionEngine:
    def __init__(self, thresholds: DecisionThresholds = DEFAULT_SCORING_CONFIG.thresholds):
        self._t = thresholds

    def decide(self, *, risk_score: int, confidence: float, features: FeatureBundle) -> Decision:
        t = self._t
        cal = features.calendar

        if not cal.can_apply:
            return Decision(
                action=DecisionAction.REJECT,
                reason="Leave period overlaps with blocked dates (exams/restricted period)",
                suggested_response="Your leave cannot be approved as it overlaps with blocked academic dates.",
                attention_points=tuple(cal.warnings),
            )

        points: list[str] = []
        if risk_score <= t.auto_approve and confidence >= t.min_confidence:
            action = DecisionAction.AUTO_APPROVE
            reason = "Low risk profile with high confidence"
            response = "Leave approved. Have a safe trip!"
        elif risk_score <= t.auto_approve:
            action = DecisionAction.MANUAL_REVIEW
            reason = "Low risk but insufficient data for auto-approval"
            response = "Leave request submitted. You will be notified once reviewed."
            points.append("Limited history available - verify student details")
        elif risk_score > t.high_risk:
            action = DecisionAction.FLAG
            reason = "High risk score - requires careful review"
            response = "Your leave request requires additional review."
            points.extend(self._high_risk_points(features))
        elif risk_score > t.manual_review:
            action = DecisionAction.FLAG
            reason = "Moderate to high risk - needs review"
            response = "Your leave request requires additional review."
            points.append("Review student history before approval")
        else:
            action = DecisionAction.MANUAL_REVIEW
            reason = "Moderate risk - standard review process"
            response = "Leave request submitted. You will be notified once reviewed."

        points.extend(cal.warnings)
        if features.patterns.consecutive_leaves:
            points.append("This is a consecutive leave request")
        if features.patterns.has_recent_rejection:
            points.append("Recent leave was rejected - review reason")

        return Decision(action=action, reason=reason, suggested_response=response, attention_points=tuple(points))

    @staticmethod
    def _high_risk_points(features: FeatureBundle) -> list[str]:
        s = features.student
        points = []
        if s.attendance_percentage < LOW_ATTENDANCE_NOTE_BELOW:
            points.append(f"Low attendance: {s.attendance_percentage}%")
        if s.late_returns > 0:
            points.append(f"{s.late_returns} late returns from previous leaves")
        if s.curfew_violations > 0:
            points.append(f"{s.curfew_violations} curfew violations")
        if features.patterns.frequency_anomaly:
            points.append("Unusually high leave frequency this month")
        return points
