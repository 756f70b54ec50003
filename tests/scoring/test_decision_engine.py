from src.smart_hostel.smart_hostel.academic_calendar.analyzer import CalendarAnalysis
from src.smart_hostel.smart_hostel.core.enums import DecisionAction, LeaveType
from src.smart_hostel.smart_hostel.scoring.config import DecisionThresholds
from src.smart_hostel.smart_hostel.scoring.decision_engine import DecisionEngine
from src.smart_hostel.smart_hostel.scoring.features import (
    FeatureBundle,
    CalendarFeatures,
    PatternFlags,
    RequestFeatures,
    StudentFeatures,
)


def _bundle(**patterns) -> FeatureBundle:
    return FeatureBundle(
        student=StudentFeatures(),
        calendar=CalendarFeatures.from_analysis(CalendarAnalysis()),
        request=RequestFeatures(leave_type=LeaveType.REGULAR, duration_days=1, days_until_leave=3),
        patterns=PatternFlags(**patterns),
    )


def test_low_risk_with_low_confidence_goes_to_manual_review():
    decision = DecisionEngine().decide(risk_score=10, confidence=0.4, features=_bundle())

    assert decision.action == DecisionAction.MANUAL_REVIEW
    assert decision.reason == "Low risk but insufficient data for auto-approval"
    assert "Limited history available - verify student details" in decision.attention_points


def test_thresholds_are_inclusive_where_documented():
    engine = DecisionEngine()

    assert engine.decide(risk_score=20, confidence=0.6, features=_bundle()).action == DecisionAction.AUTO_APPROVE
    assert engine.decide(risk_score=60, confidence=0.9, features=_bundle()).action == DecisionAction.MANUAL_REVIEW
    moderate = engine.decide(risk_score=61, confidence=0.9, features=_bundle())
    assert moderate.action == DecisionAction.FLAG
    assert moderate.reason == "Moderate to high risk - needs review"
    assert engine.decide(risk_score=81, confidence=0.9, features=_bundle()).reason == (
        "High risk score - requires careful review"
    )


def test_pattern_flags_add_attention_points():
    decision = DecisionEngine().decide(
        risk_score=40,
        confidence=0.9,
        features=_bundle(consecutive_leaves=True, has_recent_rejection=True),
    )

    assert decision.action == DecisionAction.MANUAL_REVIEW
    assert decision.attention_points == (
        "This is a consecutive leave request",
        "Recent leave was rejected - review reason",
    )


def test_custom_thresholds_are_honoured():
    engine = DecisionEngine(DecisionThresholds(auto_approve=40, manual_review=70, high_risk=90, min_confidence=0.5))

    assert engine.decide(risk_score=35, confidence=0.55, features=_bundle()).action == DecisionAction.AUTO_APPROVE
