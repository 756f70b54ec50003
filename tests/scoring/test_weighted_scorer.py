from datetime import date, datetime

from src.smart_hostel.smart_hostel.academic_calendar.analyzer import CalendarAnalysis, evaluate
from src.smart_hostel.smart_hostel.academic_calendar.model import CalendarEvent
from src.smart_hostel.smart_hostel.core.enums import (
    DecisionAction,
    EventType,
    Impact,
    LeavePolicy,
    LeaveType,
    RiskCategory,
)
from src.smart_hostel.smart_hostel.scoring.confidence import estimate_confidence
from src.smart_hostel.smart_hostel.scoring.decision_engine import DecisionEngine
from src.smart_hostel.smart_hostel.scoring.features import build_features, build_request_features
from src.smart_hostel.smart_hostel.scoring.weighted_scorer import WeightedRiskScorer
from src.smart_hostel.smart_hostel.stats.model import StudentStatistics

NOW = datetime(2026, 3, 16, 10, 0)


def _event(policy: LeavePolicy, start: date, end: date, *, modifier: int = 0, title: str = "Event") -> CalendarEvent:
    return CalendarEvent(
        event_id=1,
        title=title,
        event_type=EventType.EXAM if policy == LeavePolicy.BLOCKED else EventType.EVENT,
        start_date=start,
        end_date=end,
        leave_policy=policy,
        risk_modifier=modifier,
        priority=10,
    )


def _features(stats, *, start, end, leave_type=LeaveType.REGULAR, analysis=None, reason="Visiting family at home"):
    request = build_request_features(leave_type=leave_type, start=start, end=end, reason=reason, now=NOW)
    return build_features(stats=stats, analysis=analysis or CalendarAnalysis(), request=request, start=start, now=NOW)


def _decide(features):
    assessment = WeightedRiskScorer().score(features)
    confidence = estimate_confidence(features)
    decision = DecisionEngine().decide(risk_score=assessment.score, confidence=confidence.overall, features=features)
    return assessment, confidence, decision


def test_good_student_short_regular_leave_is_auto_approved():
    stats = StudentStatistics(
        student_id=1,
        total_days=40,
        present_days=36,
        attendance_percentage=90,
        total_leaves_applied=3,
        on_time_returns=2,
        return_reliability_score=95,
        leaves_this_month=1,
    )
    analysis = evaluate([])
    features = _features(stats, start=datetime(2026, 3, 21, 9, 0), end=datetime(2026, 3, 22, 18, 0), analysis=analysis)

    assessment, confidence, decision = _decide(features)

    assert analysis.calendar_score == 0
    assert features.request.duration_days == 2
    assert features.request.days_until_leave == 5
    assert assessment.score <= 20
    assert assessment.category == RiskCategory.LOW
    assert confidence.overall >= 0.6
    assert decision.action == DecisionAction.AUTO_APPROVE


def test_blocked_exam_vetoes_even_a_perfect_profile():
    start, end = datetime(2026, 4, 6, 8, 0), datetime(2026, 4, 7, 20, 0)
    analysis = evaluate([_event(LeavePolicy.BLOCKED, date(2026, 4, 1), date(2026, 4, 15), modifier=50, title="Exams")])
    features = _features(StudentStatistics(student_id=1), start=start, end=end, analysis=analysis)

    _, _, decision = _decide(features)

    assert analysis.can_apply is False
    assert decision.action == DecisionAction.REJECT
    assert decision.reason == "Leave period overlaps with blocked dates (exams/restricted period)"
    assert 'Leave blocked during "Exams"' in decision.attention_points


def test_risky_same_day_other_leave_is_flagged_with_attention_points():
    stats = StudentStatistics(
        student_id=1,
        total_days=40,
        present_days=24,
        attendance_percentage=60,
        return_reliability_score=90,
        curfew_violations=2,
        total_leaves_applied=4,
        leaves_this_month=4,
    )
    analysis = evaluate(
        [_event(LeavePolicy.FLAGGED, date(2026, 3, 10), date(2026, 3, 20), modifier=50, title="Lab Week")]
    )
    features = _features(
        stats,
        start=datetime(2026, 3, 16, 18, 0),
        end=datetime(2026, 3, 16, 22, 0),
        leave_type=LeaveType.OTHER,
        analysis=analysis,
    )

    assessment, _, decision = _decide(features)

    # 7.2 + 1.5 + 4.8 + 8 + 10.5 + 2 + 3 weighted, plus the +50 calendar modifier
    assert assessment.score == 87
    assert assessment.score > 60
    assert decision.action == DecisionAction.FLAG
    assert "Low attendance: 60%" in decision.attention_points
    assert "2 curfew violations" in decision.attention_points
    assert "Unusually high leave frequency this month" in decision.attention_points


def test_score_is_clamped_to_100_for_extreme_inputs():
    stats = StudentStatistics(
        student_id=1,
        attendance_percentage=0,
        return_reliability_score=0,
        curfew_violations=1000,
        leaves_this_month=1000,
        total_leaves_applied=10,
        total_leaves_rejected=10,
    )
    analysis = evaluate([_event(LeavePolicy.BLOCKED, date(2026, 3, 1), date(2026, 5, 1), modifier=50)])
    features = _features(
        stats,
        start=datetime(2026, 3, 16, 12, 0),
        end=datetime(2026, 4, 30, 12, 0),
        leave_type=LeaveType.OTHER,
        analysis=analysis,
    )

    assessment = WeightedRiskScorer().score(features)

    assert assessment.score == 100
    assert assessment.category == RiskCategory.HIGH
    assert assessment.component("violations").risk == 100
    assert assessment.component("frequency").risk == 100


def test_score_is_clamped_to_zero_for_encouraged_vacation():
    analysis = evaluate([_event(LeavePolicy.ENCOURAGED, date(2026, 3, 20), date(2026, 3, 30), modifier=-50)])
    features = _features(
        StudentStatistics(student_id=1),
        start=datetime(2026, 3, 21, 9, 0),
        end=datetime(2026, 3, 21, 18, 0),
        leave_type=LeaveType.EMERGENCY,
        analysis=analysis,
    )

    assessment = WeightedRiskScorer().score(features)

    assert assessment.score == 0
    assert assessment.calendar_modifier == -50


def test_component_impacts():
    stats = StudentStatistics(student_id=1, attendance_percentage=50, curfew_violations=1)
    features = _features(stats, start=datetime(2026, 3, 20, 9, 0), end=datetime(2026, 3, 20, 18, 0))

    assessment = WeightedRiskScorer().score(features)

    assert assessment.component("attendance").impact == Impact.NEGATIVE
    assert assessment.component("reliability").impact == Impact.POSITIVE
    assert assessment.component("violations").impact == Impact.NEGATIVE
    assert assessment.component("frequency").impact == Impact.NEUTRAL
    assert assessment.component("leave_type").impact == Impact.NEUTRAL
    # Friday start, four days ahead: 30 - 20 - 10
    assert assessment.component("timing").risk == 0
    assert assessment.component("timing").impact == Impact.POSITIVE
    assert set(assessment.components_dict()) == {
        "attendance",
        "reliability",
        "violations",
        "frequency",
        "history",
        "calendar_conflict",
        "duration",
        "leave_type",
        "timing",
    }
