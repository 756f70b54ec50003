from datetime import datetime, timedelta

from src.smart_hostel.smart_hostel.core.enums import LeaveStatus, LeaveType, PatternRiskLevel, PatternType, Severity
from src.smart_hostel.smart_hostel.leaves.model import LeaveRequest
from src.smart_hostel.smart_hostel.scoring.pattern_detector import PatternDetector

NOW = datetime(2026, 3, 16, 10, 0)


def _leave(leave_id: int, start: datetime, *, days: int = 0, created_before: int = 3) -> LeaveRequest:
    return LeaveRequest(
        leave_id=leave_id,
        student_id=1,
        leave_type=LeaveType.REGULAR,
        from_datetime=start,
        to_datetime=start + timedelta(days=days, hours=8),
        reason="Home visit",
        status=LeaveStatus.APPROVED,
        created_at=start - timedelta(days=created_before),
    )


def test_friday_and_monday_starts_are_a_weekend_extension():
    starts = [
        datetime(2026, 3, 13, 9, 0),  # Fri
        datetime(2026, 3, 2, 9, 0),  # Mon
        datetime(2026, 2, 20, 9, 0),  # Fri
        datetime(2026, 2, 9, 9, 0),  # Mon
        datetime(2026, 1, 30, 9, 0),  # Fri
    ]
    leaves = [_leave(i, s) for i, s in enumerate(starts, start=1)]

    report = PatternDetector().detect(leaves, now=NOW)

    assert [p.type for p in report.detected] == [PatternType.WEEKEND_EXTENSION]
    assert report.detected[0].severity == Severity.MEDIUM
    assert report.risk_level == PatternRiskLevel.MEDIUM


def test_fewer_than_two_leaves_detects_nothing():
    report = PatternDetector().detect([_leave(1, datetime(2026, 3, 13, 9, 0))], now=NOW)

    assert report.detected == ()
    assert report.risk_level == PatternRiskLevel.NONE


def test_back_to_back_leaves_are_high_risk():
    leaves = [
        _leave(1, datetime(2026, 1, 6, 9, 0), created_before=20),
        _leave(2, datetime(2026, 1, 8, 9, 0), created_before=20),
        _leave(3, datetime(2026, 1, 10, 9, 0), created_before=20),
    ]

    report = PatternDetector().detect(leaves, now=NOW)

    assert PatternType.BACK_TO_BACK in [p.type for p in report.detected]
    assert report.risk_level == PatternRiskLevel.HIGH


def test_only_the_most_recent_leaves_are_sampled():
    old_weekend = [_leave(i, datetime(2025, 6, 2, 9, 0) + timedelta(weeks=i * 2)) for i in range(1, 6)]
    recent_midweek = [_leave(10 + i, datetime(2026, 1, 7, 9, 0) + timedelta(weeks=i * 2)) for i in range(0, 4)]

    report = PatternDetector(sample_size=4).detect(old_weekend + recent_midweek, now=NOW)

    assert PatternType.WEEKEND_EXTENSION not in [p.type for p in report.detected]


def test_same_day_of_month_each_month_is_date_clustering():
    leaves = [
        _leave(1, datetime(2025, 12, 10, 9, 0)),  # Wed
        _leave(2, datetime(2026, 1, 10, 9, 0)),  # Sat
        _leave(3, datetime(2026, 2, 10, 9, 0)),  # Tue
    ]

    report = PatternDetector().detect(leaves, now=NOW)

    assert [p.type for p in report.detected] == [PatternType.DATE_CLUSTERING]
    assert report.detected[0].severity == Severity.LOW
    assert report.risk_level == PatternRiskLevel.LOW


def _recent_midweek_leaves():
    # created Mar 8, Mar 10 and Mar 12, all inside the last 30 days
    return [
        _leave(1, datetime(2026, 3, 18, 9, 0), created_before=10),
        _leave(2, datetime(2026, 3, 25, 9, 0), created_before=15),
        _leave(3, datetime(2026, 4, 1, 9, 0), created_before=20),
    ]


def test_three_recent_leaves_after_a_quiet_month_is_increasing_frequency():
    report = PatternDetector().detect(_recent_midweek_leaves(), now=NOW)

    assert [p.type for p in report.detected] == [PatternType.INCREASING_FREQUENCY]
    assert report.risk_level == PatternRiskLevel.MEDIUM


def test_frequency_must_more_than_double_the_previous_month():
    # created Jan 25 and Feb 1, inside the 30-60 day window
    previous_month = [
        _leave(4, datetime(2026, 2, 4, 9, 0), created_before=10),
        _leave(5, datetime(2026, 2, 11, 9, 0), created_before=10),
    ]

    report = PatternDetector().detect(_recent_midweek_leaves() + previous_month, now=NOW)

    assert PatternType.INCREASING_FREQUENCY not in [p.type for p in report.detected]
