from datetime import date, datetime, timedelta

from src.smart_hostel.smart_hostel.attendance.model import AttendanceRecord
from src.smart_hostel.smart_hostel.core.enums import AttendanceStatus, LeaveStatus, LeaveType, RiskCategory
from src.smart_hostel.smart_hostel.leaves.model import LeaveRequest
from src.smart_hostel.smart_hostel.stats.aggregator import compute

NOW = datetime(2026, 3, 16, 10, 0)


def _mark(day: int, status: AttendanceStatus, *, violation_minutes: int = 0) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=day,
        student_id=1,
        attendance_date=date(2026, 3, day),
        status=status,
        curfew_violation=violation_minutes > 0,
        violation_minutes=violation_minutes,
    )


def _leave(leave_id, *, created, start, days=1, status=LeaveStatus.APPROVED, leave_type=LeaveType.REGULAR, **fields):
    return LeaveRequest(
        leave_id=leave_id,
        student_id=1,
        leave_type=leave_type,
        from_datetime=start,
        to_datetime=start + timedelta(days=days - 1, hours=8),
        reason="Home",
        status=status,
        created_at=created,
        **fields,
    )


def test_zero_history_gets_the_benefit_of_the_doubt():
    stats = compute(1, [], [], now=NOW)

    assert stats.attendance_percentage == 100
    assert stats.return_reliability_score == 100
    assert stats.overall_risk_score == 0
    assert stats.risk_category == RiskCategory.LOW
    assert stats.frequent_leave_type is None
    assert stats.last_leave_date is None
    assert stats.avg_leave_duration == 0


def test_recompute_from_unchanged_records_is_identical():
    attendance = [_mark(2, AttendanceStatus.PRESENT), _mark(3, AttendanceStatus.LATE, violation_minutes=15)]
    leaves = [
        _leave(1, created=datetime(2026, 3, 1, 9), start=datetime(2026, 3, 6, 9), returned_on_time=True),
        _leave(2, created=datetime(2026, 3, 10, 9), start=datetime(2026, 3, 20, 9), status=LeaveStatus.PENDING),
    ]

    assert compute(1, attendance, leaves, now=NOW) == compute(1, attendance, leaves, now=NOW)


def test_attendance_returns_and_violations_are_counted():
    attendance = [
        _mark(2, AttendanceStatus.PRESENT),
        _mark(3, AttendanceStatus.PRESENT),
        _mark(4, AttendanceStatus.PRESENT),
        _mark(5, AttendanceStatus.LATE, violation_minutes=30),
        _mark(6, AttendanceStatus.ABSENT),
        _mark(7, AttendanceStatus.ON_LEAVE),
    ]
    leaves = [
        _leave(1, created=datetime(2026, 1, 5, 9), start=datetime(2026, 1, 10, 9), days=3, returned_on_time=True),
        _leave(
            2,
            created=datetime(2026, 2, 4, 9),
            start=datetime(2026, 2, 10, 9),
            days=2,
            returned_on_time=False,
            late_return_hours=5.5,
        ),
        _leave(3, created=datetime(2026, 3, 6, 9), start=datetime(2026, 3, 8, 9), status=LeaveStatus.REJECTED),
    ]

    stats = compute(1, attendance, leaves, now=NOW)

    assert stats.total_days == 6
    assert stats.present_days == 3
    assert stats.attendance_percentage == 50
    assert stats.late_days == 1
    assert stats.curfew_violations == 1
    assert stats.total_curfew_violation_minutes == 30
    assert stats.on_time_returns == 1
    assert stats.late_returns == 1
    assert stats.return_reliability_score == 50
    assert stats.total_late_return_hours == 5.5
    assert stats.total_leaves_applied == 3
    assert stats.total_leaves_approved == 2
    assert stats.total_leaves_rejected == 1
    assert stats.total_leave_days_taken == 5
    assert stats.avg_leave_duration == 2.5
    assert stats.avg_leave_gap_days == 30
    assert stats.leaves_this_month == 1
    assert stats.leaves_this_semester == 3
    assert stats.last_leave_date == datetime(2026, 3, 6, 9)
    # .30*50 + .25*50 + .20*20 + .15*25 + .10*33.3
    assert stats.overall_risk_score == 39
    assert stats.risk_category == RiskCategory.MEDIUM
    assert stats.component_scores == {
        "attendance": 50,
        "reliability": 50,
        "violations": 20,
        "frequency": 25,
        "history": 33,
    }


def test_frequent_leave_type_tie_goes_to_the_first_seen():
    leaves = [
        _leave(1, created=datetime(2026, 3, 1, 9), start=datetime(2026, 3, 2, 9), leave_type=LeaveType.MEDICAL),
        _leave(2, created=datetime(2026, 3, 5, 9), start=datetime(2026, 3, 6, 9), leave_type=LeaveType.REGULAR),
    ]

    assert compute(1, [], leaves, now=NOW).frequent_leave_type == LeaveType.MEDICAL
