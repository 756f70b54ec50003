from datetime import date, datetime

import pytest

from src.smart_hostel.smart_hostel.core.enums import AttendanceStatus, GateAction, LeaveStatus, LeaveType, Role
from src.smart_hostel.smart_hostel.core.exceptions import AuthorizationError
from src.smart_hostel.smart_hostel.reports.service import AUDIT_LOG_LIMIT, LEAVE_CSV_FIELDS, ReportService


class FakeLeaveRepo:
    def __init__(self):
        self.last_args = None

    def list_rows(self, **kwargs):
        self.last_args = kwargs
        return []


def test_leave_report_forwards_date_filter():
    repo = FakeLeaveRepo()
    svc = ReportService(repo, None, None, None)

    report = svc.leave_report(
        current_role=Role.WARDEN, start=datetime(2026, 3, 1), end=datetime(2026, 3, 31, 23, 59)
    )

    assert repo.last_args == {"created_from": datetime(2026, 3, 1), "created_to": datetime(2026, 3, 31, 23, 59)}
    assert report.summary["total"] == 0
    assert report.summary["by_type"] == {"regular": 0, "emergency": 0, "medical": 0, "other": 0}


def test_leave_report_rows_and_summary(hostel):
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 21, 9),
        end=datetime(2026, 3, 22, 18),
        created_at=datetime(2026, 3, 14, 9),
        status=LeaveStatus.APPROVED,
        risk_score=12,
        decided_by=hostel.warden.user_id,
        remarks="ok",
    )
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 25, 9),
        end=datetime(2026, 3, 25, 18),
        created_at=datetime(2026, 3, 15, 9),
        leave_type=LeaveType.MEDICAL,
    )

    report = hostel.report_service.leave_report(current_role=Role.ADMIN)

    assert report.summary["total"] == 2
    assert report.summary["approved"] == 1
    assert report.summary["pending"] == 1
    assert report.summary["by_type"]["medical"] == 1
    approved = report.rows[1]
    assert set(LEAVE_CSV_FIELDS) <= set(approved)
    assert approved["from"] == "2026-03-21 09:00"
    assert approved["decided_by"] == "Warden W"
    assert report.rows[0]["risk_score"] == ""


def test_attendance_report_for_a_day(hostel):
    hostel.attendance.upsert(
        student_id=hostel.student.user_id,
        attendance_date=date(2026, 3, 16),
        status=AttendanceStatus.LATE,
        marked_by=hostel.guard.user_id,
        check_in_time=datetime(2026, 3, 16, 22, 20),
        curfew_violation=True,
        violation_minutes=20,
    )
    hostel.attendance.upsert(
        student_id=hostel.student.user_id,
        attendance_date=date(2026, 3, 15),
        status=AttendanceStatus.PRESENT,
        marked_by=hostel.warden.user_id,
    )

    day = hostel.report_service.attendance_report(current_role=Role.WARDEN, on_date=date(2026, 3, 16))
    week = hostel.report_service.attendance_report(
        current_role=Role.WARDEN, start=date(2026, 3, 10), end=date(2026, 3, 16)
    )

    assert day.summary == {"total": 1, "present": 0, "absent": 0, "on_leave": 0, "late": 1, "curfew_violations": 1}
    assert day.rows[0]["marked_by"] == "Guard G"
    assert week.summary["total"] == 2


def test_gate_report_counts_actions(hostel):
    for action, hour in ((GateAction.EXIT, 9), (GateAction.ENTRY, 18)):
        hostel.gate_logs.create(
            student_id=hostel.student.user_id,
            leave_id=1,
            gate_pass_id="GP-1-ABCDEFGHI",
            action=action,
            performed_by=hostel.guard.user_id,
            timestamp=datetime(2026, 3, 16, hour),
        )

    report = hostel.report_service.gate_report(current_role=Role.ADMIN)
    exits = hostel.report_service.gate_report(current_role=Role.ADMIN, action=GateAction.EXIT)

    assert report.summary == {"total": 2, "exits": 1, "entries": 1}
    assert report.rows[0]["guard"] == "Guard G"
    assert report.rows[0]["timestamp"] == "2026-03-16 18:00"
    assert exits.summary["total"] == 1


def test_reports_need_permission(hostel):
    with pytest.raises(AuthorizationError):
        hostel.report_service.leave_report(current_role=Role.GUARD)
    with pytest.raises(AuthorizationError):
        hostel.report_service.audit_logs(current_role=Role.WARDEN)


def test_audit_logs_newest_first_and_capped(hostel):
    for i in range(AUDIT_LOG_LIMIT + 5):
        hostel.audit.record(action="LEAVE_APPROVED", performed_by=hostel.warden.user_id, target_type="Leave", target_id=i)
    hostel.audit.record(action="FORCE_RETURN", performed_by=hostel.warden.user_id, target_type="Leave", target_id=1)

    logs = hostel.report_service.audit_logs(current_role=Role.ADMIN)
    force = hostel.report_service.audit_logs(current_role=Role.ADMIN, action="FORCE_RETURN")

    assert len(logs) == AUDIT_LOG_LIMIT
    assert logs[0]["action"] == "FORCE_RETURN"
    assert len(force) == 1
