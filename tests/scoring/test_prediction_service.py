from datetime import datetime

import pytest

from src.smart_hostel.smart_hostel.core.enums import AttendanceStatus, LeaveStatus, LeaveType, Role
from src.smart_hostel.smart_hostel.core.exceptions import AuthorizationError, NotFoundError
from src.smart_hostel.smart_hostel.scoring.service import LeaveQuery, approval_likelihood, student_view


def _risky_student(hostel):
    risky = hostel.users.add(name="Risky Student", role=Role.STUDENT, hostel_block="Block B")
    for day in range(2, 7):
        hostel.attendance.upsert(
            student_id=risky.user_id,
            attendance_date=datetime(2026, 3, day).date(),
            status=AttendanceStatus.LATE,
            marked_by=hostel.warden.user_id,
            curfew_violation=True,
            violation_minutes=40,
        )
    return risky


def test_predict_for_a_clean_weekend_request(hostel, fixed_now):
    prediction = hostel.prediction_service.predict_for_student(
        LeaveQuery(
            student_id=hostel.student.user_id,
            leave_type=LeaveType.REGULAR,
            start=datetime(2026, 3, 21, 9),
            end=datetime(2026, 3, 22, 18),
            reason="Visiting family for the weekend",
        ),
        now=fixed_now,
    )

    view = student_view(prediction)
    assert prediction.risk_score <= 20
    assert view["likelihood"] == "HIGH"
    assert "Your profile qualifies for quick approval!" in view["tips"]
    assert "component_scores" not in view


def test_batch_is_sorted_by_risk_and_counts_failures(hostel, fixed_now, monkeypatch):
    risky = _risky_student(hostel)
    broken = hostel.users.add(name="Broken Student", role=Role.STUDENT)
    clean_leave = hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 21, 9),
        end=datetime(2026, 3, 22, 18),
        created_at=datetime(2026, 3, 14, 9),
    )
    risky_leave = hostel.leaves.add(
        student_id=risky.user_id,
        start=datetime(2026, 3, 16, 18),
        end=datetime(2026, 3, 18, 18),
        created_at=datetime(2026, 3, 15, 9),
        leave_type=LeaveType.OTHER,
        status=LeaveStatus.FLAGGED,
    )
    broken_leave = hostel.leaves.add(
        student_id=broken.user_id,
        start=datetime(2026, 3, 20, 9),
        end=datetime(2026, 3, 20, 18),
        created_at=datetime(2026, 3, 13, 9),
    )
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 1, 9),
        end=datetime(2026, 3, 1, 18),
        created_at=datetime(2026, 2, 20, 9),
        status=LeaveStatus.APPROVED,
    )

    original = hostel.stats_service.get_or_init

    def flaky(student_id, **kwargs):
        if student_id == broken.user_id:
            raise RuntimeError("stats unavailable")
        return original(student_id, **kwargs)

    monkeypatch.setattr(hostel.stats_service, "get_or_init", flaky)

    results, summary = hostel.prediction_service.predict_batch(current_role=Role.WARDEN, now=fixed_now)

    scored = [r for r in results if "prediction" in r]
    assert [r["leave"]["leave_id"] for r in scored] == [risky_leave.leave_id, clean_leave.leave_id]
    assert scored[0]["prediction"]["risk_score"] > scored[1]["prediction"]["risk_score"]
    assert results[-1] == {"leave": {"leave_id": broken_leave.leave_id}, "error": "stats unavailable"}
    assert summary["total"] == 3
    assert summary["errors"] == 1


def test_predict_for_leave_reports_current_status(hostel, fixed_now):
    leave = hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 21, 9),
        end=datetime(2026, 3, 22, 18),
        created_at=datetime(2026, 3, 14, 9),
    )

    result = hostel.prediction_service.predict_for_leave(current_role=Role.WARDEN, leave_id=leave.leave_id, now=fixed_now)

    assert result["leave"]["current_status"] == "PENDING"
    assert result["leave"]["student_name"] == "Student S"
    # the leave itself is not part of its own history
    assert result["prediction"]["features"]["patterns"]["recent_leaves_count"] == 0


def test_predict_for_leave_errors(hostel):
    with pytest.raises(NotFoundError):
        hostel.prediction_service.predict_for_leave(current_role=Role.WARDEN, leave_id=99)
    with pytest.raises(AuthorizationError):
        hostel.prediction_service.predict_for_leave(current_role=Role.STUDENT, leave_id=1)


def test_dashboard_counts_recent_decisions(hostel, fixed_now):
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 10, 9),
        end=datetime(2026, 3, 10, 18),
        created_at=datetime(2026, 3, 5, 9),
        status=LeaveStatus.AUTO_APPROVED,
    )
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 1, 10, 9),
        end=datetime(2026, 1, 10, 18),
        created_at=datetime(2026, 1, 5, 9),
        status=LeaveStatus.REJECTED,
    )
    hostel.leaves.add(
        student_id=hostel.student.user_id,
        start=datetime(2026, 3, 21, 9),
        end=datetime(2026, 3, 22, 18),
        created_at=datetime(2026, 3, 14, 9),
    )

    dashboard = hostel.prediction_service.dashboard(current_role=Role.ADMIN, now=fixed_now)

    assert dashboard["pending_leaves"] == 1
    assert dashboard["last_30_days"]["auto_approved"] == 1
    assert dashboard["last_30_days"]["rejected"] == 0
    assert dashboard["high_risk_pending"] == 0


def test_model_info_lists_weights(hostel):
    info = hostel.prediction_service.model_info()

    assert info["weights"]["attendance"] == 0.18
    assert info["thresholds"]["auto_approve"] == 20


@pytest.mark.parametrize("score,likelihood", [(0, "HIGH"), (30, "HIGH"), (31, "MEDIUM"), (60, "MEDIUM"), (61, "LOW")])
def test_approval_likelihood(score, likelihood):
    assert approval_likelihood(score) == likelihood
