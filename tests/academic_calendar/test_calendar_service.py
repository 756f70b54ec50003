from datetime import date, datetime

import pytest

from src.smart_hostel.smart_hostel.academic_calendar.model import EventDraft
from src.smart_hostel.smart_hostel.core.enums import EventType, LeavePolicy, Role
from src.smart_hostel.smart_hostel.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _draft(**fields) -> EventDraft:
    values = dict(
        title="Sports Meet",
        event_type=EventType.EVENT,
        start_date=date(2026, 4, 10),
        end_date=date(2026, 4, 12),
        academic_year="2025-2026",
        leave_policy=LeavePolicy.DISCOURAGED,
        risk_modifier=10,
    )
    values.update(fields)
    return EventDraft(**values)


def _seed(hostel):
    return hostel.calendar_service.seed_defaults(
        current_role=Role.ADMIN, created_by=hostel.admin.user_id, academic_year="2025-2026"
    )


def test_seed_defaults_is_idempotent(hostel):
    created = _seed(hostel)

    assert len(created) == 6
    assert _seed(hostel) == []
    assert {e.title for e in created} >= {"Mid-Semester Examinations", "Holi Festival"}


def test_seed_defaults_needs_a_year_range(hostel):
    with pytest.raises(ValidationError):
        hostel.calendar_service.seed_defaults(
            current_role=Role.ADMIN, created_by=hostel.admin.user_id, academic_year="2026"
        )


def test_create_event(hostel):
    event = hostel.calendar_service.create_event(
        current_role=Role.WARDEN, created_by=hostel.warden.user_id, draft=_draft(title="  Sports Meet  ")
    )

    assert event.title == "Sports Meet"
    assert event.created_by == hostel.warden.user_id
    assert event.is_active is True


@pytest.mark.parametrize(
    "fields",
    [
        {"title": " "},
        {"end_date": date(2026, 4, 9)},
        {"risk_modifier": 60},
        {"priority": 0},
        {"notify_before_days": -1},
    ],
)
def test_create_event_validation(hostel, fields):
    with pytest.raises(ValidationError):
        hostel.calendar_service.create_event(
            current_role=Role.ADMIN, created_by=hostel.admin.user_id, draft=_draft(**fields)
        )


def test_students_cannot_manage_the_calendar(hostel):
    with pytest.raises(AuthorizationError):
        hostel.calendar_service.create_event(
            current_role=Role.STUDENT, created_by=hostel.student.user_id, draft=_draft()
        )


def test_update_is_partial(hostel):
    event = hostel.calendar_service.create_event(
        current_role=Role.ADMIN, created_by=hostel.admin.user_id, draft=_draft()
    )

    updated = hostel.calendar_service.update_event(
        current_role=Role.ADMIN, event_id=event.event_id, changes={"leave_policy": LeavePolicy.BLOCKED}
    )

    assert updated.leave_policy == LeavePolicy.BLOCKED
    assert updated.title == "Sports Meet"
    assert updated.risk_modifier == 10
    with pytest.raises(ValidationError):
        hostel.calendar_service.update_event(current_role=Role.ADMIN, event_id=event.event_id, changes={"colour": "red"})


def test_toggle_and_delete(hostel):
    event = hostel.calendar_service.create_event(
        current_role=Role.ADMIN, created_by=hostel.admin.user_id, draft=_draft()
    )

    toggled = hostel.calendar_service.toggle_event(current_role=Role.ADMIN, event_id=event.event_id)
    assert toggled.is_active is False
    assert hostel.calendar.get_by_id(event.event_id).is_active is False

    hostel.calendar_service.delete_event(current_role=Role.ADMIN, event_id=event.event_id)
    with pytest.raises(NotFoundError):
        hostel.calendar_service.delete_event(current_role=Role.ADMIN, event_id=event.event_id)
    with pytest.raises(NotFoundError):
        hostel.calendar_service.get(event.event_id)


def test_suggest_dates_avoids_blocked_windows(hostel):
    hostel.calendar.add(title="Exams", start=date(2026, 3, 20), end=date(2026, 3, 22), policy=LeavePolicy.BLOCKED)

    suggestions = hostel.calendar_service.suggest_dates(
        days_needed=2, preferred_start=date(2026, 3, 21), flexibility_days=3
    )

    assert [s["start_date"] for s in suggestions] == ["2026-03-18", "2026-03-23", "2026-03-24"]
    assert all(s["can_apply"] for s in suggestions)


def test_suggest_dates_validation(hostel):
    with pytest.raises(ValidationError):
        hostel.calendar_service.suggest_dates(days_needed=0, preferred_start=date(2026, 3, 21))


def test_month_summary(hostel):
    _seed(hostel)

    summary = hostel.calendar_service.month_summary(year=2026, month=3)

    assert summary["blocked_days"] == list(range(1, 16))
    assert summary["holidays"] == [17, 18]
    assert summary["flagged_days"] == []
    assert len(summary["events"]) == 2
    with pytest.raises(ValidationError):
        hostel.calendar_service.month_summary(year=2026, month=13)


def test_restrictions_and_upcoming(hostel):
    _seed(hostel)

    current = hostel.calendar_service.current_restrictions(now=datetime(2026, 3, 10, 9))
    upcoming = hostel.calendar_service.upcoming(days=7, now=datetime(2026, 3, 16, 9))
    restrictions = hostel.calendar_service.upcoming_restrictions(days=60, now=datetime(2026, 3, 16, 9))

    assert [e.title for e in current] == ["Mid-Semester Examinations"]
    assert [e.title for e in upcoming] == ["Holi Festival"]
    assert [e.title for e in restrictions] == ["End-Semester Examinations"]


def test_analyze_rejects_inverted_window(hostel):
    with pytest.raises(ValidationError):
        hostel.calendar_service.analyze(datetime(2026, 3, 22), datetime(2026, 3, 21))
