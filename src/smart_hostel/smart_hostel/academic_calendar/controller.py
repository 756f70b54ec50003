from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import capability_required, current_role, current_user_id, json_body, login_required, ok, query_int
from ..core.constants import DEFAULT_UPCOMING_DAYS, DEFAULT_UPCOMING_RESTRICTION_DAYS
from ..core.enums import EventType, LeavePolicy, Semester
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container
from .model import EventDraft

_ENUM_FIELDS = {"event_type": EventType, "leave_policy": LeavePolicy, "semester": Semester}
_DATE_FIELDS = ("start_date", "end_date")
_INT_FIELDS = ("risk_modifier", "priority", "notify_before_days")
_TUPLE_FIELDS = ("affects_hostels", "affects_courses", "affects_years")
_TEXT_FIELDS = ("title", "description", "academic_year")


def _coerce(name: str, value):
    try:
        if name in _ENUM_FIELDS:
            return _ENUM_FIELDS[name](str(value).upper())
        if name in _DATE_FIELDS:
            return parse_iso_date(str(value)[:10])
        if name in _INT_FIELDS:
            return int(value)
        if name == "affects_years":
            return tuple(int(v) for v in (value or []))
        if name in _TUPLE_FIELDS:
            return tuple(str(v) for v in (value or []))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid value for {name}")
    return value


def _changes_from_body(body: dict) -> dict:
    allowed = set(_ENUM_FIELDS) | set(_DATE_FIELDS) | set(_INT_FIELDS) | set(_TUPLE_FIELDS) | set(_TEXT_FIELDS)
    return {k: _coerce(k, v) for k, v in body.items() if k in allowed}


def _draft_from_body(body: dict) -> EventDraft:
    required = ("title", "event_type", "start_date", "end_date", "academic_year")
    if any(not body.get(k) for k in required):
        raise ValidationError("title, event_type, start_date, end_date, and academic_year are required")
    return EventDraft(**_changes_from_body(body))


def register(app: Flask, container: Container) -> None:
    def _caller_scope():
        return container.user_service.get(current_user_id()).scope

    @app.route("/api/calendar/current-restrictions", endpoint="calendar_current_restrictions")
    @login_required
    def calendar_current_restrictions():
        restrictions = container.calendar_service.current_restrictions()
        return ok(
            {
                "is_restricted_today": bool(restrictions),
                "active_restrictions": [e.as_dict() for e in restrictions],
            }
        )

    @app.route("/api/calendar/upcoming", endpoint="calendar_upcoming")
    @login_required
    def calendar_upcoming():
        days = query_int("days", DEFAULT_UPCOMING_DAYS)
        events = container.calendar_service.upcoming(days=days)
        return ok([e.as_dict() for e in events], count=len(events))

    @app.route("/api/calendar/upcoming-restrictions", endpoint="calendar_upcoming_restrictions")
    @login_required
    def calendar_upcoming_restrictions():
        days = query_int("days", DEFAULT_UPCOMING_RESTRICTION_DAYS)
        events = container.calendar_service.upcoming_restrictions(days=days)
        return ok([e.as_dict() for e in events], count=len(events))

    @app.route("/api/calendar/analyze-dates", methods=["POST"], endpoint="calendar_analyze_dates")
    @login_required
    def calendar_analyze_dates():
        body = json_body()
        if not body.get("from_date") or not body.get("to_date"):
            raise ValidationError("from_date and to_date are required")
        analysis = container.calendar_service.analyze(
            parse_iso_datetime(body["from_date"]),
            parse_iso_datetime(body["to_date"]),
            _caller_scope(),
        )
        return ok(analysis.as_dict())

    @app.route("/api/calendar/suggest-dates", methods=["POST"], endpoint="calendar_suggest_dates")
    @login_required
    def calendar_suggest_dates():
        body = json_body()
        if not body.get("days_needed") or not body.get("preferred_start"):
            raise ValidationError("days_needed and preferred_start are required")
        try:
            days_needed = int(body["days_needed"])
            flexibility = int(body.get("flexibility_days") or 7)
        except (TypeError, ValueError):
            raise ValidationError("days_needed and flexibility_days must be integers")

        suggestions = container.calendar_service.suggest_dates(
            days_needed=days_needed,
            preferred_start=parse_iso_date(str(body["preferred_start"])[:10]),
            flexibility_days=flexibility,
            scope=_caller_scope(),
        )
        return ok(suggestions, count=len(suggestions))

    @app.route("/api/calendar/month/<int:year>/<int:month>", endpoint="calendar_month")
    @login_required
    def calendar_month(year: int, month: int):
        return ok(container.calendar_service.month_summary(year=year, month=month))

    @app.route("/api/calendar/all", endpoint="calendar_all")
    @capability_required(Capability.MANAGE_CALENDAR)
    def calendar_all():
        event_type = request.args.get("event_type")
        is_active = request.args.get("is_active")
        events = container.calendar_service.list_all(
            current_role=current_role(),
            academic_year=request.args.get("academic_year") or None,
            event_type=_coerce("event_type", event_type) if event_type else None,
            is_active=(is_active == "true") if is_active is not None else None,
        )
        return ok([e.as_dict() for e in events], count=len(events))

    @app.route("/api/calendar/event", methods=["POST"], endpoint="calendar_create_event")
    @capability_required(Capability.MANAGE_CALENDAR)
    def calendar_create_event():
        event = container.calendar_service.create_event(
            current_role=current_role(),
            created_by=current_user_id(),
            draft=_draft_from_body(json_body()),
        )
        return ok(event.as_dict(), status=201, message="Calendar event created successfully")

    @app.route("/api/calendar/event/<int:event_id>", methods=["PUT"], endpoint="calendar_update_event")
    @capability_required(Capability.MANAGE_CALENDAR)
    def calendar_update_event(event_id: int):
        event = container.calendar_service.update_event(
            current_role=current_role(),
            event_id=event_id,
            changes=_changes_from_body(json_body()),
        )
        return ok(event.as_dict(), message="Event updated successfully")

    @app.route("/api/calendar/event/<int:event_id>", methods=["DELETE"], endpoint="calendar_delete_event")
    @capability_required(Capability.MANAGE_CALENDAR)
    def calendar_delete_event(event_id: int):
        container.calendar_service.delete_event(current_role=current_role(), event_id=event_id)
        return ok(message="Event deleted successfully")

    @app.route("/api/calendar/event/<int:event_id>/toggle", methods=["PATCH"], endpoint="calendar_toggle_event")
    @capability_required(Capability.MANAGE_CALENDAR)
    def calendar_toggle_event(event_id: int):
        event = container.calendar_service.toggle_event(current_role=current_role(), event_id=event_id)
        return ok(event.as_dict(), message=f"Event {'activated' if event.is_active else 'deactivated'}")

    @app.route("/api/calendar/seed", methods=["POST"], endpoint="calendar_seed")
    @capability_required(Capability.MANAGE_CALENDAR)
    def calendar_seed():
        academic_year = json_body().get("academic_year") or ""
        if not academic_year:
            raise ValidationError('academic_year is required (e.g., "2025-2026")')
        events = container.calendar_service.seed_defaults(
            current_role=current_role(),
            created_by=current_user_id(),
            academic_year=academic_year,
        )
        return ok([e.as_dict() for e in events], message=f"Seeded {len(events)} calendar events")
