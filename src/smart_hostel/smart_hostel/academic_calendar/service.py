from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import iter_dates
from ..common.validators import require_in_range, require_non_empty
from ..core.constants import (
    CALENDAR_MODIFIER_MAX,
    CALENDAR_MODIFIER_MIN,
    DEFAULT_SUGGEST_FLEXIBILITY_DAYS,
    DEFAULT_UPCOMING_DAYS,
    DEFAULT_UPCOMING_RESTRICTION_DAYS,
)
from ..core.enums import EventType, LeavePolicy, Role, Semester
from ..core.exceptions import NotFoundError, ValidationError
from ..core.permissions import Capability, ensure_capability
from ..users.model import StudentScope
from .analyzer import CalendarAnalysis, CalendarAnalyzer, evaluate
from .model import CalendarEvent, EventDraft
from .repository import CalendarRepository

logger = logging.getLogger(__name__)

RESTRICTIVE_POLICIES = (LeavePolicy.BLOCKED, LeavePolicy.FLAGGED, LeavePolicy.DISCOURAGED)


def validate_draft(draft: EventDraft) -> EventDraft:
    title = require_non_empty(draft.title, "Title")
    require_non_empty(draft.academic_year, "Academic year")
    if draft.end_date < draft.start_date:
        raise ValidationError("End date must be on or after start date")
    require_in_range(int(draft.risk_modifier), "Risk modifier", CALENDAR_MODIFIER_MIN, CALENDAR_MODIFIER_MAX)
    require_in_range(int(draft.priority), "Priority", 1, 10)
    if draft.notify_before_days < 0:
        raise ValidationError("Notify-before days cannot be negative")
    return replace(draft, title=title)


def _default_events(academic_year: str) -> list[EventDraft]:
    """Standard even-semester calendar; dates fall in the second year of the academic year."""

    try:
        _, end_year_s = academic_year.split("-")
        y = int(end_year_s)
    except ValueError:
        raise ValidationError('academicYear must look like "2025-2026"')

    def d(month: int, day: int) -> date:
        return date(y, month, day)

    return [
        EventDraft(
            title="Mid-Semester Examinations",
            event_type=EventType.EXAM,
            start_date=d(3, 1),
            end_date=d(3, 15),
            leave_policy=LeavePolicy.BLOCKED,
            risk_modifier=50,
            priority=10,
            academic_year=academic_year,
            semester=Semester.EVEN,
        ),
        EventDraft(
            title="End-Semester Examinations",
            event_type=EventType.EXAM,
            start_date=d(5, 1),
            end_date=d(5, 20),
            leave_policy=LeavePolicy.BLOCKED,
            risk_modifier=50,
            priority=10,
            academic_year=academic_year,
            semester=Semester.EVEN,
        ),
        EventDraft(
            title="Exam Preparation Week",
            event_type=EventType.EXAM_PREP,
            start_date=d(2, 22),
            end_date=d(2, 28),
            leave_policy=LeavePolicy.FLAGGED,
            risk_modifier=30,
            priority=8,
            academic_year=academic_year,
            semester=Semester.EVEN,
        ),
        EventDraft(
            title="Holi Festival",
            event_type=EventType.FESTIVAL,
            start_date=d(3, 17),
            end_date=d(3, 18),
            leave_policy=LeavePolicy.ENCOURAGED,
            risk_modifier=-20,
            priority=5,
            academic_year=academic_year,
            semester=Semester.EVEN,
        ),
        EventDraft(
            title="Summer Vacation",
            event_type=EventType.VACATION,
            start_date=d(5, 25),
            end_date=d(7, 15),
            leave_policy=LeavePolicy.ENCOURAGED,
            risk_modifier=-30,
            priority=5,
            academic_year=academic_year,
            semester=Semester.BOTH,
        ),
        EventDraft(
            title="New Semester Orientation",
            event_type=EventType.ORIENTATION,
            start_date=d(7, 20),
            end_date=d(7, 25),
            leave_policy=LeavePolicy.BLOCKED,
            risk_modifier=40,
            priority=9,
            academic_year=academic_year,
            semester=Semester.ODD,
        ),
    ]


class CalendarService:
    """Calendar management use cases; analysis is delegated to CalendarAnalyzer."""

    def __init__(self, calendar_repo: CalendarRepository, analyzer: CalendarAnalyzer | None = None):
        self._calendar = calendar_repo
        self._analyzer = analyzer or CalendarAnalyzer(calendar_repo)

    # --- analysis -----------------------------------------------------

    def analyze(self, start: datetime, end: datetime, scope: Optional[StudentScope] = None) -> CalendarAnalysis:
        if end < start:
            raise ValidationError("To date must be after From date")
        return self._analyzer.analyze(start, end, scope)

    def suggest_dates(
        self,
        *,
        days_needed: int,
        preferred_start: date,
        flexibility_days: int = DEFAULT_SUGGEST_FLEXIBILITY_DAYS,
        scope: Optional[StudentScope] = None,
    ) -> list[dict]:
        """Slide the window across +/- flexibility days; return the 3 best allowed windows."""

        if days_needed < 1:
            raise ValidationError("daysNeeded must be at least 1")
        if flexibility_days < 0:
            raise ValidationError("flexibilityDays cannot be negative")

        first = preferred_start - timedelta(days=flexibility_days)
        last = preferred_start + timedelta(days=flexibility_days + days_needed - 1)
        events = self._calendar.list_active_overlapping(first, last)

        candidates = []
        for offset in range(-flexibility_days, flexibility_days + 1):
            start = preferred_start + timedelta(days=offset)
            end = start + timedelta(days=days_needed - 1)
            analysis = evaluate([e for e in events if e.overlaps(start, end)], scope)
            candidates.append(
                {
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                    "calendar_score": analysis.calendar_score,
                    "can_apply": analysis.can_apply,
                    "recommendation": analysis.recommendation.value,
                    "warnings": analysis.warnings,
                }
            )

        # sort is stable: ties keep the earlier start first
        candidates.sort(key=lambda c: c["calendar_score"])
        return [c for c in candidates if c["can_apply"]][:3]

    # --- read models --------------------------------------------------

    def current_restrictions(self, *, now: datetime | None = None) -> Sequence[CalendarEvent]:
        today = (now or datetime.now()).date()
        return [e for e in self._calendar.list_active_overlapping(today, today) if e.leave_policy in RESTRICTIVE_POLICIES]

    def upcoming(self, *, days: int = DEFAULT_UPCOMING_DAYS, now: datetime | None = None) -> Sequence[CalendarEvent]:
        today = (now or datetime.now()).date()
        return self._calendar.list_active_starting_between(today, today + timedelta(days=int(days)))

    def upcoming_restrictions(
        self,
        *,
        days: int = DEFAULT_UPCOMING_RESTRICTION_DAYS,
        now: datetime | None = None,
    ) -> Sequence[CalendarEvent]:
        today = (now or datetime.now()).date()
        events = self._calendar.list_active_overlapping(today, today + timedelta(days=int(days)))
        restrictive = [e for e in events if e.leave_policy in RESTRICTIVE_POLICIES]
        return sorted(restrictive, key=lambda e: e.start_date)

    def month_summary(self, *, year: int, month: int) -> dict:
        if month < 1 or month > 12:
            raise ValidationError("Invalid year or month")

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        events = self._calendar.list_active_overlapping(first, last)

        blocked: set[int] = set()
        flagged: set[int] = set()
        holidays: set[int] = set()
        for e in events:
            days = {d.day for d in iter_dates(max(e.start_date, first), min(e.end_date, last))}
            if e.leave_policy == LeavePolicy.BLOCKED:
                blocked |= days
            elif e.leave_policy == LeavePolicy.FLAGGED:
                flagged |= days
            elif e.event_type in (EventType.HOLIDAY, EventType.FESTIVAL):
                holidays |= days

        return {
            "year": year,
            "month": month,
            "events": [e.as_dict() for e in events],
            "blocked_days": sorted(blocked),
            "flagged_days": sorted(flagged),
            "holidays": sorted(holidays),
            "total_blocked_days": len(blocked),
            "total_flagged_days": len(flagged),
            "total_holidays": len(holidays),
        }

    # --- management ---------------------------------------------------

    def list_all(
        self,
        *,
        current_role: Role,
        academic_year: Optional[str] = None,
        event_type: Optional[EventType] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[CalendarEvent]:
        ensure_capability(current_role, Capability.MANAGE_CALENDAR)
        return self._calendar.list_all(academic_year=academic_year, event_type=event_type, is_active=is_active)

    def get(self, event_id: int) -> CalendarEvent:
        event = self._calendar.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def create_event(self, *, current_role: Role, created_by: int, draft: EventDraft) -> CalendarEvent:
        ensure_capability(current_role, Capability.MANAGE_CALENDAR)
        draft = validate_draft(draft)
        event_id = self._calendar.create(draft, created_by=int(created_by))
        logger.info("Calendar event %s created: %s (%s)", event_id, draft.title, draft.leave_policy.value)
        return self.get(event_id)

    def update_event(self, *, current_role: Role, event_id: int, changes: dict) -> CalendarEvent:
        """Partial update: fields absent from `changes` keep their value."""

        ensure_capability(current_role, Capability.MANAGE_CALENDAR)
        existing = self.get(event_id)
        try:
            draft = replace(existing.to_draft(), **changes)
        except TypeError as e:
            raise ValidationError(f"Unknown event field: {e}")
        draft = validate_draft(draft)
        self._calendar.update(existing.event_id, draft)
        return self.get(existing.event_id)

    def toggle_event(self, *, current_role: Role, event_id: int) -> CalendarEvent:
        ensure_capability(current_role, Capability.MANAGE_CALENDAR)
        existing = self.get(event_id)
        self._calendar.set_active(existing.event_id, is_active=not existing.is_active)
        return replace(existing, is_active=not existing.is_active)

    def delete_event(self, *, current_role: Role, event_id: int) -> None:
        ensure_capability(current_role, Capability.MANAGE_CALENDAR)
        if not self._calendar.delete(int(event_id)):
            raise NotFoundError("Event not found")

    def seed_defaults(self, *, current_role: Role, created_by: int, academic_year: str) -> list[CalendarEvent]:
        """Create the standard events of an academic year; existing titles are skipped."""

        ensure_capability(current_role, Capability.MANAGE_CALENDAR)
        created = []
        for draft in _default_events(require_non_empty(academic_year, "academicYear")):
            if self._calendar.exists(title=draft.title, academic_year=draft.academic_year):
                continue
            event_id = self._calendar.create(draft, created_by=int(created_by))
            created.append(self.get(event_id))
        logger.info("Seeded %s calendar events for %s", len(created), academic_year)
        return created
