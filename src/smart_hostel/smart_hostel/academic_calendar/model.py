from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import EventType, LeavePolicy, Semester


@dataclass(frozen=True)
class EventDraft:
    """Writable fields of a calendar event (create / update payload)."""

    title: str
    event_type: EventType
    start_date: date
    end_date: date
    academic_year: str
    leave_policy: LeavePolicy = LeavePolicy.NORMAL
    risk_modifier: int = 0
    affects_hostels: tuple[str, ...] = ()
    affects_courses: tuple[str, ...] = ()
    affects_years: tuple[int, ...] = ()
    priority: int = 1
    description: Optional[str] = None
    semester: Semester = Semester.BOTH
    notify_before_days: int = 3


@dataclass(frozen=True)
class CalendarEvent:
    """Domain entity: an academic-calendar period with a leave policy.

    The date range is inclusive on both ends. Empty scope tuples mean the
    event applies to every student.
    """

    event_id: int
    title: str
    event_type: EventType
    start_date: date
    end_date: date
    leave_policy: LeavePolicy = LeavePolicy.NORMAL
    risk_modifier: int = 0
    affects_hostels: tuple[str, ...] = ()
    affects_courses: tuple[str, ...] = ()
    affects_years: tuple[int, ...] = ()
    priority: int = 1
    is_active: bool = True
    description: Optional[str] = None
    academic_year: str = ""
    semester: Semester = Semester.BOTH
    notify_before_days: int = 3
    created_by: Optional[int] = field(default=None, compare=False)

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start

    def to_draft(self) -> EventDraft:
        return EventDraft(
            title=self.title,
            event_type=self.event_type,
            start_date=self.start_date,
            end_date=self.end_date,
            academic_year=self.academic_year,
            leave_policy=self.leave_policy,
            risk_modifier=self.risk_modifier,
            affects_hostels=self.affects_hostels,
            affects_courses=self.affects_courses,
            affects_years=self.affects_years,
            priority=self.priority,
            description=self.description,
            semester=self.semester,
            notify_before_days=self.notify_before_days,
        )

    def as_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "title": self.title,
            "event_type": self.event_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "leave_policy": self.leave_policy.value,
            "risk_modifier": self.risk_modifier,
            "affects_hostels": list(self.affects_hostels),
            "affects_courses": list(self.affects_courses),
            "affects_years": list(self.affects_years),
            "priority": self.priority,
            "is_active": self.is_active,
            "description": self.description,
            "academic_year": self.academic_year,
            "semester": self.semester.value,
            "notify_before_days": self.notify_before_days,
            "created_by": self.created_by,
        }
