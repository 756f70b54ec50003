"""Match a leave window against the academic calendar.

The analysis is a pure function of the overlapping events and the student's
scope; `CalendarAnalyzer` only adds the repository lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.constants import CALENDAR_MODIFIER_MAX, CALENDAR_MODIFIER_MIN
from ..core.enums import CalendarRecommendation, LeavePolicy
from ..users.model import StudentScope
from .model import CalendarEvent
from .repository import CalendarRepository

AUTO_APPROVE_MAX_SCORE = 20
FLAG_MIN_SCORE = 50
FLAGGED_SCORE = 70
DISCOURAGED_SCORE = 40
ENCOURAGED_SCORE = 10
BLOCKED_SCORE = 100


@dataclass(frozen=True)
class DateWindow:
    event: str
    start: date
    end: date

    def as_dict(self) -> dict:
        return {"event": self.event, "from": self.start.isoformat(), "to": self.end.isoformat()}


@dataclass
class CalendarAnalysis:
    can_apply: bool = True
    calendar_score: int = 0
    risk_modifier: int = 0
    recommendation: CalendarRecommendation = CalendarRecommendation.APPROVE
    overlapping_events: list[dict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    blocked_dates: list[DateWindow] = field(default_factory=list)
    flagged_dates: list[DateWindow] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "can_apply": self.can_apply,
            "calendar_score": self.calendar_score,
            "risk_modifier": self.risk_modifier,
            "recommendation": self.recommendation.value,
            "overlapping_events": list(self.overlapping_events),
            "warnings": list(self.warnings),
            "blocked_dates": [w.as_dict() for w in self.blocked_dates],
            "flagged_dates": [w.as_dict() for w in self.flagged_dates],
        }


def applies_to(event: CalendarEvent, scope: Optional[StudentScope]) -> bool:
    """Empty event lists apply to everyone; a missing student value is not filtered."""

    if scope is None:
        return True
    if event.affects_hostels and scope.hostel_block and scope.hostel_block not in event.affects_hostels:
        return False
    if event.affects_courses and scope.course and scope.course not in event.affects_courses:
        return False
    if event.affects_years and scope.year and int(scope.year) not in event.affects_years:
        return False
    return True


def evaluate(events: Iterable[CalendarEvent], scope: Optional[StudentScope] = None) -> CalendarAnalysis:
    analysis = CalendarAnalysis()

    relevant = [e for e in events if e.is_active and applies_to(e, scope)]
    relevant.sort(key=lambda e: (-e.priority, e.start_date))

    modifier = 0
    for event in relevant:
        analysis.overlapping_events.append(
            {
                "event_id": event.event_id,
                "title": event.title,
                "type": event.event_type.value,
                "policy": event.leave_policy.value,
                "dates": f"{event.start_date.isoformat()} - {event.end_date.isoformat()}",
            }
        )
        window = DateWindow(event=event.title, start=event.start_date, end=event.end_date)

        policy = event.leave_policy
        if policy == LeavePolicy.BLOCKED:
            analysis.can_apply = False
            analysis.recommendation = CalendarRecommendation.REJECT
            analysis.calendar_score = BLOCKED_SCORE
            analysis.blocked_dates.append(window)
            analysis.warnings.append(f'Leave blocked during "{event.title}"')
        elif policy == LeavePolicy.FLAGGED:
            if analysis.recommendation != CalendarRecommendation.REJECT:
                analysis.recommendation = CalendarRecommendation.FLAG
            analysis.calendar_score = max(analysis.calendar_score, FLAGGED_SCORE)
            analysis.flagged_dates.append(window)
            analysis.warnings.append(f'Leave during "{event.title}" requires manual approval')
        elif policy == LeavePolicy.DISCOURAGED:
            analysis.calendar_score = max(analysis.calendar_score, DISCOURAGED_SCORE)
            analysis.warnings.append(f'Leave during "{event.title}" is discouraged')
        elif policy == LeavePolicy.ENCOURAGED:
            # A block is never softened by a coinciding vacation.
            if analysis.can_apply:
                analysis.calendar_score = min(analysis.calendar_score, ENCOURAGED_SCORE)

        modifier += int(event.risk_modifier)

    analysis.risk_modifier = max(CALENDAR_MODIFIER_MIN, min(CALENDAR_MODIFIER_MAX, modifier))

    if analysis.can_apply and analysis.calendar_score <= AUTO_APPROVE_MAX_SCORE:
        analysis.recommendation = CalendarRecommendation.AUTO_APPROVE
    elif analysis.can_apply and analysis.calendar_score > FLAG_MIN_SCORE:
        analysis.recommendation = CalendarRecommendation.FLAG

    return analysis


class CalendarAnalyzer:
    def __init__(self, calendar: CalendarRepository):
        self._calendar = calendar

    def events_for(self, start: datetime, end: datetime) -> Sequence[CalendarEvent]:
        return self._calendar.list_active_overlapping(start.date(), end.date())

    def analyze(self, start: datetime, end: datetime, scope: Optional[StudentScope] = None) -> CalendarAnalysis:
        return evaluate(self.events_for(start, end), scope)
