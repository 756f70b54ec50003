from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import EventType
from .model import CalendarEvent, EventDraft


class CalendarRepository(Protocol):
    def get_by_id(self, event_id: int) -> Optional[CalendarEvent]:
        raise NotImplementedError

    def list_active_overlapping(self, start: date, end: date) -> Sequence[CalendarEvent]:
        """Active events with start <= end AND end >= start, priority desc then start asc."""

        raise NotImplementedError

    def list_active_starting_between(self, start: date, end: date) -> Sequence[CalendarEvent]:
        raise NotImplementedError

    def list_all(
        self,
        *,
        academic_year: Optional[str] = None,
        event_type: Optional[EventType] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[CalendarEvent]:
        raise NotImplementedError

    def exists(self, *, title: str, academic_year: str) -> bool:
        raise NotImplementedError

    def create(self, draft: EventDraft, *, created_by: Optional[int]) -> int:
        raise NotImplementedError

    def update(self, event_id: int, draft: EventDraft) -> bool:
        raise NotImplementedError

    def set_active(self, event_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete(self, event_id: int) -> bool:
        raise NotImplementedError
