from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import EventType, LeavePolicy, Semester
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json, where_clause
from .model import CalendarEvent, EventDraft
from .repository import CalendarRepository

_COLUMNS = """
    event_id, title, event_type, start_date, end_date, leave_policy, risk_modifier,
    affects_hostels, affects_courses, affects_years, priority, is_active, description,
    academic_year, semester, notify_before_days, created_by
"""

_ORDER = "ORDER BY priority DESC, start_date ASC"


def _row_to_event(r: dict) -> CalendarEvent:
    return CalendarEvent(
        event_id=int(r["event_id"]),
        title=r["title"],
        event_type=EventType(r["event_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        leave_policy=LeavePolicy(r["leave_policy"]),
        risk_modifier=int(r.get("risk_modifier") or 0),
        affects_hostels=tuple(from_json(r.get("affects_hostels"), [])),
        affects_courses=tuple(from_json(r.get("affects_courses"), [])),
        affects_years=tuple(int(y) for y in from_json(r.get("affects_years"), [])),
        priority=int(r.get("priority") or 1),
        is_active=bool(r.get("is_active", 1)),
        description=r.get("description"),
        academic_year=r.get("academic_year") or "",
        semester=Semester(r.get("semester") or Semester.BOTH.value),
        notify_before_days=int(r.get("notify_before_days") or 0),
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
    )


def _draft_params(d: EventDraft) -> tuple:
    return (
        d.title,
        d.event_type.value,
        d.start_date,
        d.end_date,
        d.leave_policy.value,
        int(d.risk_modifier),
        to_json(list(d.affects_hostels)),
        to_json(list(d.affects_courses)),
        to_json(list(d.affects_years)),
        int(d.priority),
        d.description,
        d.academic_year,
        d.semester.value,
        int(d.notify_before_days),
    )


class MySQLCalendarRepository(CalendarRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[CalendarEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM academic_calendar WHERE event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return _row_to_event(r) if r else None

    def list_active_overlapping(self, start: date, end: date) -> Sequence[CalendarEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM academic_calendar
                WHERE is_active=1 AND start_date <= %s AND end_date >= %s
                {_ORDER}
                """,
                (end, start),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def list_active_starting_between(self, start: date, end: date) -> Sequence[CalendarEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM academic_calendar
                WHERE is_active=1 AND start_date BETWEEN %s AND %s
                ORDER BY start_date ASC
                """,
                (start, end),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def list_all(
        self,
        *,
        academic_year: Optional[str] = None,
        event_type: Optional[EventType] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[CalendarEvent]:
        clauses: list[str] = []
        params: list[object] = []
        if academic_year:
            clauses.append("academic_year=%s")
            params.append(academic_year)
        if event_type is not None:
            clauses.append("event_type=%s")
            params.append(event_type.value)
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM academic_calendar WHERE {where_clause(clauses)} ORDER BY start_date ASC",
                tuple(params),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def exists(self, *, title: str, academic_year: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM academic_calendar WHERE title=%s AND academic_year=%s LIMIT 1",
                (title, academic_year),
            )
            return fetchone(cur) is not None

    def create(self, draft: EventDraft, *, created_by: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO academic_calendar(
                    title, event_type, start_date, end_date, leave_policy, risk_modifier,
                    affects_hostels, affects_courses, affects_years, priority, description,
                    academic_year, semester, notify_before_days, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _draft_params(draft) + (created_by,),
            )
            return int(cur.lastrowid)

    def update(self, event_id: int, draft: EventDraft) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE academic_calendar
                SET title=%s, event_type=%s, start_date=%s, end_date=%s, leave_policy=%s,
                    risk_modifier=%s, affects_hostels=%s, affects_courses=%s, affects_years=%s,
                    priority=%s, description=%s, academic_year=%s, semester=%s, notify_before_days=%s
                WHERE event_id=%s
                """,
                _draft_params(draft) + (int(event_id),),
            )
            return cur.rowcount > 0

    def set_active(self, event_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE academic_calendar SET is_active=%s WHERE event_id=%s",
                (1 if is_active else 0, int(event_id)),
            )
            return cur.rowcount > 0

    def delete(self, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM academic_calendar WHERE event_id=%s", (int(event_id),))
            return cur.rowcount > 0
