from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]) if r.get("marked_by") is not None else None,
        check_in_time=r.get("check_in_time"),
        curfew_violation=bool(r.get("curfew_violation") or 0),
        violation_minutes=int(r.get("violation_minutes") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_student_and_date(self, student_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, student_id, attendance_date, status, marked_by,
                       check_in_time, curfew_violation, violation_minutes
                FROM attendance
                WHERE student_id=%s AND attendance_date=%s
                """,
                (int(student_id), attendance_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def upsert(
        self,
        *,
        student_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by: Optional[int],
        check_in_time: Optional[datetime] = None,
        curfew_violation: bool = False,
        violation_minutes: int = 0,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # LAST_INSERT_ID(expr) makes lastrowid point at the updated row too.
            cur.execute(
                """
                INSERT INTO attendance(
                    student_id, attendance_date, status, marked_by,
                    check_in_time, curfew_violation, violation_minutes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    attendance_id=LAST_INSERT_ID(attendance_id),
                    status=VALUES(status),
                    marked_by=VALUES(marked_by),
                    check_in_time=VALUES(check_in_time),
                    curfew_violation=VALUES(curfew_violation),
                    violation_minutes=VALUES(violation_minutes)
                """,
                (
                    int(student_id),
                    attendance_date,
                    status.value,
                    marked_by,
                    check_in_time,
                    1 if curfew_violation else 0,
                    int(violation_minutes),
                ),
            )
            return int(cur.lastrowid)

    def list_for_student(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["student_id=%s"]
        params: list[object] = [int(student_id)]
        if start_date is not None:
            clauses.append("attendance_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("attendance_date <= %s")
            params.append(end_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT attendance_id, student_id, attendance_date, status, marked_by,
                       check_in_time, curfew_violation, violation_minutes
                FROM attendance
                WHERE {where_clause(clauses)}
                ORDER BY attendance_date DESC
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_rows(
        self,
        *,
        attendance_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        hostel_block: Optional[str] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses: list[str] = []
        params: list[object] = []

        if attendance_date is not None:
            clauses.append("a.attendance_date=%s")
            params.append(attendance_date)
        else:
            if start_date is not None:
                clauses.append("a.attendance_date >= %s")
                params.append(start_date)
            if end_date is not None:
                clauses.append("a.attendance_date <= %s")
                params.append(end_date)
        if status is not None:
            clauses.append("a.status=%s")
            params.append(status.value)
        if hostel_block:
            clauses.append("u.hostel_block=%s")
            params.append(hostel_block)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    a.attendance_id, a.student_id, u.name AS student_name, u.email,
                    u.hostel_block, u.room_no, a.attendance_date, a.status,
                    m.name AS marked_by_name, a.check_in_time, a.curfew_violation, a.violation_minutes
                FROM attendance a
                JOIN users u ON u.user_id = a.student_id
                LEFT JOIN users m ON m.user_id = a.marked_by
                WHERE {where_clause(clauses)}
                ORDER BY a.attendance_date DESC, u.name ASC
                """,
                tuple(params),
            )
            return [
                AttendanceReportRow(
                    attendance_id=int(r["attendance_id"]),
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    email=r["email"],
                    hostel_block=r.get("hostel_block"),
                    room_no=r.get("room_no"),
                    attendance_date=r["attendance_date"],
                    status=AttendanceStatus(r["status"]),
                    marked_by_name=r.get("marked_by_name"),
                    check_in_time=r.get("check_in_time"),
                    curfew_violation=bool(r.get("curfew_violation") or 0),
                    violation_minutes=int(r.get("violation_minutes") or 0),
                )
                for r in fetchall(cur)
            ]
