from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import DecisionAction, LeaveStatus, LeaveType, Presence, RiskCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_bool, to_json, where_clause
from .model import LeaveRequest, LeaveRow, NewLeave
from .repository import LeaveRepository

_COLUMNS = """
    l.leave_id, l.student_id, l.leave_type, l.from_datetime, l.to_datetime, l.reason, l.status,
    l.risk_score, l.risk_category, l.decision_factors, l.ai_decision, l.ai_decision_reason,
    l.decided_by, l.decided_at, l.remarks, l.gate_pass_id, l.presence, l.returned_at,
    l.returned_on_time, l.late_return_hours, l.created_at
"""


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        student_id=int(r["student_id"]),
        leave_type=LeaveType(r["leave_type"]),
        from_datetime=r["from_datetime"],
        to_datetime=r["to_datetime"],
        reason=r.get("reason") or "",
        status=LeaveStatus(r["status"]),
        risk_score=int(r["risk_score"]) if r.get("risk_score") is not None else None,
        risk_category=RiskCategory(r["risk_category"]) if r.get("risk_category") else None,
        decision_factors=from_json(r.get("decision_factors"), {}),
        ai_decision=DecisionAction(r["ai_decision"]) if r.get("ai_decision") else None,
        ai_decision_reason=r.get("ai_decision_reason"),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decided_at=r.get("decided_at"),
        remarks=r.get("remarks"),
        gate_pass_id=r.get("gate_pass_id"),
        presence=Presence(r.get("presence") or Presence.IN.value),
        returned_at=r.get("returned_at"),
        returned_on_time=to_bool(r.get("returned_on_time")),
        late_return_hours=float(r.get("late_return_hours") or 0),
        created_at=r.get("created_at"),
    )


def _row_to_leave_row(r: dict) -> LeaveRow:
    return LeaveRow(
        leave=_row_to_leave(r),
        student_name=r["student_name"],
        email=r["email"],
        hostel_block=r.get("hostel_block"),
        room_no=r.get("room_no"),
        course=r.get("course"),
        year=int(r["year"]) if r.get("year") is not None else None,
        phone=r.get("phone"),
        parent_phone=r.get("parent_phone"),
        decided_by_name=r.get("decided_by_name"),
    )


def _in_clause(column: str, values: list[str]) -> str:
    return f"{column} IN ({', '.join(['%s'] * len(values))})"


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leaves l WHERE l.leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def get_by_gate_pass(self, gate_pass_id: str) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leaves l WHERE l.gate_pass_id=%s", (gate_pass_id,))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def create(self, leave: NewLeave) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves(
                    student_id, leave_type, from_datetime, to_datetime, reason, status,
                    risk_score, risk_category, decision_factors, ai_decision, ai_decision_reason, created_at,
                    gate_pass_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,COALESCE(%s, CURRENT_TIMESTAMP),%s)
                """,
                (
                    int(leave.student_id),
                    leave.leave_type.value,
                    leave.from_datetime,
                    leave.to_datetime,
                    leave.reason,
                    leave.status.value,
                    leave.risk_score,
                    leave.risk_category.value if leave.risk_category else None,
                    to_json(leave.decision_factors),
                    leave.ai_decision.value if leave.ai_decision else None,
                    leave.ai_decision_reason,
                    leave.created_at,
                    leave.gate_pass_id,
                ),
            )
            return int(cur.lastrowid)

    def list_for_student(self, student_id: int, *, limit: Optional[int] = None) -> Sequence[LeaveRequest]:
        sql = f"SELECT {_COLUMNS} FROM leaves l WHERE l.student_id=%s ORDER BY l.created_at DESC, l.leave_id DESC"
        params: list[object] = [int(student_id)]
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_rows(
        self,
        *,
        statuses: Optional[Iterable[LeaveStatus]] = None,
        leave_type: Optional[LeaveType] = None,
        presence: Optional[Presence] = None,
        to_before: Optional[datetime] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> Sequence[LeaveRow]:
        clauses: list[str] = []
        params: list[object] = []

        status_values = [s.value for s in statuses] if statuses is not None else []
        if statuses is not None:
            if not status_values:
                return []
            clauses.append(_in_clause("l.status", status_values))
            params.extend(status_values)
        if leave_type is not None:
            clauses.append("l.leave_type=%s")
            params.append(leave_type.value)
        if presence is not None:
            clauses.append("l.presence=%s")
            params.append(presence.value)
        if to_before is not None:
            clauses.append("l.to_datetime < %s")
            params.append(to_before)
        if created_from is not None:
            clauses.append("l.created_at >= %s")
            params.append(created_from)
        if created_to is not None:
            clauses.append("l.created_at <= %s")
            params.append(created_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS},
                    u.name AS student_name, u.email, u.hostel_block, u.room_no, u.course, u.year,
                    u.phone, u.parent_phone,
                    d.name AS decided_by_name
                FROM leaves l
                JOIN users u ON u.user_id = l.student_id
                LEFT JOIN users d ON d.user_id = l.decided_by
                WHERE {where_clause(clauses)}
                ORDER BY l.created_at DESC, l.leave_id DESC
                """,
                tuple(params),
            )
            return [_row_to_leave_row(r) for r in fetchall(cur)]

    def count_by_status(self, status: LeaveStatus, *, created_from: Optional[datetime] = None) -> int:
        clauses = ["status=%s"]
        params: list[object] = [status.value]
        if created_from is not None:
            clauses.append("created_at >= %s")
            params.append(created_from)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM leaves WHERE {where_clause(clauses)}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def record_decision(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        remarks: Optional[str],
        expected: Iterable[LeaveStatus],
    ) -> bool:
        expected_values = [s.value for s in expected]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE leaves
                SET status=%s, decided_by=%s, decided_at=%s, remarks=%s
                WHERE leave_id=%s AND {_in_clause("status", expected_values)}
                """,
                (status.value, int(decided_by), decided_at, remarks, int(leave_id), *expected_values),
            )
            return cur.rowcount > 0

    def set_gate_pass(self, leave_id: int, gate_pass_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leaves SET gate_pass_id=%s WHERE leave_id=%s AND gate_pass_id IS NULL",
                (gate_pass_id, int(leave_id)),
            )
            return cur.rowcount > 0

    def set_presence(self, leave_id: int, presence: Presence) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE leaves SET presence=%s WHERE leave_id=%s", (presence.value, int(leave_id)))
            return cur.rowcount > 0

    def record_return(
        self,
        leave_id: int,
        *,
        returned_at: datetime,
        returned_on_time: bool,
        late_return_hours: float,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaves
                SET presence=%s, returned_at=%s, returned_on_time=%s, late_return_hours=%s
                WHERE leave_id=%s
                """,
                (Presence.IN.value, returned_at, 1 if returned_on_time else 0, float(late_return_hours), int(leave_id)),
            )
            return cur.rowcount > 0
