from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import GateAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, where_clause
from .model import GateLog
from .repository import GateLogRepository


def _row_to_log(r: dict) -> GateLog:
    return GateLog(
        log_id=int(r["log_id"]),
        student_id=int(r["student_id"]),
        leave_id=int(r["leave_id"]),
        gate_pass_id=r["gate_pass_id"],
        action=GateAction(r["action"]),
        performed_by=int(r["performed_by"]),
        timestamp=r["timestamp"],
        student_name=r.get("student_name"),
        hostel_block=r.get("hostel_block"),
        room_no=r.get("room_no"),
        performed_by_name=r.get("performed_by_name"),
    )


class MySQLGateLogRepository(GateLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        student_id: int,
        leave_id: int,
        gate_pass_id: str,
        action: GateAction,
        performed_by: int,
        timestamp: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO gate_logs(student_id, leave_id, gate_pass_id, action, performed_by, timestamp)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(student_id), int(leave_id), gate_pass_id, action.value, int(performed_by), timestamp),
            )
            return int(cur.lastrowid)

    def list_logs(
        self,
        *,
        action: Optional[GateAction] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        student_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[GateLog]:
        clauses: list[str] = []
        params: list[object] = []
        if action is not None:
            clauses.append("g.action=%s")
            params.append(action.value)
        if start is not None:
            clauses.append("g.timestamp >= %s")
            params.append(start)
        if end is not None:
            clauses.append("g.timestamp <= %s")
            params.append(end)
        if student_id is not None:
            clauses.append("g.student_id=%s")
            params.append(int(student_id))

        sql = f"""
            SELECT g.log_id, g.student_id, g.leave_id, g.gate_pass_id, g.action, g.performed_by, g.timestamp,
                s.name AS student_name, s.hostel_block, s.room_no,
                p.name AS performed_by_name
            FROM gate_logs g
            JOIN users s ON s.user_id = g.student_id
            LEFT JOIN users p ON p.user_id = g.performed_by
            WHERE {where_clause(clauses)}
            ORDER BY g.timestamp DESC, g.log_id DESC
        """
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_log(r) for r in fetchall(cur)]
