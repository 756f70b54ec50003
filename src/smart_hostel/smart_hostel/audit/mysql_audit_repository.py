from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json, where_clause
from .model import AuditLog
from .repository import AuditRepository


def _row_to_log(r: dict) -> AuditLog:
    return AuditLog(
        log_id=int(r["log_id"]),
        action=r["action"],
        performed_by=int(r["performed_by"]),
        target_type=r["target_type"],
        target_id=int(r["target_id"]),
        details=from_json(r.get("details"), {}),
        timestamp=r.get("timestamp"),
        performed_by_name=r.get("performed_by_name"),
    )


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        *,
        action: str,
        performed_by: int,
        target_type: str,
        target_id: int,
        details: Optional[dict] = None,
        timestamp: Optional[datetime] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(action, performed_by, target_type, target_id, details, timestamp)
                VALUES(%s,%s,%s,%s,%s,COALESCE(%s, CURRENT_TIMESTAMP))
                """,
                (action, int(performed_by), target_type, int(target_id), to_json(details or {}), timestamp),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int, action: Optional[str] = None) -> Sequence[AuditLog]:
        clauses: list[str] = []
        params: list[object] = []
        if action:
            clauses.append("a.action=%s")
            params.append(action)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.log_id, a.action, a.performed_by, a.target_type, a.target_id, a.details, a.timestamp,
                    u.name AS performed_by_name
                FROM audit_logs a
                LEFT JOIN users u ON u.user_id = a.performed_by
                WHERE {where_clause(clauses)}
                ORDER BY a.timestamp DESC, a.log_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_log(r) for r in fetchall(cur)]
