from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def from_json(value: Any, default: Any = None) -> Any:
    """Decode a MySQL JSON column.

    mysql-connector can return JSON columns as str, bytes/bytearray or an
    already-decoded object depending on the connector implementation.
    """

    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return default
        return json.loads(value)
    return value


def to_bool(value: Any) -> Optional[bool]:
    """TINYINT(1) NULL -> Optional[bool]."""

    if value is None:
        return None
    return bool(int(value))


def where_clause(clauses: list[str]) -> str:
    return " AND ".join(clauses) if clauses else "1=1"
