from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, name, email, password_hash, role, hostel_block, room_no, course, year,
    phone, parent_phone, is_active, created_at
"""


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        hostel_block=row.get("hostel_block"),
        room_no=row.get("room_no"),
        course=row.get("course"),
        year=int(row["year"]) if row.get("year") is not None else None,
        phone=row.get("phone"),
        parent_phone=row.get("parent_phone"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        hostel_block: Optional[str] = None,
        room_no: Optional[str] = None,
        course: Optional[str] = None,
        year: Optional[int] = None,
        phone: Optional[str] = None,
        parent_phone: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(
                    name, email, password_hash, role, hostel_block, room_no, course, year, phone, parent_phone
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (name, email, password_hash, role.value, hostel_block, room_no, course, year, phone, parent_phone),
            )
            return int(cur.lastrowid)

    def list_by_role(self, role: Role, *, hostel_block: Optional[str] = None) -> Sequence[User]:
        clauses = ["role=%s"]
        params: list[object] = [role.value]
        if hostel_block:
            clauses.append("hostel_block=%s")
            params.append(hostel_block)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {' AND '.join(clauses)} ORDER BY name ASC",
                tuple(params),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0
