from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class StudentScope:
    """Attributes calendar events can be scoped to."""

    hostel_block: Optional[str] = None
    course: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class User:
    """Domain entity: a hostel user (student, warden, guard or admin).

    Plain data object; no database access here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    hostel_block: Optional[str] = None
    room_no: Optional[str] = None
    course: Optional[str] = None
    year: Optional[int] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def scope(self) -> StudentScope:
        return StudentScope(hostel_block=self.hostel_block, course=self.course, year=self.year)

    def public_view(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "hostel_block": self.hostel_block,
            "room_no": self.room_no,
            "course": self.course,
            "year": self.year,
            "phone": self.phone,
            "is_active": self.is_active,
        }
