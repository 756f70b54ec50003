from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """User repository interface.

    Services depend on this protocol, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_by_role(self, role: Role, *, hostel_block: Optional[str] = None) -> Sequence[User]:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
