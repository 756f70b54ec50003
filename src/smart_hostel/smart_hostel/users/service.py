from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_in_range, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..core.permissions import Capability, ensure_capability
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role
    hostel_block: Optional[str]


@dataclass(frozen=True)
class NewAccount:
    name: str
    email: str
    password: str
    role: Role = Role.STUDENT
    hostel_block: Optional[str] = None
    room_no: Optional[str] = None
    course: Optional[str] = None
    year: Optional[int] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        logger.info("User %s logged in as %s", user.user_id, user.role.value)
        return SessionUser(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            hostel_block=user.hostel_block,
        )


class UserService:
    """Use case: registration and user lookups."""

    def __init__(self, users: UserRepository):
        self._users = users

    def register(self, account: NewAccount, *, current_role: Optional[Role] = None) -> int:
        """Public sign-up creates students; admins may create any role."""

        if account.role != Role.STUDENT:
            if current_role is None:
                raise ValidationError("Only student accounts can self-register")
            ensure_capability(current_role, Capability.MANAGE_USERS)

        name = require_non_empty(account.name, "Name")
        email = require_non_empty(account.email, "Email").lower()
        if "@" not in email:
            raise ValidationError("Email is not valid")
        require_min_length(account.password, "Password", 6)
        if account.year is not None:
            require_in_range(int(account.year), "Year", 1, 6)

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(account.password),
            role=account.role,
            hostel_block=(account.hostel_block or "").strip() or None,
            room_no=(account.room_no or "").strip() or None,
            course=(account.course or "").strip() or None,
            year=int(account.year) if account.year is not None else None,
            phone=(account.phone or "").strip() or None,
            parent_phone=(account.parent_phone or "").strip() or None,
        )
        logger.info("Registered %s account %s", account.role.value, user_id)
        return user_id

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_students(self, *, current_role: Role, hostel_block: Optional[str] = None) -> Sequence[User]:
        ensure_capability(current_role, Capability.REVIEW_LEAVES)
        return self._users.list_by_role(Role.STUDENT, hostel_block=hostel_block)

    def deactivate(self, *, current_role: Role, user_id: int) -> None:
        ensure_capability(current_role, Capability.MANAGE_USERS)
        user = self.get(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deactivated")
        if not self._users.set_active(user.user_id, is_active=False):
            raise ValidationError("Failed to deactivate user")
