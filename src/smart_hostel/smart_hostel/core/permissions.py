"""Role -> capability table.

Services check capabilities on the caller's role instead of comparing roles
directly, so adding a role only touches this module.
"""

from __future__ import annotations

from enum import Enum

from .enums import Role
from .exceptions import AuthorizationError


class Capability(str, Enum):
    APPLY_LEAVE = "apply_leave"
    VIEW_OWN = "view_own"
    REVIEW_LEAVES = "review_leaves"
    DECIDE_LEAVES = "decide_leaves"
    MARK_ATTENDANCE = "mark_attendance"
    LOG_GATE = "log_gate"
    VIEW_OVERSTAY = "view_overstay"
    VIEW_GATE_LOGS = "view_gate_logs"
    MANAGE_CALENDAR = "manage_calendar"
    VIEW_STATS = "view_stats"
    REFRESH_STATS = "refresh_stats"
    REFRESH_ALL_STATS = "refresh_all_stats"
    VIEW_REPORTS = "view_reports"
    VIEW_AUDIT = "view_audit"
    MANAGE_USERS = "manage_users"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.STUDENT: frozenset({Capability.APPLY_LEAVE, Capability.VIEW_OWN}),
    Role.WARDEN: frozenset(
        {
            Capability.REVIEW_LEAVES,
            Capability.DECIDE_LEAVES,
            Capability.MARK_ATTENDANCE,
            Capability.VIEW_OVERSTAY,
            Capability.VIEW_GATE_LOGS,
            Capability.MANAGE_CALENDAR,
            Capability.VIEW_STATS,
            Capability.REFRESH_STATS,
            Capability.VIEW_REPORTS,
        }
    ),
    Role.GUARD: frozenset(
        {Capability.LOG_GATE, Capability.VIEW_OVERSTAY, Capability.VIEW_GATE_LOGS, Capability.MARK_ATTENDANCE}
    ),
    Role.ADMIN: frozenset(Capability) - {Capability.APPLY_LEAVE},
}


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def ensure_capability(role: Role, capability: Capability) -> None:
    if not has_capability(role, capability):
        raise AuthorizationError("You are not allowed to perform this action")
