import pytest

from src.smart_hostel.smart_hostel.core.enums import Role
from src.smart_hostel.smart_hostel.core.exceptions import AuthorizationError
from src.smart_hostel.smart_hostel.core.permissions import Capability, ensure_capability, has_capability


@pytest.mark.parametrize(
    "role,capability,allowed",
    [
        (Role.STUDENT, Capability.APPLY_LEAVE, True),
        (Role.STUDENT, Capability.REVIEW_LEAVES, False),
        (Role.WARDEN, Capability.DECIDE_LEAVES, True),
        (Role.WARDEN, Capability.LOG_GATE, False),
        (Role.WARDEN, Capability.REFRESH_ALL_STATS, False),
        (Role.GUARD, Capability.LOG_GATE, True),
        (Role.GUARD, Capability.DECIDE_LEAVES, False),
        (Role.ADMIN, Capability.VIEW_AUDIT, True),
        (Role.ADMIN, Capability.APPLY_LEAVE, False),
    ],
)
def test_role_capabilities(role, capability, allowed):
    assert has_capability(role, capability) is allowed


def test_ensure_capability_raises():
    with pytest.raises(AuthorizationError):
        ensure_capability(Role.GUARD, Capability.VIEW_AUDIT)

    ensure_capability(Role.ADMIN, Capability.MANAGE_USERS)
