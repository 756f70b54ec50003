from __future__ import annotations

import math
from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision


class CurfewViolationStrategy(CheckInStrategy):
    """Checked in after curfew: LATE, with the overrun in whole minutes (rounded up)."""

    def decide(self, *, check_in_time: datetime, curfew_at: datetime) -> StatusDecision:
        minutes = math.ceil((check_in_time - curfew_at).total_seconds() / 60)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            curfew_violation=True,
            violation_minutes=max(1, int(minutes)),
        )
