from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision


class OnTimeStrategy(CheckInStrategy):
    """Checked in before curfew."""

    def decide(self, *, check_in_time: datetime, curfew_at: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
