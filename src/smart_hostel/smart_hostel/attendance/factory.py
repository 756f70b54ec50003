from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from .strategies.base import CheckInStrategy
from .strategies.curfew_violation_strategy import CurfewViolationStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class CheckInStrategyFactory:
    """Factory Pattern: choose the check-in strategy against the hostel curfew."""

    curfew: time = time(22, 0)

    def curfew_for(self, check_in_time: datetime) -> datetime:
        return datetime.combine(check_in_time.date(), self.curfew)

    def for_checkin(self, *, check_in_time: datetime) -> CheckInStrategy:
        if check_in_time <= self.curfew_for(check_in_time):
            return OnTimeStrategy()
        return CurfewViolationStrategy()
