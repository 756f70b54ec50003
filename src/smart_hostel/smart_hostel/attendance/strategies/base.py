from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    curfew_violation: bool = False
    violation_minutes: int = 0


class CheckInStrategy(ABC):
    """Strategy Pattern: encapsulate how an evening check-in is classified."""

    @abstractmethod
    def decide(self, *, check_in_time: datetime, curfew_at: datetime) -> StatusDecision:
        raise NotImplementedError
