from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import GateAction
from .model import GateLog


class GateLogRepository(Protocol):
    def create(
        self,
        *,
        student_id: int,
        leave_id: int,
        gate_pass_id: str,
        action: GateAction,
        performed_by: int,
        timestamp: datetime,
    ) -> int:
        raise NotImplementedError

    def list_logs(
        self,
        *,
        action: Optional[GateAction] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        student_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[GateLog]:
        """Newest first; `start`/`end` bound the timestamp inclusively."""

        raise NotImplementedError
