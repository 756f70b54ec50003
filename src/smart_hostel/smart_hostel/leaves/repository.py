from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType, Presence
from .model import LeaveRequest, LeaveRow, NewLeave


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def get_by_gate_pass(self, gate_pass_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, leave: NewLeave) -> int:
        raise NotImplementedError

    def list_for_student(self, student_id: int, *, limit: Optional[int] = None) -> Sequence[LeaveRequest]:
        """Newest first (created_at desc)."""

        raise NotImplementedError

    def list_rows(
        self,
        *,
        statuses: Optional[Iterable[LeaveStatus]] = None,
        leave_type: Optional[LeaveType] = None,
        presence: Optional[Presence] = None,
        to_before: Optional[datetime] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> Sequence[LeaveRow]:
        raise NotImplementedError

    def count_by_status(self, status: LeaveStatus, *, created_from: Optional[datetime] = None) -> int:
        raise NotImplementedError

    def record_decision(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        remarks: Optional[str],
        expected: Iterable[LeaveStatus],
    ) -> bool:
        """Move to `status` only if the current status is one of `expected`."""

        raise NotImplementedError

    def set_gate_pass(self, leave_id: int, gate_pass_id: str) -> bool:
        """Set once; returns False when a gate pass already exists."""

        raise NotImplementedError

    def set_presence(self, leave_id: int, presence: Presence) -> bool:
        raise NotImplementedError

    def record_return(
        self,
        leave_id: int,
        *,
        returned_at: datetime,
        returned_on_time: bool,
        late_return_hours: float,
    ) -> bool:
        raise NotImplementedError
