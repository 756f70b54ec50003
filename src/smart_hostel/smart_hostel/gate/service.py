from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Sequence

from ..audit.repository import AuditRepository
from ..common.datetime_utils import now_local
from ..common.notifications import notify_parent
from ..common.validators import require_non_empty
from ..core.enums import GateAction, Presence, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..core.permissions import Capability, ensure_capability
from ..leaves.model import APPROVED_STATUSES, LeaveRequest
from ..leaves.repository import LeaveRepository
from ..stats.service import StatsService
from ..users.repository import UserRepository
from .model import GateLog
from .repository import GateLogRepository

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 100
SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class GateEvent:
    log: GateLog
    leave: LeaveRequest
    student_name: str
    is_overstayed: bool = False

    def as_dict(self) -> dict:
        return {
            "gate_log": self.log.as_dict(),
            "student": self.student_name,
            "leave_id": self.leave.leave_id,
            "is_overstayed": self.is_overstayed,
        }


def late_hours(to_datetime: datetime, returned_at: datetime) -> float:
    if returned_at <= to_datetime:
        return 0.0
    return round((returned_at - to_datetime).total_seconds() / SECONDS_PER_HOUR, 2)


class GateService:
    def __init__(
        self,
        gate_logs: GateLogRepository,
        leaves: LeaveRepository,
        users: UserRepository,
        *,
        stats_service: StatsService,
        audit: AuditRepository,
    ):
        self._logs = gate_logs
        self._leaves = leaves
        self._users = users
        self._stats = stats_service
        self._audit = audit

    def _leave_for_pass(self, gate_pass_id: str) -> LeaveRequest:
        gate_pass_id = require_non_empty(gate_pass_id, "Gate Pass ID")
        leave = self._leaves.get_by_gate_pass(gate_pass_id)
        if not leave:
            raise NotFoundError("Invalid Gate Pass ID")
        return leave

    def _student_name(self, student_id: int) -> str:
        user = self._users.get_by_id(int(student_id))
        return user.name if user else str(student_id)

    def _log(self, leave: LeaveRequest, *, action: GateAction, performed_by: int, now: datetime) -> GateLog:
        log_id = self._logs.create(
            student_id=leave.student_id,
            leave_id=leave.leave_id,
            gate_pass_id=leave.gate_pass_id or "",
            action=action,
            performed_by=int(performed_by),
            timestamp=now,
        )
        return GateLog(
            log_id=log_id,
            student_id=leave.student_id,
            leave_id=leave.leave_id,
            gate_pass_id=leave.gate_pass_id or "",
            action=action,
            performed_by=int(performed_by),
            timestamp=now,
        )

    def record_exit(
        self,
        *,
        current_role: Role,
        performed_by: int,
        gate_pass_id: str,
        now: Optional[datetime] = None,
    ) -> GateEvent:
        ensure_capability(current_role, Capability.LOG_GATE)
        now = now or now_local()
        leave = self._leave_for_pass(gate_pass_id)

        if leave.status not in APPROVED_STATUSES:
            raise ConflictError("Leave is not approved")
        if leave.presence == Presence.OUT:
            raise ConflictError("Student has already exited")
        if now < leave.from_datetime:
            raise ConflictError("Leave period has not started yet")

        log = self._log(leave, action=GateAction.EXIT, performed_by=performed_by, now=now)
        self._leaves.set_presence(leave.leave_id, Presence.OUT)

        name = self._student_name(leave.student_id)
        notify_parent("EXIT", name, f"Exited hostel at {now:%Y-%m-%d %H:%M}")
        logger.info("Gate EXIT: student %s on leave %s", leave.student_id, leave.leave_id)
        return GateEvent(log=log, leave=leave, student_name=name)

    def record_entry(
        self,
        *,
        current_role: Role,
        performed_by: int,
        gate_pass_id: str,
        now: Optional[datetime] = None,
    ) -> GateEvent:
        ensure_capability(current_role, Capability.LOG_GATE)
        now = now or now_local()
        leave = self._leave_for_pass(gate_pass_id)

        if leave.presence != Presence.OUT:
            raise ConflictError("Student has not exited or already returned")

        log = self._log(leave, action=GateAction.ENTRY, performed_by=performed_by, now=now)
        on_time = now <= leave.to_datetime
        self._leaves.record_return(
            leave.leave_id,
            returned_at=now,
            returned_on_time=on_time,
            late_return_hours=late_hours(leave.to_datetime, now),
        )

        name = self._student_name(leave.student_id)
        notify_parent("ENTRY", name, f"Returned to hostel at {now:%Y-%m-%d %H:%M}{'' if on_time else ' (OVERSTAYED)'}")
        if not on_time:
            logger.warning("Late return: student %s on leave %s", leave.student_id, leave.leave_id)

        self._stats.refresh(leave.student_id, now=now)
        return GateEvent(log=log, leave=leave, student_name=name, is_overstayed=not on_time)

    def force_return(
        self,
        *,
        current_role: Role,
        performed_by: int,
        leave_id: int,
        remarks: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GateEvent:
        """Warden override: mark a student back inside without a gate scan."""

        ensure_capability(current_role, Capability.DECIDE_LEAVES)
        now = now or now_local()
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave not found")
        if leave.presence != Presence.OUT:
            raise ConflictError("Student is not currently out")

        log = self._log(leave, action=GateAction.ENTRY, performed_by=performed_by, now=now)
        self._leaves.set_presence(leave.leave_id, Presence.IN)

        name = self._student_name(leave.student_id)
        self._audit.record(
            action="FORCE_RETURN",
            performed_by=int(performed_by),
            target_type="Leave",
            target_id=leave.leave_id,
            details={"remarks": remarks, "student_name": name},
            timestamp=now,
        )
        logger.info("Force return: student %s on leave %s by %s", leave.student_id, leave.leave_id, performed_by)

        self._stats.refresh(leave.student_id, now=now)
        return GateEvent(log=log, leave=leave, student_name=name, is_overstayed=now > leave.to_datetime)

    def currently_out(self, *, current_role: Role, now: Optional[datetime] = None) -> list[dict]:
        ensure_capability(current_role, Capability.VIEW_GATE_LOGS)
        now = now or now_local()
        rows = self._leaves.list_rows(statuses=APPROVED_STATUSES, presence=Presence.OUT)
        rows = sorted(rows, key=lambda r: r.leave.from_datetime, reverse=True)
        return [
            {
                "leave_id": r.leave.leave_id,
                "student": {
                    "user_id": r.leave.student_id,
                    "name": r.student_name,
                    "email": r.email,
                    "hostel_block": r.hostel_block,
                    "room_no": r.room_no,
                    "phone": r.phone,
                },
                "leave_type": r.leave.leave_type.value,
                "from_datetime": r.leave.from_datetime.isoformat(),
                "to_datetime": r.leave.to_datetime.isoformat(),
                "gate_pass_id": r.leave.gate_pass_id,
                "is_overstayed": now > r.leave.to_datetime,
            }
            for r in rows
        ]

    def logs(
        self,
        *,
        current_role: Role,
        action: Optional[GateAction] = None,
        on_date: Optional[date] = None,
        limit: int = DEFAULT_LOG_LIMIT,
    ) -> Sequence[GateLog]:
        ensure_capability(current_role, Capability.VIEW_GATE_LOGS)
        start = end = None
        if on_date is not None:
            start = datetime.combine(on_date, time.min)
            end = datetime.combine(on_date, time.max)
        return self._logs.list_logs(action=action, start=start, end=end, limit=limit)

    def today(self, *, current_role: Role, now: Optional[datetime] = None) -> Sequence[GateLog]:
        return self.logs(current_role=current_role, on_date=(now or now_local()).date(), limit=None)

    def student_history(self, *, current_role: Role, user_id: int, student_id: int) -> Sequence[GateLog]:
        if current_role == Role.STUDENT:
            if int(student_id) != int(user_id):
                raise AuthorizationError("Not authorized to view these gate logs")
        else:
            ensure_capability(current_role, Capability.VIEW_GATE_LOGS)
        return self._logs.list_logs(student_id=int(student_id))
