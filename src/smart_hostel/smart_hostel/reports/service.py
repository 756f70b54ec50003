from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..audit.repository import AuditRepository
from ..core.enums import AttendanceStatus, GateAction, LeaveStatus, LeaveType, Role
from ..core.permissions import Capability, ensure_capability
from ..gate.repository import GateLogRepository
from ..leaves.repository import LeaveRepository

AUDIT_LOG_LIMIT = 500

LEAVE_CSV_FIELDS = [
    "student_name",
    "email",
    "hostel_block",
    "room_no",
    "leave_type",
    "from",
    "to",
    "status",
    "risk_score",
    "decided_by",
    "remarks",
]
ATTENDANCE_CSV_FIELDS = ["date", "student_name", "email", "hostel_block", "room_no", "status", "marked_by"]
GATE_CSV_FIELDS = ["timestamp", "student_name", "hostel_block", "room_no", "action", "gate_pass_id", "guard"]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


def _fmt(dt: Optional[datetime]) -> str:
    return dt.strftime("%Y-%m-%d %H:%M") if dt else ""


class ReportService:
    def __init__(
        self,
        leaves: LeaveRepository,
        attendance: AttendanceRepository,
        gate_logs: GateLogRepository,
        audit: AuditRepository,
    ):
        self._leaves = leaves
        self._attendance = attendance
        self._gate_logs = gate_logs
        self._audit = audit

    def leave_report(
        self,
        *,
        current_role: Role,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ReportData:
        ensure_capability(current_role, Capability.VIEW_REPORTS)
        leave_rows = self._leaves.list_rows(created_from=start, created_to=end)

        rows = [
            {
                "leave_id": r.leave.leave_id,
                "student_name": r.student_name,
                "email": r.email,
                "hostel_block": r.hostel_block or "",
                "room_no": r.room_no or "",
                "leave_type": r.leave.leave_type.value,
                "from": _fmt(r.leave.from_datetime),
                "to": _fmt(r.leave.to_datetime),
                "status": r.leave.status.value,
                "risk_score": r.leave.risk_score if r.leave.risk_score is not None else "",
                "decided_by": r.decided_by_name or "",
                "remarks": r.leave.remarks or "",
            }
            for r in leave_rows
        ]

        statuses = Counter(r.leave.status for r in leave_rows)
        types = Counter(r.leave.leave_type for r in leave_rows)
        summary = {
            "total": len(leave_rows),
            **{s.value.lower(): statuses[s] for s in LeaveStatus},
            "by_type": {t.value.lower(): types[t] for t in LeaveType},
        }
        return ReportData(rows=rows, summary=summary)

    def attendance_report(
        self,
        *,
        current_role: Role,
        on_date: Optional[date] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> ReportData:
        ensure_capability(current_role, Capability.VIEW_REPORTS)
        if on_date is not None:
            records = self._attendance.list_rows(attendance_date=on_date)
        else:
            records = self._attendance.list_rows(start_date=start, end_date=end)

        rows = [r.as_dict() for r in records]
        statuses = Counter(r.status for r in records)
        summary = {
            "total": len(records),
            "present": statuses[AttendanceStatus.PRESENT],
            "absent": statuses[AttendanceStatus.ABSENT],
            "on_leave": statuses[AttendanceStatus.ON_LEAVE],
            "late": statuses[AttendanceStatus.LATE],
            "curfew_violations": sum(1 for r in records if r.curfew_violation),
        }
        return ReportData(rows=rows, summary=summary)

    def gate_report(
        self,
        *,
        current_role: Role,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        action: Optional[GateAction] = None,
    ) -> ReportData:
        ensure_capability(current_role, Capability.VIEW_REPORTS)
        logs = self._gate_logs.list_logs(action=action, start=start, end=end)

        rows = [
            {
                **l.as_dict(),
                "timestamp": _fmt(l.timestamp),
                "student_name": l.student_name or "",
                "hostel_block": l.hostel_block or "",
                "room_no": l.room_no or "",
                "guard": l.performed_by_name or "",
            }
            for l in logs
        ]
        actions = Counter(l.action for l in logs)
        summary = {
            "total": len(logs),
            "exits": actions[GateAction.EXIT],
            "entries": actions[GateAction.ENTRY],
        }
        return ReportData(rows=rows, summary=summary)

    def audit_logs(self, *, current_role: Role, action: Optional[str] = None) -> list[dict]:
        ensure_capability(current_role, Capability.VIEW_AUDIT)
        return [a.as_dict() for a in self._audit.list_recent(limit=AUDIT_LOG_LIMIT, action=action)]
