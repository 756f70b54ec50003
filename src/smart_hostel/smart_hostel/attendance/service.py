from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import iter_dates
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..core.permissions import Capability, ensure_capability
from ..users.repository import UserRepository
from .factory import CheckInStrategyFactory
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# LATE is only produced by the curfew check-in.
MANUAL_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.ON_LEAVE)


@dataclass(frozen=True)
class BulkMark:
    student_id: int
    status: AttendanceStatus


def summarize(records: Iterable[AttendanceRecord]) -> dict:
    summary = {"total": 0, "present": 0, "absent": 0, "on_leave": 0, "late": 0}
    for r in records:
        summary["total"] += 1
        key = r.status.value.lower()
        summary[key] = summary.get(key, 0) + 1
    return summary


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: CheckInStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or CheckInStrategyFactory()

    def _require_student(self, student_id: int):
        user = self._users.get_by_id(int(student_id))
        if not user or user.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return user

    def mark(
        self,
        *,
        current_role: Role,
        marked_by: int,
        student_id: int,
        attendance_date: date,
        status: AttendanceStatus,
    ) -> int:
        ensure_capability(current_role, Capability.MARK_ATTENDANCE)
        if status not in MANUAL_STATUSES:
            raise ValidationError("Invalid status")
        self._require_student(student_id)

        return self._attendance.upsert(
            student_id=int(student_id),
            attendance_date=attendance_date,
            status=status,
            marked_by=int(marked_by),
        )

    def mark_bulk(
        self,
        *,
        current_role: Role,
        marked_by: int,
        attendance_date: date,
        marks: Sequence[BulkMark],
    ) -> list[int]:
        ensure_capability(current_role, Capability.MARK_ATTENDANCE)
        if not marks:
            raise ValidationError("records must not be empty")
        for m in marks:
            if m.status not in MANUAL_STATUSES:
                raise ValidationError(f"Invalid status for student {m.student_id}")

        ids = [
            self._attendance.upsert(
                student_id=int(m.student_id),
                attendance_date=attendance_date,
                status=m.status,
                marked_by=int(marked_by),
            )
            for m in marks
        ]
        logger.info("Marked attendance for %s students on %s", len(ids), attendance_date)
        return ids

    def record_checkin(
        self,
        *,
        current_role: Role,
        marked_by: int,
        student_id: int,
        check_in_time: datetime | None = None,
    ) -> AttendanceRecord:
        """Classify an evening check-in against the curfew and store it for that day."""

        ensure_capability(current_role, Capability.MARK_ATTENDANCE)
        self._require_student(student_id)

        check_in_time = check_in_time or datetime.now()
        curfew_at = self._factory.curfew_for(check_in_time)
        strategy = self._factory.for_checkin(check_in_time=check_in_time)
        decision = strategy.decide(check_in_time=check_in_time, curfew_at=curfew_at)

        attendance_id = self._attendance.upsert(
            student_id=int(student_id),
            attendance_date=check_in_time.date(),
            status=decision.status,
            marked_by=int(marked_by),
            check_in_time=check_in_time,
            curfew_violation=decision.curfew_violation,
            violation_minutes=decision.violation_minutes,
        )
        if decision.curfew_violation:
            logger.warning(
                "Curfew violation: student %s checked in %s minutes late",
                student_id,
                decision.violation_minutes,
            )

        return AttendanceRecord(
            attendance_id=attendance_id,
            student_id=int(student_id),
            attendance_date=check_in_time.date(),
            status=decision.status,
            marked_by=int(marked_by),
            check_in_time=check_in_time,
            curfew_violation=decision.curfew_violation,
            violation_minutes=decision.violation_minutes,
        )

    def mark_on_leave_range(self, *, student_id: int, start: datetime, end: datetime, marked_by: Optional[int]) -> int:
        """Mark every calendar day covered by an approved leave as ON_LEAVE."""

        count = 0
        for d in iter_dates(start.date(), end.date()):
            self._attendance.upsert(
                student_id=int(student_id),
                attendance_date=d,
                status=AttendanceStatus.ON_LEAVE,
                marked_by=marked_by,
            )
            count += 1
        return count

    def list_mine(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[Sequence[AttendanceRecord], dict]:
        records = self._attendance.list_for_student(int(student_id), start_date=start_date, end_date=end_date)
        return records, summarize(records)

    def list_all(
        self,
        *,
        current_role: Role,
        attendance_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        hostel_block: Optional[str] = None,
    ) -> Sequence[AttendanceReportRow]:
        ensure_capability(current_role, Capability.MARK_ATTENDANCE)
        return self._attendance.list_rows(attendance_date=attendance_date, status=status, hostel_block=hostel_block)

    def day_sheet(self, *, current_role: Role, attendance_date: date, hostel_block: Optional[str] = None) -> list[dict]:
        """Every active student with their mark for the day (NOT_MARKED when missing)."""

        ensure_capability(current_role, Capability.MARK_ATTENDANCE)
        students = [s for s in self._users.list_by_role(Role.STUDENT, hostel_block=hostel_block) if s.is_active]
        marks = {r.student_id: r for r in self._attendance.list_rows(attendance_date=attendance_date)}

        sheet = []
        for s in students:
            record = marks.get(s.user_id)
            sheet.append(
                {
                    "student": s.public_view(),
                    "status": record.status.value if record else "NOT_MARKED",
                    "attendance_id": record.attendance_id if record else None,
                }
            )
        return sheet
