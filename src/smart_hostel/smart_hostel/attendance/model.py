from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance mark per student per day."""

    attendance_id: int
    student_id: int
    attendance_date: date
    status: AttendanceStatus
    marked_by: Optional[int] = None
    check_in_time: Optional[datetime] = None
    curfew_violation: bool = False
    violation_minutes: int = 0


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model joined with the student, for listings and exports."""

    attendance_id: int
    student_id: int
    student_name: str
    email: str
    hostel_block: Optional[str]
    room_no: Optional[str]
    attendance_date: date
    status: AttendanceStatus
    marked_by_name: Optional[str] = None
    check_in_time: Optional[datetime] = None
    curfew_violation: bool = False
    violation_minutes: int = 0

    def as_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "email": self.email,
            "hostel_block": self.hostel_block or "",
            "room_no": self.room_no or "",
            "date": self.attendance_date.isoformat(),
            "status": self.status.value,
            "marked_by": self.marked_by_name or "",
            "check_in_time": self.check_in_time.isoformat(sep=" ") if self.check_in_time else "",
            "curfew_violation": self.curfew_violation,
            "violation_minutes": self.violation_minutes,
        }
