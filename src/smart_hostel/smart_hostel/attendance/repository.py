from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    def get_for_student_and_date(self, student_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        student_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by: Optional[int],
        check_in_time: Optional[datetime] = None,
        curfew_violation: bool = False,
        violation_minutes: int = 0,
    ) -> int:
        """Insert or replace the mark for (student, date); returns attendance_id."""

        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_rows(
        self,
        *,
        attendance_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        hostel_block: Optional[str] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
