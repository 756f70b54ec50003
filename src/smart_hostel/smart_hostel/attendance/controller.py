from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import capability_required, current_role, current_user_id, json_body, login_required, ok
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container
from .service import BulkMark


def _parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value or "").upper())
    except ValueError:
        raise ValidationError("Invalid status")


def _record_dict(r) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "student_id": r.student_id,
        "date": r.attendance_date.isoformat(),
        "status": r.status.value,
        "marked_by": r.marked_by,
        "check_in_time": r.check_in_time.isoformat() if r.check_in_time else None,
        "curfew_violation": r.curfew_violation,
        "violation_minutes": r.violation_minutes,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @capability_required(Capability.MARK_ATTENDANCE)
    def attendance_mark():
        body = json_body()
        if not body.get("student_id") or not body.get("date") or not body.get("status"):
            raise ValidationError("student_id, date and status are required")

        attendance_id = container.attendance_service.mark(
            current_role=current_role(),
            marked_by=current_user_id(),
            student_id=int(body["student_id"]),
            attendance_date=parse_iso_date(body["date"]),
            status=_parse_status(body["status"]),
        )
        return ok({"attendance_id": attendance_id}, message="Attendance marked successfully")

    @app.route("/api/attendance/mark-bulk", methods=["POST"], endpoint="attendance_mark_bulk")
    @capability_required(Capability.MARK_ATTENDANCE)
    def attendance_mark_bulk():
        body = json_body()
        records = body.get("records")
        if not body.get("date") or not isinstance(records, list):
            raise ValidationError("date and records array are required")

        marks = [BulkMark(student_id=int(r["student_id"]), status=_parse_status(r.get("status"))) for r in records]
        ids = container.attendance_service.mark_bulk(
            current_role=current_role(),
            marked_by=current_user_id(),
            attendance_date=parse_iso_date(body["date"]),
            marks=marks,
        )
        return ok({"attendance_ids": ids}, message=f"Attendance marked for {len(ids)} students")

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @capability_required(Capability.MARK_ATTENDANCE)
    def attendance_check_in():
        body = json_body()
        if not body.get("student_id"):
            raise ValidationError("student_id is required")
        check_in_time = parse_iso_datetime(body["check_in_time"]) if body.get("check_in_time") else None

        record = container.attendance_service.record_checkin(
            current_role=current_role(),
            marked_by=current_user_id(),
            student_id=int(body["student_id"]),
            check_in_time=check_in_time,
        )
        container.stats_service.refresh(record.student_id)
        return ok(_record_dict(record), message="Check-in recorded")

    @app.route("/api/attendance/mine", endpoint="attendance_mine")
    @login_required
    def attendance_mine():
        start = request.args.get("from")
        end = request.args.get("to")
        records, summary = container.attendance_service.list_mine(
            current_user_id(),
            start_date=parse_iso_date(start) if start else None,
            end_date=parse_iso_date(end) if end else None,
        )
        return ok([_record_dict(r) for r in records], summary=summary)

    @app.route("/api/attendance/all", endpoint="attendance_all")
    @capability_required(Capability.MARK_ATTENDANCE)
    def attendance_all():
        d = request.args.get("date")
        status = request.args.get("status")
        rows = container.attendance_service.list_all(
            current_role=current_role(),
            attendance_date=parse_iso_date(d) if d else None,
            status=_parse_status(status) if status else None,
            hostel_block=request.args.get("hostel_block") or None,
        )
        return ok([r.as_dict() for r in rows], count=len(rows))

    @app.route("/api/attendance/date/<day>", endpoint="attendance_day_sheet")
    @capability_required(Capability.MARK_ATTENDANCE)
    def attendance_day_sheet(day: str):
        attendance_date = parse_iso_date(day)
        sheet = container.attendance_service.day_sheet(
            current_role=current_role(),
            attendance_date=attendance_date,
            hostel_block=request.args.get("hostel_block") or None,
        )
        return ok(sheet, date=attendance_date.isoformat(), count=len(sheet))
