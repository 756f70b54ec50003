from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import capability_required, csv_response, current_role, ok
from ..core.enums import GateAction
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container
from .service import ATTENDANCE_CSV_FIELDS, GATE_CSV_FIELDS, LEAVE_CSV_FIELDS


def _arg_datetime(name: str):
    raw = request.args.get(name)
    return parse_iso_datetime(raw) if raw else None


def _arg_date(name: str):
    raw = request.args.get(name)
    return parse_iso_date(raw) if raw else None


def _wants_csv() -> bool:
    return (request.args.get("format") or "").lower() == "csv"


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports/leaves", endpoint="reports_leaves")
    @capability_required(Capability.VIEW_REPORTS)
    def reports_leaves():
        data = container.report_service.leave_report(
            current_role=current_role(),
            start=_arg_datetime("from"),
            end=_arg_datetime("to"),
        )
        if _wants_csv():
            return csv_response(app, rows=data.rows, fieldnames=LEAVE_CSV_FIELDS, filename="leave-report.csv")
        return ok(data.rows, summary=data.summary, count=len(data.rows))

    @app.route("/api/reports/attendance", endpoint="reports_attendance")
    @capability_required(Capability.VIEW_REPORTS)
    def reports_attendance():
        data = container.report_service.attendance_report(
            current_role=current_role(),
            on_date=_arg_date("date"),
            start=_arg_date("from"),
            end=_arg_date("to"),
        )
        if _wants_csv():
            return csv_response(app, rows=data.rows, fieldnames=ATTENDANCE_CSV_FIELDS, filename="attendance-report.csv")
        return ok(data.rows, summary=data.summary, count=len(data.rows))

    @app.route("/api/reports/gate-logs", endpoint="reports_gate_logs")
    @capability_required(Capability.VIEW_REPORTS)
    def reports_gate_logs():
        action = request.args.get("action")
        try:
            gate_action = GateAction(action.upper()) if action else None
        except ValueError:
            raise ValidationError("Action must be EXIT or ENTRY")

        data = container.report_service.gate_report(
            current_role=current_role(),
            start=_arg_datetime("from"),
            end=_arg_datetime("to"),
            action=gate_action,
        )
        if _wants_csv():
            return csv_response(app, rows=data.rows, fieldnames=GATE_CSV_FIELDS, filename="gate-logs-report.csv")
        return ok(data.rows, summary=data.summary, count=len(data.rows))

    @app.route("/api/reports/audit-logs", endpoint="reports_audit_logs")
    @capability_required(Capability.VIEW_AUDIT)
    def reports_audit_logs():
        logs = container.report_service.audit_logs(current_role=current_role(), action=request.args.get("action"))
        return ok(logs, count=len(logs))
