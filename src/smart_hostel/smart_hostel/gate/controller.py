from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import capability_required, current_role, current_user_id, json_body, login_required, ok
from ..core.enums import GateAction
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container


def _action(raw) -> GateAction:
    try:
        return GateAction(str(raw).upper())
    except ValueError:
        raise ValidationError("Action must be EXIT or ENTRY")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/gate/exit", methods=["POST"], endpoint="gate_exit")
    @capability_required(Capability.LOG_GATE)
    def gate_exit():
        event = container.gate_service.record_exit(
            current_role=current_role(),
            performed_by=current_user_id(),
            gate_pass_id=str(json_body().get("gate_pass_id") or ""),
        )
        return ok(event.as_dict(), message="Exit logged successfully")

    @app.route("/api/gate/entry", methods=["POST"], endpoint="gate_entry")
    @capability_required(Capability.LOG_GATE)
    def gate_entry():
        event = container.gate_service.record_entry(
            current_role=current_role(),
            performed_by=current_user_id(),
            gate_pass_id=str(json_body().get("gate_pass_id") or ""),
        )
        return ok(event.as_dict(), message="Entry logged successfully")

    @app.route("/api/gate/out", endpoint="gate_out")
    @capability_required(Capability.VIEW_GATE_LOGS)
    def gate_out():
        rows = container.gate_service.currently_out(current_role=current_role())
        return ok(rows, count=len(rows))

    @app.route("/api/gate/force-return/<int:leave_id>", methods=["PATCH"], endpoint="gate_force_return")
    @capability_required(Capability.DECIDE_LEAVES)
    def gate_force_return(leave_id: int):
        event = container.gate_service.force_return(
            current_role=current_role(),
            performed_by=current_user_id(),
            leave_id=leave_id,
            remarks=json_body().get("remarks"),
        )
        return ok(event.as_dict(), message="Student force-marked as returned")

    @app.route("/api/gate/logs", endpoint="gate_logs")
    @capability_required(Capability.VIEW_GATE_LOGS)
    def gate_logs():
        action = request.args.get("action")
        day = request.args.get("date")
        logs = container.gate_service.logs(
            current_role=current_role(),
            action=_action(action) if action else None,
            on_date=parse_iso_date(day) if day else None,
        )
        return ok([l.as_dict() for l in logs], count=len(logs))

    @app.route("/api/gate/today", endpoint="gate_today")
    @capability_required(Capability.VIEW_GATE_LOGS)
    def gate_today():
        logs = container.gate_service.today(current_role=current_role())
        return ok([l.as_dict() for l in logs], count=len(logs))

    @app.route("/api/gate/student/<int:student_id>", endpoint="gate_student_history")
    @login_required
    def gate_student_history(student_id: int):
        logs = container.gate_service.student_history(
            current_role=current_role(),
            user_id=current_user_id(),
            student_id=student_id,
        )
        return ok([l.as_dict() for l in logs], count=len(logs))
