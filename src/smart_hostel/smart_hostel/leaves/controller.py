from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import capability_required, current_role, current_user_id, json_body, login_required, ok
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container
from ..scoring.service import student_view


def _leave_type(raw) -> LeaveType:
    try:
        return LeaveType(str(raw or LeaveType.REGULAR.value).upper())
    except ValueError:
        raise ValidationError("Invalid leave type")


def _status(raw) -> LeaveStatus:
    try:
        return LeaveStatus(str(raw).upper())
    except ValueError:
        raise ValidationError("Invalid status")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leaves/apply", methods=["POST"], endpoint="leaves_apply")
    @capability_required(Capability.APPLY_LEAVE)
    def leaves_apply():
        body = json_body()
        if not body.get("from_datetime") or not body.get("to_datetime"):
            raise ValidationError("from_datetime and to_datetime are required")

        leave, prediction = container.leave_service.apply(
            current_role=current_role(),
            student_id=current_user_id(),
            leave_type=_leave_type(body.get("leave_type")),
            start=parse_iso_datetime(body["from_datetime"]),
            end=parse_iso_datetime(body["to_datetime"]),
            reason=str(body.get("reason") or ""),
        )
        return ok(
            leave.as_dict(),
            status=201,
            prediction=student_view(prediction),
            message="Leave application submitted successfully",
        )

    @app.route("/api/leaves/mine", endpoint="leaves_mine")
    @capability_required(Capability.APPLY_LEAVE)
    def leaves_mine():
        leaves = container.leave_service.mine(current_user_id())
        return ok([l.as_dict() for l in leaves], count=len(leaves))

    @app.route("/api/leaves/pending", endpoint="leaves_pending")
    @capability_required(Capability.REVIEW_LEAVES)
    def leaves_pending():
        rows = container.leave_service.pending(current_role=current_role())
        return ok([r.as_dict() for r in rows], count=len(rows))

    @app.route("/api/leaves/all", endpoint="leaves_all")
    @capability_required(Capability.REVIEW_LEAVES)
    def leaves_all():
        status = request.args.get("status")
        leave_type = request.args.get("leave_type")
        rows = container.leave_service.list_all(
            current_role=current_role(),
            status=_status(status) if status else None,
            leave_type=_leave_type(leave_type) if leave_type else None,
        )
        return ok([r.as_dict() for r in rows], count=len(rows))

    @app.route("/api/leaves/emergency", endpoint="leaves_emergency")
    @capability_required(Capability.REVIEW_LEAVES)
    def leaves_emergency():
        rows = container.leave_service.emergency(current_role=current_role())
        return ok([r.as_dict() for r in rows], count=len(rows))

    @app.route("/api/leaves/overstay", endpoint="leaves_overstay")
    @capability_required(Capability.VIEW_OVERSTAY)
    def leaves_overstay():
        rows = container.leave_service.overstayed(current_role=current_role())
        return ok([r.as_dict() for r in rows], count=len(rows))

    @app.route("/api/leaves/<int:leave_id>/decision", methods=["PATCH"], endpoint="leaves_decision")
    @capability_required(Capability.DECIDE_LEAVES)
    def leaves_decision(leave_id: int):
        body = json_body()
        leave = container.leave_service.decide(
            current_role=current_role(),
            decided_by=current_user_id(),
            leave_id=leave_id,
            action=str(body.get("action") or ""),
            remarks=body.get("remarks"),
        )
        return ok(leave.as_dict(), message=f"Leave {leave.status.value.lower()} successfully")

    @app.route("/api/leaves/<int:leave_id>/override", methods=["PATCH"], endpoint="leaves_override")
    @capability_required(Capability.DECIDE_LEAVES)
    def leaves_override(leave_id: int):
        leave = container.leave_service.override(
            current_role=current_role(),
            decided_by=current_user_id(),
            leave_id=leave_id,
            remarks=json_body().get("remarks"),
        )
        return ok(leave.as_dict(), message="Auto-approval revoked")

    @app.route("/api/leaves/<int:leave_id>", endpoint="leaves_get")
    @login_required
    def leaves_get(leave_id: int):
        leave = container.leave_service.get(current_role=current_role(), user_id=current_user_id(), leave_id=leave_id)
        data = leave.as_dict()
        if current_role() == Role.STUDENT:
            # the frozen scoring snapshot is for reviewers
            data.pop("decision_factors", None)
        return ok(data)

    @app.route("/api/leaves/<int:leave_id>/gate-pass.png", endpoint="leaves_gate_pass_png")
    @login_required
    def leaves_gate_pass_png(leave_id: int):
        gate_pass_id, png = container.leave_service.gate_pass_png(
            current_role=current_role(),
            user_id=current_user_id(),
            leave_id=leave_id,
        )
        return send_file(io.BytesIO(png), mimetype="image/png", download_name=f"{gate_pass_id}.png")
