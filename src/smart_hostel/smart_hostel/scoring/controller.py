from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import capability_required, current_role, current_user_id, json_body, login_required, ok
from ..core.enums import LeaveType, Role
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container
from .service import LeaveQuery, student_view


def _leave_type(raw) -> LeaveType:
    try:
        return LeaveType(str(raw or LeaveType.REGULAR.value).upper())
    except ValueError:
        raise ValidationError("Invalid leave type")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/ml/predict", methods=["POST"], endpoint="ml_predict")
    @login_required
    def ml_predict():
        body = json_body()
        if not body.get("from_date") or not body.get("to_date"):
            raise ValidationError("from_date and to_date are required")

        query = LeaveQuery(
            student_id=current_user_id(),
            leave_type=_leave_type(body.get("leave_type")),
            start=parse_iso_datetime(body["from_date"]),
            end=parse_iso_datetime(body["to_date"]),
            reason=str(body.get("reason") or ""),
        )
        prediction = container.prediction_service.predict_for_student(query)
        if current_role() == Role.STUDENT:
            return ok(student_view(prediction))
        return ok(prediction.as_dict())

    @app.route("/api/ml/predict/<int:leave_id>", methods=["POST"], endpoint="ml_predict_leave")
    @capability_required(Capability.REVIEW_LEAVES)
    def ml_predict_leave(leave_id: int):
        return ok(container.prediction_service.predict_for_leave(current_role=current_role(), leave_id=leave_id))

    @app.route("/api/ml/predict-batch", methods=["POST"], endpoint="ml_predict_batch")
    @capability_required(Capability.REVIEW_LEAVES)
    def ml_predict_batch():
        results, summary = container.prediction_service.predict_batch(current_role=current_role())
        if not results:
            return ok([], summary=summary, message="No pending leaves to analyze")
        return ok(results, summary=summary)

    @app.route("/api/ml/patterns/<int:student_id>", endpoint="ml_patterns")
    @capability_required(Capability.REVIEW_LEAVES)
    def ml_patterns(student_id: int):
        report = container.prediction_service.patterns(current_role=current_role(), student_id=student_id)
        return ok(report.as_dict())

    @app.route("/api/ml/model-info", endpoint="ml_model_info")
    @login_required
    def ml_model_info():
        return ok(container.prediction_service.model_info())

    @app.route("/api/ml/dashboard", endpoint="ml_dashboard")
    @capability_required(Capability.REVIEW_LEAVES)
    def ml_dashboard():
        return ok(container.prediction_service.dashboard(current_role=current_role()))
