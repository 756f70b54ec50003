from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.http import capability_required, current_role, current_user_id, fail, json_body, login_required, ok
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container
from .service import NewAccount


def _account_from_body(body: dict) -> NewAccount:
    role_s = body.get("role") or Role.STUDENT.value
    try:
        role = Role(role_s)
    except ValueError:
        raise ValidationError("Invalid role")

    year = body.get("year")
    try:
        year = int(year) if year not in (None, "") else None
    except (TypeError, ValueError):
        raise ValidationError("Year must be a number")

    return NewAccount(
        name=body.get("name", ""),
        email=body.get("email", ""),
        password=body.get("password", ""),
        role=role,
        hostel_block=body.get("hostel_block"),
        room_no=body.get("room_no"),
        course=body.get("course"),
        year=year,
        phone=body.get("phone"),
        parent_phone=body.get("parent_phone"),
    )


def register(app: Flask, container: Container) -> None:
    session_days = int(app.config.get("SESSION_DAYS", 7))

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        account = _account_from_body(json_body())
        caller = current_role() if "user_id" in session else None
        user_id = container.user_service.register(account, current_role=caller)
        user = container.user_service.get(user_id)
        return ok(user.public_view(), status=201, message="Registration successful")

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember"))
        app.permanent_session_lifetime = timedelta(days=session_days)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["hostel_block"] = s_user.hostel_block

        return ok(
            {
                "user_id": s_user.user_id,
                "name": s_user.name,
                "email": s_user.email,
                "role": s_user.role.value,
            },
            message="Login successful",
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def auth_logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", endpoint="auth_me")
    @login_required
    def auth_me():
        user = container.user_service.get(current_user_id())
        if not user.is_active:
            session.clear()
            return fail("Account is disabled", 401)
        return ok(user.public_view())

    @app.route("/api/users/students", endpoint="list_students")
    @capability_required(Capability.REVIEW_LEAVES)
    def list_students():
        students = container.user_service.list_students(
            current_role=current_role(),
            hostel_block=request.args.get("hostel_block") or None,
        )
        return ok([s.public_view() for s in students], count=len(students))

    @app.route("/api/users/<int:user_id>/deactivate", methods=["POST"], endpoint="deactivate_user")
    @capability_required(Capability.MANAGE_USERS)
    def deactivate_user(user_id: int):
        container.user_service.deactivate(current_role=current_role(), user_id=user_id)
        return ok(message="User deactivated")
