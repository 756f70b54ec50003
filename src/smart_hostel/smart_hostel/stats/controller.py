from __future__ import annotations

from flask import Flask

from ..common.http import capability_required, current_role, current_user_id, login_required, ok, query_int
from ..core.permissions import Capability
from ..container import Container
from .service import DEFAULT_LEADERBOARD_SIZE


def register(app: Flask, container: Container) -> None:
    @app.route("/api/stats/my-stats", endpoint="stats_my_stats")
    @capability_required(Capability.VIEW_OWN)
    def stats_my_stats():
        return ok(container.stats_service.get_or_init(current_user_id()).as_dict())

    @app.route("/api/stats/my-risk", endpoint="stats_my_risk")
    @capability_required(Capability.VIEW_OWN)
    def stats_my_risk():
        return ok(container.stats_service.my_risk(current_user_id()))

    @app.route("/api/stats/student/<int:student_id>", endpoint="stats_student")
    @capability_required(Capability.VIEW_STATS)
    def stats_student(student_id: int):
        stats = container.stats_service.student_stats(current_role=current_role(), student_id=student_id)
        return ok(stats.as_dict())

    @app.route("/api/stats/refresh/<int:student_id>", methods=["POST"], endpoint="stats_refresh")
    @capability_required(Capability.REFRESH_STATS)
    def stats_refresh(student_id: int):
        stats = container.stats_service.refresh_student(current_role=current_role(), student_id=student_id)
        return ok(stats.as_dict(), message="Stats refreshed successfully")

    @app.route("/api/stats/high-risk", endpoint="stats_high_risk")
    @capability_required(Capability.VIEW_STATS)
    def stats_high_risk():
        rows = container.stats_service.high_risk(current_role=current_role())
        return ok(rows, count=len(rows))

    @app.route("/api/stats/distribution", endpoint="stats_distribution")
    @capability_required(Capability.VIEW_STATS)
    def stats_distribution():
        return ok(container.stats_service.distribution(current_role=current_role()))

    @app.route("/api/stats/refresh-all", methods=["POST"], endpoint="stats_refresh_all")
    @capability_required(Capability.REFRESH_ALL_STATS)
    def stats_refresh_all():
        results = container.stats_service.refresh_all(current_role=current_role())
        return ok(results, message=f"Processed {results['processed']} students")

    @app.route("/api/stats/leaderboard", endpoint="stats_leaderboard")
    @login_required
    def stats_leaderboard():
        limit = query_int("limit", DEFAULT_LEADERBOARD_SIZE)
        return ok(container.stats_service.leaderboard(limit=limit))
