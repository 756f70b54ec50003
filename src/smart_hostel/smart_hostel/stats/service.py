from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..core.enums import RiskCategory, Role
from ..core.exceptions import NotFoundError
from ..core.permissions import Capability, ensure_capability
from ..users.repository import UserRepository
from .aggregator import StatsAggregator
from .model import StudentStatistics
from .repository import StatsRepository

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_SIZE = 10


def improvement_tips(stats: StudentStatistics) -> list[str]:
    tips = []
    if stats.attendance_percentage < 80:
        tips.append("Improve your attendance to increase approval chances for future leaves.")
    if stats.return_reliability_score < 80:
        tips.append("Return on time from leaves to build a better reliability score.")
    if stats.curfew_violations > 0:
        tips.append("Avoid curfew violations to maintain a good standing.")
    if stats.leaves_this_month > 3:
        tips.append("You have multiple leave requests this month. Space them out if possible.")
    if stats.overall_risk_score < 20:
        tips.append("Great job! Your excellent record qualifies you for auto-approval.")
    return tips


class StatsService:
    def __init__(self, stats: StatsRepository, aggregator: StatsAggregator, users: UserRepository):
        self._stats = stats
        self._aggregator = aggregator
        self._users = users

    def get_or_init(self, student_id: int, *, now: Optional[datetime] = None) -> StudentStatistics:
        """Stored snapshot, or a freshly aggregated one for a student seen for the first time."""

        stats = self._stats.get(int(student_id))
        if stats is None:
            stats = self._aggregator.refresh(int(student_id), now=now)
        return stats

    def refresh(self, student_id: int, *, now: Optional[datetime] = None) -> StudentStatistics:
        return self._aggregator.refresh(int(student_id), now=now)

    def refresh_student(self, *, current_role: Role, student_id: int, now: Optional[datetime] = None):
        ensure_capability(current_role, Capability.REFRESH_STATS)
        student = self._users.get_by_id(int(student_id))
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return self.refresh(student.user_id, now=now)

    def refresh_all(self, *, current_role: Role, now: Optional[datetime] = None) -> dict:
        """Sequential sweep; one student's failure is recorded and the sweep continues."""

        ensure_capability(current_role, Capability.REFRESH_ALL_STATS)
        processed = 0
        errors = []
        for student in self._users.list_by_role(Role.STUDENT):
            try:
                self._aggregator.refresh(student.user_id, now=now)
                processed += 1
            except Exception as e:
                logger.warning("Stats refresh failed for student %s: %s", student.user_id, e)
                errors.append({"student_id": student.user_id, "error": str(e)})

        logger.info("Stats refresh-all: %s processed, %s errors", processed, len(errors))
        return {"processed": processed, "errors": errors}

    def student_stats(self, *, current_role: Role, student_id: int) -> StudentStatistics:
        ensure_capability(current_role, Capability.VIEW_STATS)
        stats = self._stats.get(int(student_id))
        if stats is None:
            raise NotFoundError("No stats found for this student")
        return stats

    def _with_student(self, stats: StudentStatistics) -> dict:
        data = stats.as_dict()
        user = self._users.get_by_id(stats.student_id)
        data["student"] = user.public_view() if user else None
        return data

    def high_risk(self, *, current_role: Role) -> list[dict]:
        ensure_capability(current_role, Capability.VIEW_STATS)
        return [self._with_student(s) for s in self._stats.list_by_category(RiskCategory.HIGH)]

    def distribution(self, *, current_role: Role) -> dict:
        ensure_capability(current_role, Capability.VIEW_STATS)
        counts = self._stats.count_by_category()
        total = sum(counts.values())

        def share(category: RiskCategory) -> dict:
            n = counts.get(category, 0)
            return {"count": n, "percentage": round(n / total * 100) if total else 0}

        return {
            "total": total,
            "distribution": {c.value.lower(): share(c) for c in (RiskCategory.LOW, RiskCategory.MEDIUM, RiskCategory.HIGH)},
        }

    def leaderboard(self, *, limit: int = DEFAULT_LEADERBOARD_SIZE) -> list[dict]:
        rows = []
        for s in self._stats.leaderboard(limit=max(1, int(limit))):
            user = self._users.get_by_id(s.student_id)
            rows.append(
                {
                    "student_id": s.student_id,
                    "name": user.name if user else None,
                    "hostel_block": user.hostel_block if user else None,
                    "room_no": user.room_no if user else None,
                    "attendance_percentage": s.attendance_percentage,
                    "return_reliability_score": s.return_reliability_score,
                    "overall_risk_score": s.overall_risk_score,
                }
            )
        return rows

    def my_risk(self, student_id: int) -> dict:
        stats = self._stats.get(int(student_id))
        if stats is None:
            return {
                "risk_score": 0,
                "risk_category": RiskCategory.LOW.value,
                "message": "No history yet - you have a clean record!",
            }
        return {
            "risk_score": stats.overall_risk_score,
            "risk_category": stats.risk_category.value,
            "component_scores": stats.component_scores,
            "attendance_percentage": stats.attendance_percentage,
            "return_reliability_score": stats.return_reliability_score,
            "tips": improvement_tips(stats),
        }
