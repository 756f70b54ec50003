from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LeaveType, RiskCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import StudentStatistics
from .repository import StatsRepository

_FIELDS = (
    "student_id",
    "total_days",
    "present_days",
    "absent_days",
    "late_days",
    "attendance_percentage",
    "total_leaves_applied",
    "total_leaves_approved",
    "total_leaves_rejected",
    "total_leaves_auto_approved",
    "total_leaves_flagged",
    "total_leave_days_taken",
    "on_time_returns",
    "late_returns",
    "total_late_return_hours",
    "return_reliability_score",
    "curfew_violations",
    "total_curfew_violation_minutes",
    "avg_leave_duration",
    "avg_leave_gap_days",
    "frequent_leave_type",
    "leaves_this_month",
    "leaves_this_semester",
    "last_leave_date",
    "overall_risk_score",
    "risk_category",
    "component_scores",
    "last_updated",
)

_INT_FIELDS = {
    "total_days",
    "present_days",
    "absent_days",
    "late_days",
    "attendance_percentage",
    "total_leaves_applied",
    "total_leaves_approved",
    "total_leaves_rejected",
    "total_leaves_auto_approved",
    "total_leaves_flagged",
    "total_leave_days_taken",
    "on_time_returns",
    "late_returns",
    "return_reliability_score",
    "curfew_violations",
    "total_curfew_violation_minutes",
    "avg_leave_gap_days",
    "leaves_this_month",
    "leaves_this_semester",
    "overall_risk_score",
}


def _row_to_stats(r: dict) -> StudentStatistics:
    values = {k: int(r[k]) for k in _INT_FIELDS if r.get(k) is not None}
    return StudentStatistics(
        student_id=int(r["student_id"]),
        total_late_return_hours=float(r.get("total_late_return_hours") or 0),
        avg_leave_duration=float(r.get("avg_leave_duration") or 0),
        frequent_leave_type=LeaveType(r["frequent_leave_type"]) if r.get("frequent_leave_type") else None,
        last_leave_date=r.get("last_leave_date"),
        risk_category=RiskCategory(r.get("risk_category") or RiskCategory.LOW.value),
        component_scores=from_json(r.get("component_scores"), {}),
        last_updated=r.get("last_updated"),
        **values,
    )


def _params(s: StudentStatistics) -> tuple:
    values = []
    for name in _FIELDS:
        v = getattr(s, name)
        if name in ("frequent_leave_type", "risk_category"):
            v = v.value if v is not None else None
        elif name == "component_scores":
            v = to_json(v)
        values.append(v)
    return tuple(values)


class MySQLStatsRepository(StatsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, student_id: int) -> Optional[StudentStatistics]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {', '.join(_FIELDS)} FROM student_stats WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _row_to_stats(r) if r else None

    def upsert(self, stats: StudentStatistics) -> None:
        columns = ", ".join(_FIELDS)
        placeholders = ", ".join(["%s"] * len(_FIELDS))
        updates = ", ".join(f"{f}=VALUES({f})" for f in _FIELDS if f != "student_id")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO student_stats({columns}) VALUES({placeholders}) ON DUPLICATE KEY UPDATE {updates}",
                _params(stats),
            )

    def list_by_category(self, category: RiskCategory) -> Sequence[StudentStatistics]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {', '.join(_FIELDS)} FROM student_stats
                WHERE risk_category=%s
                ORDER BY overall_risk_score DESC, student_id ASC
                """,
                (category.value,),
            )
            return [_row_to_stats(r) for r in fetchall(cur)]

    def count_by_category(self) -> dict[RiskCategory, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT risk_category, COUNT(*) AS n FROM student_stats GROUP BY risk_category")
            counts = {c: 0 for c in RiskCategory}
            for r in fetchall(cur):
                counts[RiskCategory(r["risk_category"])] = int(r["n"])
            return counts

    def leaderboard(self, *, limit: int) -> Sequence[StudentStatistics]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {', '.join(_FIELDS)} FROM student_stats
                ORDER BY attendance_percentage DESC, return_reliability_score DESC, student_id ASC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_row_to_stats(r) for r in fetchall(cur)]
