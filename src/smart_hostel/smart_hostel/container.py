from __future__ import annotations

from dataclasses import dataclass

from .academic_calendar.analyzer import CalendarAnalyzer
from .academic_calendar.mysql_calendar_repository import MySQLCalendarRepository
from .academic_calendar.service import CalendarService
from .attendance.factory import CheckInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .common.datetime_utils import parse_hhmm
from .core.constants import DEFAULT_CURFEW_TIME
from .database.connection import DBConfig, DatabaseConnection
from .gate.mysql_gate_repository import MySQLGateLogRepository
from .gate.service import GateService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .reports.service import ReportService
from .scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .scoring.service import PredictionService
from .stats.aggregator import StatsAggregator
from .stats.mysql_stats_repository import MySQLStatsRepository
from .stats.service import StatsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    calendar_repo: MySQLCalendarRepository
    leaves_repo: MySQLLeaveRepository
    gate_repo: MySQLGateLogRepository
    stats_repo: MySQLStatsRepository
    audit_repo: MySQLAuditRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    calendar_service: CalendarService
    stats_service: StatsService
    prediction_service: PredictionService
    leave_service: LeaveService
    gate_service: GateService
    report_service: ReportService


def build_container(
    *,
    db_config: dict,
    curfew_time: str = DEFAULT_CURFEW_TIME,
    scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    calendar_repo = MySQLCalendarRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    gate_repo = MySQLGateLogRepository(conn)
    stats_repo = MySQLStatsRepository(conn)
    audit_repo = MySQLAuditRepository(conn)

    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        strategy_factory=CheckInStrategyFactory(curfew=parse_hhmm(curfew_time)),
    )
    analyzer = CalendarAnalyzer(calendar_repo)
    calendar_service = CalendarService(calendar_repo, analyzer)
    aggregator = StatsAggregator(
        attendance_repo,
        leaves_repo,
        stats_repo,
        profile_weights=scoring_config.profile_weights,
    )
    stats_service = StatsService(stats_repo, aggregator, users_repo)
    prediction_service = PredictionService(
        users_repo,
        leaves_repo,
        stats_service,
        analyzer,
        config=scoring_config,
    )
    leave_service = LeaveService(
        leaves_repo,
        users_repo,
        attendance_service=attendance_service,
        prediction_service=prediction_service,
        stats_service=stats_service,
        audit=audit_repo,
    )
    gate_service = GateService(
        gate_repo,
        leaves_repo,
        users_repo,
        stats_service=stats_service,
        audit=audit_repo,
    )
    report_service = ReportService(leaves_repo, attendance_repo, gate_repo, audit_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        calendar_repo=calendar_repo,
        leaves_repo=leaves_repo,
        gate_repo=gate_repo,
        stats_repo=stats_repo,
        audit_repo=audit_repo,
        auth_service=auth_service,
        user_service=user_service,
        attendance_service=attendance_service,
        calendar_service=calendar_service,
        stats_service=stats_service,
        prediction_service=prediction_service,
        leave_service=leave_service,
        gate_service=gate_service,
        report_service=report_service,
    )
