from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Iterable, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.smart_hostel.smart_hostel.academic_calendar.analyzer import CalendarAnalyzer
from src.smart_hostel.smart_hostel.academic_calendar.model import CalendarEvent, EventDraft
from src.smart_hostel.smart_hostel.academic_calendar.service import CalendarService
from src.smart_hostel.smart_hostel.attendance.factory import CheckInStrategyFactory
from src.smart_hostel.smart_hostel.attendance.model import AttendanceRecord, AttendanceReportRow
from src.smart_hostel.smart_hostel.attendance.service import AttendanceService
from src.smart_hostel.smart_hostel.audit.model import AuditLog
from src.smart_hostel.smart_hostel.core.enums import (
    AttendanceStatus,
    EventType,
    GateAction,
    LeavePolicy,
    LeaveStatus,
    LeaveType,
    Presence,
    RiskCategory,
    Role,
)
from src.smart_hostel.smart_hostel.gate.model import GateLog
from src.smart_hostel.smart_hostel.gate.service import GateService
from src.smart_hostel.smart_hostel.leaves.model import LeaveRequest, LeaveRow, NewLeave
from src.smart_hostel.smart_hostel.leaves.service import LeaveService
from src.smart_hostel.smart_hostel.reports.service import ReportService
from src.smart_hostel.smart_hostel.scoring.service import PredictionService
from src.smart_hostel.smart_hostel.stats.aggregator import StatsAggregator
from src.smart_hostel.smart_hostel.stats.model import StudentStatistics
from src.smart_hostel.smart_hostel.stats.service import StatsService
from src.smart_hostel.smart_hostel.users.model import User
from src.smart_hostel.smart_hostel.users.service import AuthService, UserService

# Monday
FIXED_NOW = datetime(2026, 3, 16, 10, 0, 0)


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self._id = 0

    def add(self, *, name: str, role: Role, password: str = "secret1", **fields) -> User:
        self._id += 1
        user = User(
            user_id=self._id,
            name=name,
            email=fields.pop("email", f"{name.lower().replace(' ', '.')}@hostel.local"),
            password_hash=generate_password_hash(password),
            role=role,
            **fields,
        )
        self.users[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role, **fields) -> int:
        self._id += 1
        self.users[self._id] = User(
            user_id=self._id, name=name, email=email, password_hash=password_hash, role=role, **fields
        )
        return self._id

    def list_by_role(self, role: Role, *, hostel_block: Optional[str] = None):
        return [
            u
            for u in self.users.values()
            if u.role == role and (hostel_block is None or u.hostel_block == hostel_block)
        ]

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, is_active=is_active)
        return True


class InMemoryAttendance:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.records: dict[tuple[int, date], AttendanceRecord] = {}
        self._id = 0

    def get_for_student_and_date(self, student_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        return self.records.get((int(student_id), attendance_date))

    def upsert(
        self,
        *,
        student_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by: Optional[int],
        check_in_time: Optional[datetime] = None,
        curfew_violation: bool = False,
        violation_minutes: int = 0,
    ) -> int:
        existing = self.records.get((student_id, attendance_date))
        if existing:
            attendance_id = existing.attendance_id
        else:
            self._id += 1
            attendance_id = self._id
        self.records[(student_id, attendance_date)] = AttendanceRecord(
            attendance_id=attendance_id,
            student_id=student_id,
            attendance_date=attendance_date,
            status=status,
            marked_by=marked_by,
            check_in_time=check_in_time,
            curfew_violation=curfew_violation,
            violation_minutes=violation_minutes,
        )
        return attendance_id

    def list_for_student(self, student_id: int, *, start_date=None, end_date=None):
        items = [
            r
            for r in self.records.values()
            if r.student_id == int(student_id)
            and (start_date is None or r.attendance_date >= start_date)
            and (end_date is None or r.attendance_date <= end_date)
        ]
        return sorted(items, key=lambda r: r.attendance_date, reverse=True)

    def list_rows(self, *, attendance_date=None, start_date=None, end_date=None, status=None, hostel_block=None):
        rows = []
        for r in self.records.values():
            student = self._users.get_by_id(r.student_id)
            if attendance_date is not None and r.attendance_date != attendance_date:
                continue
            if start_date is not None and r.attendance_date < start_date:
                continue
            if end_date is not None and r.attendance_date > end_date:
                continue
            if status is not None and r.status != status:
                continue
            if hostel_block is not None and student.hostel_block != hostel_block:
                continue
            marker = self._users.get_by_id(r.marked_by) if r.marked_by else None
            rows.append(
                AttendanceReportRow(
                    attendance_id=r.attendance_id,
                    student_id=r.student_id,
                    student_name=student.name,
                    email=student.email,
                    hostel_block=student.hostel_block,
                    room_no=student.room_no,
                    attendance_date=r.attendance_date,
                    status=r.status,
                    marked_by_name=marker.name if marker else None,
                    check_in_time=r.check_in_time,
                    curfew_violation=r.curfew_violation,
                    violation_minutes=r.violation_minutes,
                )
            )
        return sorted(rows, key=lambda r: (r.attendance_date, r.student_name), reverse=True)


class InMemoryCalendar:
    def __init__(self):
        self.events: dict[int, CalendarEvent] = {}
        self._id = 0

    def add(self, *, title: str, start: date, end: date, policy: LeavePolicy, **fields) -> CalendarEvent:
        self._id += 1
        event = CalendarEvent(
            event_id=self._id,
            title=title,
            event_type=fields.pop("event_type", EventType.EVENT),
            start_date=start,
            end_date=end,
            leave_policy=policy,
            **fields,
        )
        self.events[event.event_id] = event
        return event

    def get_by_id(self, event_id: int) -> Optional[CalendarEvent]:
        return self.events.get(int(event_id))

    def list_active_overlapping(self, start: date, end: date):
        items = [e for e in self.events.values() if e.is_active and e.overlaps(start, end)]
        return sorted(items, key=lambda e: (-e.priority, e.start_date))

    def list_active_starting_between(self, start: date, end: date):
        items = [e for e in self.events.values() if e.is_active and start <= e.start_date <= end]
        return sorted(items, key=lambda e: e.start_date)

    def list_all(self, *, academic_year=None, event_type=None, is_active=None):
        return [
            e
            for e in self.events.values()
            if (academic_year is None or e.academic_year == academic_year)
            and (event_type is None or e.event_type == event_type)
            and (is_active is None or e.is_active == is_active)
        ]

    def exists(self, *, title: str, academic_year: str) -> bool:
        return any(e.title == title and e.academic_year == academic_year for e in self.events.values())

    def create(self, draft: EventDraft, *, created_by: Optional[int]) -> int:
        self._id += 1
        self.events[self._id] = CalendarEvent(event_id=self._id, created_by=created_by, **draft.__dict__)
        return self._id

    def update(self, event_id: int, draft: EventDraft) -> bool:
        existing = self.events.get(int(event_id))
        if not existing:
            return False
        self.events[existing.event_id] = replace(existing, **draft.__dict__)
        return True

    def set_active(self, event_id: int, *, is_active: bool) -> bool:
        existing = self.events.get(int(event_id))
        if not existing:
            return False
        self.events[existing.event_id] = replace(existing, is_active=is_active)
        return True

    def delete(self, event_id: int) -> bool:
        return self.events.pop(int(event_id), None) is not None


class InMemoryLeaves:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.leaves: dict[int, LeaveRequest] = {}
        self._id = 0

    def add(
        self,
        *,
        student_id: int,
        start: datetime,
        end: datetime,
        created_at: datetime,
        leave_type: LeaveType = LeaveType.REGULAR,
        status: LeaveStatus = LeaveStatus.PENDING,
        **fields,
    ) -> LeaveRequest:
        self._id += 1
        leave = LeaveRequest(
            leave_id=self._id,
            student_id=student_id,
            leave_type=leave_type,
            from_datetime=start,
            to_datetime=end,
            reason=fields.pop("reason", "Going home for family visit"),
            status=status,
            created_at=created_at,
            **fields,
        )
        self.leaves[leave.leave_id] = leave
        return leave

    def _update(self, leave_id: int, **changes) -> bool:
        leave = self.leaves.get(int(leave_id))
        if not leave:
            return False
        self.leaves[leave.leave_id] = replace(leave, **changes)
        return True

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        return self.leaves.get(int(leave_id))

    def get_by_gate_pass(self, gate_pass_id: str) -> Optional[LeaveRequest]:
        return next((l for l in self.leaves.values() if l.gate_pass_id == gate_pass_id), None)

    def create(self, leave: NewLeave) -> int:
        self._id += 1
        self.leaves[self._id] = LeaveRequest(leave_id=self._id, **leave.__dict__)
        return self._id

    def _newest_first(self, items: Iterable[LeaveRequest]) -> list[LeaveRequest]:
        return sorted(items, key=lambda l: (l.created_at or datetime.min, l.leave_id), reverse=True)

    def list_for_student(self, student_id: int, *, limit: Optional[int] = None):
        items = self._newest_first(l for l in self.leaves.values() if l.student_id == int(student_id))
        return items[:limit] if limit is not None else items

    def list_rows(
        self,
        *,
        statuses=None,
        leave_type=None,
        presence=None,
        to_before=None,
        created_from=None,
        created_to=None,
    ):
        statuses = list(statuses) if statuses is not None else None
        rows = []
        for l in self._newest_first(self.leaves.values()):
            if statuses is not None and l.status not in statuses:
                continue
            if leave_type is not None and l.leave_type != leave_type:
                continue
            if presence is not None and l.presence != presence:
                continue
            if to_before is not None and not l.to_datetime < to_before:
                continue
            if created_from is not None and l.created_at < created_from:
                continue
            if created_to is not None and l.created_at > created_to:
                continue
            student = self._users.get_by_id(l.student_id)
            decider = self._users.get_by_id(l.decided_by) if l.decided_by else None
            rows.append(
                LeaveRow(
                    leave=l,
                    student_name=student.name,
                    email=student.email,
                    hostel_block=student.hostel_block,
                    room_no=student.room_no,
                    course=student.course,
                    year=student.year,
                    phone=student.phone,
                    parent_phone=student.parent_phone,
                    decided_by_name=decider.name if decider else None,
                )
            )
        return rows

    def count_by_status(self, status: LeaveStatus, *, created_from: Optional[datetime] = None) -> int:
        return sum(
            1
            for l in self.leaves.values()
            if l.status == status and (created_from is None or l.created_at >= created_from)
        )

    def record_decision(self, leave_id, *, status, decided_by, decided_at, remarks, expected) -> bool:
        leave = self.leaves.get(int(leave_id))
        if not leave or leave.status not in list(expected):
            return False
        return self._update(leave_id, status=status, decided_by=decided_by, decided_at=decided_at, remarks=remarks)

    def set_gate_pass(self, leave_id: int, gate_pass_id: str) -> bool:
        leave = self.leaves.get(int(leave_id))
        if not leave or leave.gate_pass_id is not None:
            return False
        return self._update(leave_id, gate_pass_id=gate_pass_id)

    def set_presence(self, leave_id: int, presence: Presence) -> bool:
        return self._update(leave_id, presence=presence)

    def record_return(self, leave_id, *, returned_at, returned_on_time, late_return_hours) -> bool:
        return self._update(
            leave_id,
            presence=Presence.IN,
            returned_at=returned_at,
            returned_on_time=returned_on_time,
            late_return_hours=late_return_hours,
        )


class InMemoryStats:
    def __init__(self):
        self.stats: dict[int, StudentStatistics] = {}
        self.upserts = 0

    def get(self, student_id: int) -> Optional[StudentStatistics]:
        return self.stats.get(int(student_id))

    def upsert(self, stats: StudentStatistics) -> None:
        self.upserts += 1
        self.stats[stats.student_id] = stats

    def list_by_category(self, category: RiskCategory):
        items = [s for s in self.stats.values() if s.risk_category == category]
        return sorted(items, key=lambda s: s.overall_risk_score, reverse=True)

    def count_by_category(self) -> dict[RiskCategory, int]:
        counts: dict[RiskCategory, int] = {}
        for s in self.stats.values():
            counts[s.risk_category] = counts.get(s.risk_category, 0) + 1
        return counts

    def leaderboard(self, *, limit: int):
        items = sorted(
            self.stats.values(),
            key=lambda s: (s.attendance_percentage, s.return_reliability_score),
            reverse=True,
        )
        return items[:limit]


class InMemoryAudit:
    def __init__(self):
        self.logs: list[AuditLog] = []

    def record(self, *, action, performed_by, target_type, target_id, details=None, timestamp=None) -> int:
        log = AuditLog(
            log_id=len(self.logs) + 1,
            action=action,
            performed_by=performed_by,
            target_type=target_type,
            target_id=target_id,
            details=details or {},
            timestamp=timestamp,
        )
        self.logs.append(log)
        return log.log_id

    def list_recent(self, *, limit: int, action: Optional[str] = None):
        items = [l for l in reversed(self.logs) if action is None or l.action == action]
        return items[:limit]


class InMemoryGateLogs:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.logs: list[GateLog] = []

    def create(self, *, student_id, leave_id, gate_pass_id, action, performed_by, timestamp) -> int:
        self.logs.append(
            GateLog(
                log_id=len(self.logs) + 1,
                student_id=student_id,
                leave_id=leave_id,
                gate_pass_id=gate_pass_id,
                action=action,
                performed_by=performed_by,
                timestamp=timestamp,
            )
        )
        return len(self.logs)

    def list_logs(self, *, action=None, start=None, end=None, student_id=None, limit=None):
        items = []
        for log in sorted(self.logs, key=lambda l: (l.timestamp, l.log_id), reverse=True):
            if action is not None and log.action != action:
                continue
            if start is not None and log.timestamp < start:
                continue
            if end is not None and log.timestamp > end:
                continue
            if student_id is not None and log.student_id != student_id:
                continue
            student = self._users.get_by_id(log.student_id)
            guard = self._users.get_by_id(log.performed_by)
            items.append(
                replace(
                    log,
                    student_name=student.name,
                    hostel_block=student.hostel_block,
                    room_no=student.room_no,
                    performed_by_name=guard.name if guard else None,
                )
            )
        return items[:limit] if limit is not None else items


@dataclass
class Hostel:
    """Services wired over in-memory repositories, the way build_container wires MySQL ones."""

    users: InMemoryUsers
    attendance: InMemoryAttendance
    calendar: InMemoryCalendar
    leaves: InMemoryLeaves
    stats: InMemoryStats
    audit: InMemoryAudit
    gate_logs: InMemoryGateLogs

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    calendar_service: CalendarService
    stats_service: StatsService
    prediction_service: PredictionService
    leave_service: LeaveService
    gate_service: GateService
    report_service: ReportService

    warden: User
    guard: User
    admin: User
    student: User


def build_hostel() -> Hostel:
    users = InMemoryUsers()
    attendance = InMemoryAttendance(users)
    calendar = InMemoryCalendar()
    leaves = InMemoryLeaves(users)
    stats = InMemoryStats()
    audit = InMemoryAudit()
    gate_logs = InMemoryGateLogs(users)

    warden = users.add(name="Warden W", role=Role.WARDEN, hostel_block="Block A")
    guard = users.add(name="Guard G", role=Role.GUARD)
    admin = users.add(name="Admin A", role=Role.ADMIN)
    student = users.add(
        name="Student S",
        role=Role.STUDENT,
        hostel_block="Block A",
        room_no="A-101",
        course="CSE",
        year=2,
        phone="9000000001",
        parent_phone="9000000002",
    )

    attendance_service = AttendanceService(
        attendance, users, strategy_factory=CheckInStrategyFactory(curfew=time(22, 0))
    )
    analyzer = CalendarAnalyzer(calendar)
    stats_service = StatsService(stats, StatsAggregator(attendance, leaves, stats), users)
    prediction_service = PredictionService(users, leaves, stats_service, analyzer)

    return Hostel(
        users=users,
        attendance=attendance,
        calendar=calendar,
        leaves=leaves,
        stats=stats,
        audit=audit,
        gate_logs=gate_logs,
        auth_service=AuthService(users),
        user_service=UserService(users),
        attendance_service=attendance_service,
        calendar_service=CalendarService(calendar, analyzer),
        stats_service=stats_service,
        prediction_service=prediction_service,
        leave_service=LeaveService(
            leaves,
            users,
            attendance_service=attendance_service,
            prediction_service=prediction_service,
            stats_service=stats_service,
            audit=audit,
        ),
        gate_service=GateService(gate_logs, leaves, users, stats_service=stats_service, audit=audit),
        report_service=ReportService(leaves, attendance, gate_logs, audit),
        warden=warden,
        guard=guard,
        admin=admin,
        student=student,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def hostel() -> Hostel:
    return build_hostel()
