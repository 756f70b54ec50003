from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    STUDENT = "student"
    WARDEN = "warden"
    GUARD = "guard"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    ON_LEAVE = "ON_LEAVE"
    LATE = "LATE"


class LeaveType(str, Enum):
    REGULAR = "REGULAR"
    EMERGENCY = "EMERGENCY"
    MEDICAL = "MEDICAL"
    OTHER = "OTHER"


class LeaveStatus(str, Enum):
    """Lifecycle of a leave request."""

    PENDING = "PENDING"
    FLAGGED = "FLAGGED"
    AUTO_APPROVED = "AUTO_APPROVED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Presence(str, Enum):
    """Whether the student is inside the hostel for a given leave."""

    IN = "IN"
    OUT = "OUT"


class GateAction(str, Enum):
    EXIT = "EXIT"
    ENTRY = "ENTRY"


class RiskCategory(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class EventType(str, Enum):
    EXAM = "EXAM"
    EXAM_PREP = "EXAM_PREP"
    HOLIDAY = "HOLIDAY"
    RESTRICTED = "RESTRICTED"
    EVENT = "EVENT"
    VACATION = "VACATION"
    ORIENTATION = "ORIENTATION"
    FESTIVAL = "FESTIVAL"


class LeavePolicy(str, Enum):
    BLOCKED = "BLOCKED"
    FLAGGED = "FLAGGED"
    DISCOURAGED = "DISCOURAGED"
    NORMAL = "NORMAL"
    ENCOURAGED = "ENCOURAGED"


class Semester(str, Enum):
    ODD = "ODD"
    EVEN = "EVEN"
    BOTH = "BOTH"


class CalendarRecommendation(str, Enum):
    APPROVE = "APPROVE"
    AUTO_APPROVE = "AUTO_APPROVE"
    FLAG = "FLAG"
    REJECT = "REJECT"


class DecisionAction(str, Enum):
    AUTO_APPROVE = "AUTO_APPROVE"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    FLAG = "FLAG"
    REJECT = "REJECT"


class Impact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class PatternType(str, Enum):
    WEEKEND_EXTENSION = "WEEKEND_EXTENSION"
    DATE_CLUSTERING = "DATE_CLUSTERING"
    INCREASING_FREQUENCY = "INCREASING_FREQUENCY"
    BACK_TO_BACK = "BACK_TO_BACK"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class PatternRiskLevel(str, Enum):
    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
