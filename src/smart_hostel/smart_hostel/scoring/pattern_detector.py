"""Advisory scan of a student's recent leave history.

Runs independently of the risk score; nothing here changes a decision.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Sequence

from ..common.datetime_utils import days_between
from ..core.constants import BACK_TO_BACK_GAP_DAYS, PATTERN_SAMPLE_SIZE
from ..core.enums import PatternRiskLevel, PatternType, Severity
from ..leaves.model import LeaveRequest

# Monday and Friday (datetime.weekday numbering)
WEEKEND_EXTENSION_DAYS = (0, 4)
WEEKEND_EXTENSION_MIN = 3
WEEKEND_EXTENSION_SHARE = 0.5
DATE_CLUSTER_MIN = 3
FREQUENCY_WINDOW_DAYS = 30
FREQUENCY_RECENT_MIN = 3
BACK_TO_BACK_MIN_PAIRS = 2


@dataclass(frozen=True)
class DetectedPattern:
    type: PatternType
    description: str
    severity: Severity

    def as_dict(self) -> dict:
        return {"type": self.type.value, "description": self.description, "severity": self.severity.value}


@dataclass(frozen=True)
class PatternReport:
    detected: tuple[DetectedPattern, ...] = field(default_factory=tuple)
    risk_level: PatternRiskLevel = PatternRiskLevel.NONE

    def as_dict(self) -> dict:
        return {"detected": [p.as_dict() for p in self.detected], "risk_level": self.risk_level.value}


def overall_level(detected: Sequence[DetectedPattern]) -> PatternRiskLevel:
    severities = {p.severity for p in detected}
    if Severity.HIGH in severities:
        return PatternRiskLevel.HIGH
    if Severity.MEDIUM in severities:
        return PatternRiskLevel.MEDIUM
    if detected:
        return PatternRiskLevel.LOW
    return PatternRiskLevel.NONE


class PatternDetector:
    def __init__(self, sample_size: int = PATTERN_SAMPLE_SIZE):
        self.sample_size = sample_size

    def detect(self, leaves: Sequence[LeaveRequest], *, now: datetime) -> PatternReport:
        sample = sorted(leaves, key=lambda l: l.created_at or datetime.min, reverse=True)[: self.sample_size]
        if len(sample) < 2:
            return PatternReport()

        detected = []

        weekend = [l for l in sample if l.from_datetime.weekday() in WEEKEND_EXTENSION_DAYS]
        if len(weekend) >= WEEKEND_EXTENSION_MIN and len(weekend) >= len(sample) * WEEKEND_EXTENSION_SHARE:
            detected.append(
                DetectedPattern(
                    PatternType.WEEKEND_EXTENSION,
                    "Frequent leaves on Mondays/Fridays to extend weekends",
                    Severity.MEDIUM,
                )
            )

        by_day = Counter(l.from_datetime.day for l in sample)
        if max(by_day.values()) >= DATE_CLUSTER_MIN:
            detected.append(
                DetectedPattern(
                    PatternType.DATE_CLUSTERING,
                    "Repeated leaves around same dates each month",
                    Severity.LOW,
                )
            )

        month_ago = now - timedelta(days=FREQUENCY_WINDOW_DAYS)
        two_months_ago = now - timedelta(days=2 * FREQUENCY_WINDOW_DAYS)
        created = [l.created_at for l in sample if l.created_at is not None]
        recent = sum(1 for c in created if c >= month_ago)
        previous = sum(1 for c in created if two_months_ago <= c < month_ago)
        if recent > previous * 2 and recent >= FREQUENCY_RECENT_MIN:
            detected.append(
                DetectedPattern(
                    PatternType.INCREASING_FREQUENCY,
                    "Leave frequency has doubled compared to previous month",
                    Severity.MEDIUM,
                )
            )

        ordered = sorted(sample, key=lambda l: l.from_datetime)
        pairs = sum(
            1
            for prev, cur in zip(ordered, ordered[1:])
            if days_between(prev.to_datetime, cur.from_datetime) <= BACK_TO_BACK_GAP_DAYS
        )
        if pairs >= BACK_TO_BACK_MIN_PAIRS:
            detected.append(
                DetectedPattern(
                    PatternType.BACK_TO_BACK,
                    "Multiple consecutive or near-consecutive leaves",
                    Severity.HIGH,
                )
            )

        return PatternReport(detected=tuple(detected), risk_level=overall_level(detected))
