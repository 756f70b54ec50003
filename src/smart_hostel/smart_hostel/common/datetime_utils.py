from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Iterator

from ..core.exceptions import ValidationError

SECONDS_PER_DAY = 24 * 60 * 60


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (date-only strings mean midnight).

    Timezone-aware values are converted to naive local time; the rest of the
    system works on naive local datetimes.
    """
    v = (value or "").strip()
    if not v:
        raise ValidationError("Date/time is required")
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"Invalid date/time: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime((value or "").strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"Invalid time: {value!r} (expected HH:MM)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative when end < start)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def covered_days(start: datetime, end: datetime) -> int:
    """Number of calendar days touched by [start, end], at least 1."""
    return max(1, (end.date() - start.date()).days + 1)


def days_until(target: datetime, now: datetime) -> int:
    """Whole calendar days from now until target (0 = same day)."""
    return (target.date() - now.date()).days


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_start(now: datetime) -> datetime:
    return datetime(now.year, now.month, 1)


def semester_start(now: datetime) -> datetime:
    """January-June and July-December halves."""
    return datetime(now.year, 1 if now.month <= 6 else 7, 1)


def round_half_up(value: float) -> int:
    """Round halves upward; round() would use banker's rounding."""
    return int(math.floor(value + 0.5))
