from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_in_range(value: int, field_name: str, low: int, high: int) -> int:
    if value < low or value > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return value


def require_leave_window(from_dt: datetime, to_dt: datetime, *, now: Optional[datetime] = None) -> None:
    """A leave window must be forward in time and, when now is given, not start in the past."""
    if from_dt >= to_dt:
        raise ValidationError("To date must be after From date")
    if now is not None and from_dt < now:
        raise ValidationError("Cannot apply leave for past dates")
