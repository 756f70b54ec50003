from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AuditLog:
    """Who did what to which record; written by leave decisions and gate overrides."""

    log_id: int
    action: str
    performed_by: int
    target_type: str
    target_id: int
    details: dict = field(default_factory=dict)
    timestamp: Optional[datetime] = None
    performed_by_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "action": self.action,
            "performed_by": self.performed_by,
            "performed_by_name": self.performed_by_name,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "details": self.details,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
