from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import GateAction


@dataclass(frozen=True)
class GateLog:
    """One scan at the hostel gate; student and guard names are filled on listings."""

    log_id: int
    student_id: int
    leave_id: int
    gate_pass_id: str
    action: GateAction
    performed_by: int
    timestamp: datetime
    student_name: Optional[str] = None
    hostel_block: Optional[str] = None
    room_no: Optional[str] = None
    performed_by_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "hostel_block": self.hostel_block,
            "room_no": self.room_no,
            "leave_id": self.leave_id,
            "gate_pass_id": self.gate_pass_id,
            "action": self.action.value,
            "performed_by": self.performed_by,
            "performed_by_name": self.performed_by_name,
            "timestamp": self.timestamp.isoformat(),
        }
