from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AuditLog


class AuditRepository(Protocol):
    def record(
        self,
        *,
        action: str,
        performed_by: int,
        target_type: str,
        target_id: int,
        details: Optional[dict] = None,
        timestamp: Optional[datetime] = None,
    ) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int, action: Optional[str] = None) -> Sequence[AuditLog]:
        """Newest first."""

        raise NotImplementedError
