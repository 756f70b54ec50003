from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RiskCategory
from .model import StudentStatistics


class StatsRepository(Protocol):
    def get(self, student_id: int) -> Optional[StudentStatistics]:
        raise NotImplementedError

    def upsert(self, stats: StudentStatistics) -> None:
        """Insert or fully replace the snapshot of `stats.student_id` (last writer wins)."""

        raise NotImplementedError

    def list_by_category(self, category: RiskCategory) -> Sequence[StudentStatistics]:
        """Ordered by overall risk score, highest first."""

        raise NotImplementedError

    def count_by_category(self) -> dict[RiskCategory, int]:
        raise NotImplementedError

    def leaderboard(self, *, limit: int) -> Sequence[StudentStatistics]:
        """Ordered by attendance then return reliability, best first."""

        raise NotImplementedError
