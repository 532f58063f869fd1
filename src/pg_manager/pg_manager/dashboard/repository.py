from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import PgType
from .model import DashboardStats, DashboardTotals


class DashboardRepository(Protocol):
    def month_totals(self, *, pg_type: PgType, month: int, year: int) -> DashboardTotals:
        raise NotImplementedError

    def get_cached(self, *, pg_type: PgType, month: int, year: int) -> Optional[DashboardStats]:
        raise NotImplementedError

    def upsert(self, stats: DashboardStats) -> None:
        raise NotImplementedError
