from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import PgType
from .model import PeriodFigures, Report
from .periods import ReportPeriod


class ReportRepository(Protocol):
    """Aggregate queries over one PG type and a date range, plus the Report cache."""

    def period_figures(self, *, pg_type: PgType, start: date, end: date) -> PeriodFigures:
        raise NotImplementedError

    def pg_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        raise NotImplementedError

    def room_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        raise NotImplementedError

    def payment_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        raise NotImplementedError

    def finance_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        raise NotImplementedError

    def get_cached(self, *, pg_type: PgType, period: ReportPeriod) -> Optional[Report]:
        raise NotImplementedError

    def upsert(self, report: Report) -> None:
        raise NotImplementedError
