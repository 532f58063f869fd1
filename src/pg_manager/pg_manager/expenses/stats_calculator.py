from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import add_months, now_local
from ..core.enums import PgType
from .model import ExpenseStats, MonthTotals
from .repository import ExpenseRepository, ExpenseStatsRepository


def percent_change(previous: float, current: float) -> float:
    if previous > 0:
        return round((current - previous) / previous * 100, 2)
    return 100.0 if current > 0 else 0.0


def net_percent_change(previous: float, current: float) -> float:
    """Net can go negative, so the change is measured against ``abs(previous)``."""
    if previous == 0:
        if current > 0:
            return 100.0
        return -100.0 if current < 0 else 0.0
    return round((current - previous) / abs(previous) * 100, 2)


class ExpenseStatsCalculator:
    """Builds and stores the monthly ExpenseStats row for one PG type."""

    def __init__(self, expenses: ExpenseRepository, stats: ExpenseStatsRepository):
        self._expenses = expenses
        self._stats = stats

    def _previous_totals(self, *, pg_type: PgType, month: int, year: int) -> MonthTotals:
        prev_year, prev_month = add_months(year, month, -1)
        cached = self._stats.get(pg_type=pg_type, month=prev_month, year=prev_year)
        if cached:
            return cached.totals
        return self._expenses.month_totals(pg_type=pg_type, month=prev_month, year=prev_year)

    def calculate(self, *, pg_type: PgType, month: int, year: int, now: Optional[datetime] = None) -> ExpenseStats:
        current = self._expenses.month_totals(pg_type=pg_type, month=month, year=year)
        previous = self._previous_totals(pg_type=pg_type, month=month, year=year)
        stats = ExpenseStats(
            pg_type=pg_type,
            month=month,
            year=year,
            totals=current,
            cash_in_percent_change=percent_change(previous.cash_in_amount, current.cash_in_amount),
            cash_out_percent_change=percent_change(previous.cash_out_amount, current.cash_out_amount),
            net_percent_change=net_percent_change(previous.net_amount, current.net_amount),
            calculated_at=now or now_local(),
        )
        self._stats.upsert(stats)
        return stats
