from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import EntryType, PaymentMethod, PgType
from .model import Expense, ExpenseStats, MonthTotals


@dataclass(frozen=True)
class ExpenseFilter:
    pg_ids: Sequence[int]
    entry_type: Optional[EntryType] = None
    payment_type: Optional[PaymentMethod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    sort_by: str = "date"
    sort_order: str = "desc"


class ExpenseRepository(Protocol):
    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        raise NotImplementedError

    def create(
        self,
        *,
        entry_type: EntryType,
        amount: float,
        entry_date: date,
        party_name: str,
        payment_type: PaymentMethod,
        remarks: Optional[str],
        bills: Sequence[Optional[str]],
        pg_id: int,
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        expense_id: int,
        entry_type: EntryType,
        amount: float,
        entry_date: date,
        party_name: str,
        payment_type: PaymentMethod,
        remarks: Optional[str],
        bills: Sequence[Optional[str]],
        pg_id: int,
    ) -> bool:
        raise NotImplementedError

    def delete(self, expense_id: int) -> bool:
        raise NotImplementedError

    def list(self, flt: ExpenseFilter, *, offset: int, limit: int) -> tuple[list[Expense], int]:
        raise NotImplementedError

    def month_totals(self, *, pg_type: PgType, month: int, year: int) -> MonthTotals:
        raise NotImplementedError


class ExpenseStatsRepository(Protocol):
    def get(self, *, pg_type: PgType, month: int, year: int) -> Optional[ExpenseStats]:
        raise NotImplementedError

    def upsert(self, stats: ExpenseStats) -> None:
        raise NotImplementedError

    def list_for_year(self, *, pg_type: PgType, year: int) -> Sequence[ExpenseStats]:
        raise NotImplementedError
