from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import EntryType, PaymentMethod, PgType


@dataclass(frozen=True)
class Expense:
    expense_id: int
    entry_type: EntryType
    amount: float
    entry_date: date
    party_name: str
    payment_type: PaymentMethod
    pg_id: int
    created_by: int
    remarks: Optional[str] = None
    bills: tuple[Optional[str], ...] = (None, None, None)
    created_at: Optional[datetime] = None
    pg_name: Optional[str] = None
    admin_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.expense_id,
            "entryType": self.entry_type.value,
            "amount": self.amount,
            "date": self.entry_date,
            "partyName": self.party_name,
            "paymentType": self.payment_type.value,
            "remarks": self.remarks,
            "attachedBill1": self.bills[0],
            "attachedBill2": self.bills[1],
            "attachedBill3": self.bills[2],
            "pg": {"id": self.pg_id, "name": self.pg_name},
            "createdBy": {"id": self.created_by, "name": self.admin_name},
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class MonthTotals:
    """Raw ledger sums for one PG type and month."""

    cash_in_amount: float = 0.0
    cash_in_count: int = 0
    cash_out_amount: float = 0.0
    cash_out_count: int = 0
    cash_in_online: float = 0.0
    cash_in_cash: float = 0.0
    cash_out_online: float = 0.0
    cash_out_cash: float = 0.0

    @property
    def net_amount(self) -> float:
        return round(self.cash_in_amount - self.cash_out_amount, 2)


@dataclass(frozen=True)
class ExpenseStats:
    pg_type: PgType
    month: int
    year: int
    totals: MonthTotals = field(default_factory=MonthTotals)
    cash_in_percent_change: float = 0.0
    cash_out_percent_change: float = 0.0
    net_percent_change: float = 0.0
    calculated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        t = self.totals
        return {
            "pgType": self.pg_type.value,
            "month": self.month,
            "year": self.year,
            "cashIn": {
                "amount": t.cash_in_amount,
                "count": t.cash_in_count,
                "online": t.cash_in_online,
                "cash": t.cash_in_cash,
                "percentChange": self.cash_in_percent_change,
            },
            "cashOut": {
                "amount": t.cash_out_amount,
                "count": t.cash_out_count,
                "online": t.cash_out_online,
                "cash": t.cash_out_cash,
                "percentChange": self.cash_out_percent_change,
            },
            "net": {"amount": t.net_amount, "percentChange": self.net_percent_change},
            "calculatedAt": self.calculated_at,
        }
