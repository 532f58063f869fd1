from __future__ import annotations

from datetime import date

from ..payments.repository import PaymentRepository


class PendingDuesCalculator:
    """Unpaid rent a leaving member still owes up to the leave month."""

    def __init__(self, payments: PaymentRepository):
        self._payments = payments

    def for_member(self, *, member_id: int, leave_date: date) -> float:
        rows = self._payments.outstanding_up_to(member_id=member_id, year=leave_date.year, month=leave_date.month)
        return round(sum(p.amount for p in rows), 2)
