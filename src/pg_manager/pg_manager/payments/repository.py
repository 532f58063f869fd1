from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, PaymentMethod, PaymentStatus, PgType, RentType
from .model import NewPayment, Payment


@dataclass(frozen=True)
class ApprovalFilter:
    pg_type: PgType
    payment_status: Optional[PaymentStatus] = PaymentStatus.PAID
    approval_status: Optional[ApprovalStatus] = ApprovalStatus.PENDING
    search: Optional[str] = None
    rent_type: Optional[RentType] = None
    pg_locations: Sequence[str] = field(default_factory=tuple)
    month: Optional[int] = None
    year: Optional[int] = None


class PaymentRepository(Protocol):
    def get_by_id(self, payment_id: int, *, tx: Any = None) -> Optional[Payment]:
        """Payment joined with its PG type."""

        raise NotImplementedError

    def latest_attempt(self, *, member_id: int, month: int, year: int, tx: Any = None) -> Optional[Payment]:
        raise NotImplementedError

    def exists_for_period(self, *, member_id: int, month: int, year: int, tx: Any = None) -> bool:
        raise NotImplementedError

    def create(self, payment: NewPayment, *, tx: Any = None) -> int:
        raise NotImplementedError

    def mark_paid(
        self,
        *,
        payment_id: int,
        amount: float,
        paid_date: datetime,
        method: PaymentMethod,
        rent_bill_screenshot: Optional[str],
        electricity_bill_screenshot: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def decide(
        self,
        *,
        payment_id: int,
        payment_status: PaymentStatus,
        approval_status: ApprovalStatus,
        approved_by: int,
        approved_at: datetime,
        paid_date: Optional[datetime],
        tx: Any = None,
    ) -> bool:
        """Apply an admin decision; only rows still awaiting approval change."""

        raise NotImplementedError

    def sweep_overdue(self, *, now: datetime) -> int:
        raise NotImplementedError

    def history(
        self,
        *,
        member_id: int,
        year: Optional[int],
        payment_status: Optional[PaymentStatus],
        offset: int,
        limit: int,
    ) -> tuple[list[Payment], int]:
        raise NotImplementedError

    def list_for_year(self, *, member_id: int, year: int) -> Sequence[Payment]:
        raise NotImplementedError

    def recent_for_member(self, *, member_id: int, limit: int = 12) -> Sequence[Payment]:
        raise NotImplementedError

    def outstanding_up_to(self, *, member_id: int, year: int, month: int) -> Sequence[Payment]:
        """PENDING/OVERDUE rows whose (year, month) is at or before the given period."""

        raise NotImplementedError

    def screenshots_for_member(self, member_id: int) -> Sequence[str]:
        raise NotImplementedError

    def list_for_approval(self, flt: ApprovalFilter, *, offset: int, limit: int) -> tuple[list[dict], int]:
        raise NotImplementedError

    def count_awaiting_approval(self, pg_type: PgType) -> int:
        raise NotImplementedError
