from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import overdue_after
from ...core.enums import ApprovalStatus, PaymentStatus
from ...core.exceptions import ValidationError
from ...members.model import Member
from ..model import NewPayment, Payment
from ..schedule import short_term_amount
from .base import RentPlan


class ShortTermPlan(RentPlan):
    """Whole stay paid upfront at approval: ceil(days) x pricePerDay."""

    def first_payment(self, *, member: Member, room_rent: float, approved_by: int, now: datetime) -> NewPayment:
        if not member.date_of_relieving or not member.price_per_day:
            raise ValidationError("Short term members need dateOfRelieving and pricePerDay")
        joining = member.date_of_joining
        return NewPayment(
            member_id=member.id,
            pg_id=member.pg_id,
            month=joining.month,
            year=joining.year,
            amount=short_term_amount(joining, member.date_of_relieving, member.price_per_day),
            due_date=joining,
            overdue_date=overdue_after(joining),
            payment_status=PaymentStatus.PAID,
            approval_status=ApprovalStatus.APPROVED,
            paid_date=now,
            approved_by=int(approved_by),
            approved_at=now,
        )

    def successor(self, *, member: Member, approved: Payment, room_rent: float) -> Optional[NewPayment]:
        return None
