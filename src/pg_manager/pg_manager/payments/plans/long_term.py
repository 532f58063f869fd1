from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import ApprovalStatus, PaymentStatus
from ...members.model import Member
from ..model import NewPayment, Payment
from ..schedule import due_dates_for, next_period, successor_due_dates
from .base import RentPlan


class LongTermPlan(RentPlan):
    """Monthly rent against the room, due on the joining day."""

    def first_payment(self, *, member: Member, room_rent: float, approved_by: int, now: datetime) -> NewPayment:
        joining = member.date_of_joining
        due, overdue = due_dates_for(joining.year, joining.month, joining)
        return NewPayment(
            member_id=member.id,
            pg_id=member.pg_id,
            month=joining.month,
            year=joining.year,
            amount=float(room_rent),
            due_date=due,
            overdue_date=overdue,
            payment_status=PaymentStatus.PENDING,
            approval_status=ApprovalStatus.PENDING,
        )

    def successor(self, *, member: Member, approved: Payment, room_rent: float) -> Optional[NewPayment]:
        year, month = next_period(approved.year, approved.month)
        due, overdue = successor_due_dates(approved.year, approved.month, member.date_of_joining)
        return NewPayment(
            member_id=member.id,
            pg_id=member.pg_id,
            month=month,
            year=year,
            amount=float(room_rent),
            due_date=due,
            overdue_date=overdue,
        )
