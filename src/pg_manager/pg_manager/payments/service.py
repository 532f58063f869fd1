from __future__ import annotations

import calendar
import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Callable, ContextManager, Optional

from werkzeug.datastructures import FileStorage

from ..auth.tokens import AdminIdentity, MemberIdentity
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.uploads import UploadStore
from ..common.validators import optional_enum, optional_int, require_amount, require_enum, require_int
from ..core.enums import ApprovalStatus, PaymentMethod, PaymentStatus, RentType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..members.model import Member
from ..members.repository import MemberRepository
from .model import NewPayment, Payment
from .plans.factory import RentPlanFactory
from .repository import ApprovalFilter, PaymentRepository
from .schedule import due_dates_for

logger = logging.getLogger(__name__)


def year_status_label(payment: Optional[Payment]) -> str:
    if payment is None:
        return "No Payment"
    if payment.approval_status == ApprovalStatus.APPROVED:
        return "Approved"
    if payment.approval_status == ApprovalStatus.REJECTED or payment.payment_status == PaymentStatus.REJECTED:
        return "Rejected"
    return "Pending"


class PaymentService:
    """Rent payment lifecycle: member uploads, admin approval and the overdue sweep."""

    def __init__(
        self,
        payments: PaymentRepository,
        members: MemberRepository,
        *,
        plans: Optional[RentPlanFactory] = None,
        transaction: Optional[Callable[[], ContextManager]] = None,
        uploads: Optional[UploadStore] = None,
    ):
        self._payments = payments
        self._members = members
        self._plans = plans or RentPlanFactory()
        self._transaction = transaction or nullcontext
        self._uploads = uploads

    # -------- Member side --------
    def _active_member(self, member_pk: int) -> Member:
        member = self._members.get_by_id(int(member_pk))
        if not member:
            raise NotFoundError("Member not found")
        if not member.is_active:
            raise AuthorizationError("Your account is inactive")
        return member

    def upload(
        self,
        identity: MemberIdentity,
        payload: dict,
        *,
        rent_bill: Optional[FileStorage] = None,
        electricity_bill: Optional[FileStorage] = None,
        now: Optional[datetime] = None,
    ) -> Payment:
        now = now or now_local()
        month = require_int(payload.get("month"), "month", min_value=1, max_value=12)
        year = require_int(payload.get("year"), "year", min_value=2000, max_value=now.year + 1)
        amount = require_amount(payload.get("amount"), "amount")
        method = require_enum(payload.get("paymentMethod"), PaymentMethod, "paymentMethod")
        if method == PaymentMethod.ONLINE and (rent_bill is None or not rent_bill.filename):
            raise ValidationError("Rent bill screenshot is required for online payments")

        member = self._active_member(identity.id)
        latest = self._payments.latest_attempt(member_id=member.id, month=month, year=year)

        if latest is not None:
            if latest.approval_status == ApprovalStatus.APPROVED:
                raise ConflictError("Payment for this month has already been approved")
            if latest.approval_status == ApprovalStatus.PENDING and latest.payment_status == PaymentStatus.PAID:
                raise ConflictError("Payment already exists for this month and is pending approval")
            if latest.approval_status == ApprovalStatus.PENDING and latest.payment_status not in (
                PaymentStatus.PENDING,
                PaymentStatus.OVERDUE,
            ):
                raise ConflictError("Payment for this month cannot be updated")

        rent_url = self._save(rent_bill, "payment/rent")
        electricity_url = self._save(electricity_bill, "payment/electricity")

        if latest is not None and latest.approval_status == ApprovalStatus.PENDING:
            updated = self._payments.mark_paid(
                payment_id=latest.payment_id,
                amount=amount,
                paid_date=now,
                method=method,
                rent_bill_screenshot=rent_url,
                electricity_bill_screenshot=electricity_url,
            )
            if not updated:
                # row changed after it was read
                if self._uploads:
                    self._uploads.delete_all([rent_url, electricity_url])
                raise ConflictError("Payment for this month was updated meanwhile, please refresh and retry")
            payment_id = latest.payment_id
        else:
            if latest is not None:
                # Re-attempt after rejection keeps the original billing dates.
                attempt = latest.attempt_number + 1
                due, overdue = latest.due_date, latest.overdue_date
            else:
                attempt = 1
                due, overdue = due_dates_for(year, month, member.date_of_joining)
            payment_id = self._payments.create(
                NewPayment(
                    member_id=member.id,
                    pg_id=member.pg_id,
                    month=month,
                    year=year,
                    amount=amount,
                    due_date=due,
                    overdue_date=overdue,
                    payment_status=PaymentStatus.PAID,
                    approval_status=ApprovalStatus.PENDING,
                    attempt_number=attempt,
                    paid_date=now,
                    payment_method=method,
                    rent_bill_screenshot=rent_url,
                    electricity_bill_screenshot=electricity_url,
                )
            )

        logger.info("Member %s uploaded payment %s for %02d/%s", member.member_id, payment_id, month, year)
        payment = self._payments.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    def _save(self, file: Optional[FileStorage], kind: str) -> Optional[str]:
        if self._uploads is None or file is None:
            return None
        return self._uploads.save(file, kind)

    def history(
        self,
        identity: MemberIdentity,
        *,
        page: PageRequest,
        year: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Page:
        items, total = self._payments.history(
            member_id=identity.id,
            year=optional_int(year, "year"),
            payment_status=optional_enum(status, PaymentStatus, "status"),
            offset=page.offset,
            limit=page.limit,
        )
        return Page(items=[p.to_dict() for p in items], total=total, request=page)

    def year_overview(self, identity: MemberIdentity, year: int, *, now: Optional[datetime] = None) -> list[dict]:
        now = now or now_local()
        year = require_int(year, "year", min_value=2000)
        member = self._members.get_by_id(identity.id)
        if not member:
            raise NotFoundError("Member not found")

        joining = member.date_of_joining
        if year < joining.year or year > now.year:
            return []

        first_month = joining.month if year == joining.year else 1
        last_month = now.month if year == now.year else 12

        latest_by_month: dict[int, Payment] = {}
        for p in self._payments.list_for_year(member_id=member.id, year=year):
            current = latest_by_month.get(p.month)
            if current is None or p.attempt_number > current.attempt_number:
                latest_by_month[p.month] = p

        out: list[dict] = []
        for month in range(first_month, last_month + 1):
            p = latest_by_month.get(month)
            out.append(
                {
                    "month": month,
                    "year": year,
                    "monthName": calendar.month_name[month],
                    "status": year_status_label(p),
                    "payment": p.to_dict() if p else None,
                }
            )
        return out

    def details(self, identity: MemberIdentity, month: int, year: int) -> Payment:
        month = require_int(month, "month", min_value=1, max_value=12)
        year = require_int(year, "year", min_value=2000)
        payment = self._payments.latest_attempt(member_id=identity.id, month=month, year=year)
        if not payment:
            raise NotFoundError("No payment found for this month")
        return payment

    # -------- Admin side --------
    def list_for_approval(
        self,
        admin: AdminIdentity,
        args: dict,
        *,
        page: PageRequest,
        now: Optional[datetime] = None,
    ) -> Page:
        now = now or now_local()
        self.sweep_overdue(now=now)

        month = optional_int(args.get("month"), "month", min_value=1, max_value=12)
        year = optional_int(args.get("year"), "year", min_value=2000)
        if year is not None and (year, month or 1) > (now.year, now.month):
            return Page(items=[], total=0, request=page)

        locations = tuple(s.strip() for s in str(args.get("pgLocation") or "").split(",") if s.strip())
        flt = ApprovalFilter(
            pg_type=admin.pg_type,
            payment_status=optional_enum(args.get("paymentStatus"), PaymentStatus, "paymentStatus")
            or PaymentStatus.PAID,
            approval_status=optional_enum(args.get("approvalStatus"), ApprovalStatus, "approvalStatus")
            or ApprovalStatus.PENDING,
            search=(args.get("search") or "").strip() or None,
            rent_type=optional_enum(args.get("rentType"), RentType, "rentType"),
            pg_locations=locations,
            month=month,
            year=year,
        )
        items, total = self._payments.list_for_approval(flt, offset=page.offset, limit=page.limit)
        return Page(items=items, total=total, request=page)

    def decide(
        self,
        admin: AdminIdentity,
        payment_id: int,
        status: str,
        *,
        now: Optional[datetime] = None,
    ) -> Payment:
        now = now or now_local()
        decision = require_enum(status, ApprovalStatus, "approvalStatus")
        if decision == ApprovalStatus.PENDING:
            raise ValidationError("approvalStatus must be APPROVED or REJECTED")

        with self._transaction() as tx:
            payment = self._payments.get_by_id(int(payment_id), tx=tx)
            if not payment:
                raise NotFoundError("Payment not found")
            if payment.pg_type != admin.pg_type:
                raise AuthorizationError("You can only manage payments of your PG type")
            if payment.is_processed:
                raise ValidationError(f"Payment has already been {payment.approval_status.value.lower()}")

            if decision == ApprovalStatus.APPROVED:
                changed = self._payments.decide(
                    payment_id=payment.payment_id,
                    payment_status=PaymentStatus.PAID,
                    approval_status=ApprovalStatus.APPROVED,
                    approved_by=admin.id,
                    approved_at=now,
                    paid_date=now,
                    tx=tx,
                )
                if changed:
                    self._create_successor(payment, tx=tx)
            else:
                changed = self._payments.decide(
                    payment_id=payment.payment_id,
                    payment_status=PaymentStatus.REJECTED,
                    approval_status=ApprovalStatus.REJECTED,
                    approved_by=admin.id,
                    approved_at=now,
                    paid_date=None,
                    tx=tx,
                )
            if not changed:
                raise ValidationError("Payment has already been processed")

        logger.info("Admin %s %s payment %s", admin.id, decision.value.lower(), payment.payment_id)
        result = self._payments.get_by_id(payment.payment_id)
        if result is None:
            raise NotFoundError("Payment not found")
        return result

    def _create_successor(self, approved: Payment, *, tx=None) -> Optional[int]:
        member = self._members.get_by_id(approved.member_id, tx=tx)
        if not member or not member.room_id:
            return None

        plan = self._plans.for_rent_type(member.rent_type)
        successor = plan.successor(
            member=member,
            approved=approved,
            room_rent=member.room_rent if member.room_rent is not None else approved.amount,
        )
        if successor is None:
            return None
        if self._payments.exists_for_period(
            member_id=member.id, month=successor.month, year=successor.year, tx=tx
        ):
            return None
        return self._payments.create(successor, tx=tx)

    def create_first_payment(self, member: Member, *, approved_by: int, now: datetime, tx=None) -> Optional[int]:
        """Opening rent row for a newly approved member with a room."""
        if not member.room_id:
            return None
        plan = self._plans.for_rent_type(member.rent_type)
        first = plan.first_payment(
            member=member,
            room_rent=member.room_rent or 0.0,
            approved_by=approved_by,
            now=now,
        )
        return self._payments.create(first, tx=tx)

    def sweep_overdue(self, *, now: Optional[datetime] = None) -> int:
        changed = self._payments.sweep_overdue(now=now or now_local())
        if changed:
            logger.info("Marked %s payments overdue", changed)
        return changed

    def count_awaiting_approval(self, admin: AdminIdentity) -> int:
        return self._payments.count_awaiting_approval(admin.pg_type)
