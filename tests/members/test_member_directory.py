from __future__ import annotations

from datetime import date, datetime

import pytest

from src.pg_manager.pg_manager.auth.tokens import AdminIdentity
from src.pg_manager.pg_manager.common.pagination import PageRequest
from src.pg_manager.pg_manager.core.enums import ApprovalStatus, Gender, PaymentStatus, PgType, RentType
from src.pg_manager.pg_manager.core.exceptions import NotFoundError, ValidationError
from src.pg_manager.pg_manager.members.model import Member
from src.pg_manager.pg_manager.members.mysql_member_repository import _PAYMENT_STATUS_CASE
from src.pg_manager.pg_manager.members.service import PAYMENT_STATUS_FILTERS, MemberService
from src.pg_manager.pg_manager.payments.model import Payment, display_status
from src.pg_manager.pg_manager.pgs.model import PG
from src.pg_manager.pg_manager.pgs.service import PgService


NOW = datetime(2026, 7, 20, 10, 0, 0)
ADMIN = AdminIdentity(id=1, email="admin@pg.local", name="Admin", pg_type=PgType.MENS)


class FakePgRepo:
    def list_by_type(self, pg_type):
        pgs = [
            PG(pg_id=3, name="Sunrise", pg_type=PgType.MENS, location="Velachery"),
            PG(pg_id=5, name="Harbour", pg_type=PgType.MENS, location="Tambaram"),
            PG(pg_id=4, name="Lotus", pg_type=PgType.WOMENS, location="Adyar"),
        ]
        return [p for p in pgs if p.pg_type == pg_type]


class FakeMembersRepo:
    def __init__(self, *members: Member):
        self._members = {m.id: m for m in members}
        self.last_filter = None

    def get_by_id(self, member_pk, *, tx=None):
        return self._members.get(int(member_pk))

    def list_for_admin(self, flt, *, offset, limit):
        self.last_filter = flt
        rows = [{"id": m.id, "currentPaymentStatus": "NO_PAYMENT"} for m in self._members.values()]
        return rows[offset:offset + limit], len(rows)


class FakePaymentsRepo:
    def __init__(self, latest=None):
        self.latest = latest

    def latest_attempt(self, *, member_id, month, year):
        return self.latest

    def recent_for_member(self, *, member_id, limit):
        return [self.latest] if self.latest else []


def _member(pk=1, **overrides) -> Member:
    base = dict(
        id=pk,
        member_id=f"MRM{pk:04d}",
        name="Suresh",
        dob=date(1996, 3, 9),
        gender=Gender.MALE,
        location="Vellore",
        email=f"s{pk}@example.com",
        phone=f"90000000{pk:02d}",
        work="Accountant",
        rent_type=RentType.LONG_TERM,
        pg_id=3,
        date_of_joining=date(2026, 1, 5),
        pg_type=PgType.MENS,
    )
    base.update(overrides)
    return Member(**base)


def _payment(payment_status, approval_status) -> Payment:
    return Payment(
        payment_id=1,
        member_id=1,
        pg_id=3,
        month=7,
        year=2026,
        amount=5500.0,
        due_date=date(2026, 7, 5),
        overdue_date=date(2026, 7, 12),
        payment_status=payment_status,
        approval_status=approval_status,
    )


def _service(members, payments=None):
    return MemberService(members, payments or FakePaymentsRepo(), rooms=None, pg_service=PgService(FakePgRepo()))


@pytest.mark.parametrize(
    "payment_status, approval_status, expected",
    [
        (PaymentStatus.PENDING, ApprovalStatus.PENDING, "PENDING"),
        (PaymentStatus.PAID, ApprovalStatus.PENDING, "PENDING_APPROVAL"),
        (PaymentStatus.PAID, ApprovalStatus.APPROVED, "APPROVED"),
        (PaymentStatus.OVERDUE, ApprovalStatus.PENDING, "OVERDUE"),
        (PaymentStatus.REJECTED, ApprovalStatus.PENDING, "REJECTED"),
        (PaymentStatus.PENDING, ApprovalStatus.REJECTED, "REJECTED"),
    ],
)
def test_display_status_combines_both_axes(payment_status, approval_status, expected):
    assert display_status(_payment(payment_status, approval_status)) == expected


def test_missing_payment_is_no_payment():
    assert display_status(None) == "NO_PAYMENT"


def test_sql_status_labels_match_filter_values():
    for label in PAYMENT_STATUS_FILTERS:
        assert f"'{label}'" in _PAYMENT_STATUS_CASE


def test_list_members_scopes_to_current_month_and_admin_pgs():
    members = FakeMembersRepo(_member(1), _member(2))
    svc = _service(members)

    page = svc.list_members(
        ADMIN, {"paymentStatus": "pending_approval", "search": "  Sur ", "isActive": "true"},
        page=PageRequest(page=1, limit=10), now=NOW,
    )

    flt = members.last_filter
    assert (flt.month, flt.year) == (7, 2026)
    assert flt.pg_ids == [3, 5]
    assert flt.payment_status == "PENDING_APPROVAL"
    assert flt.search == "Sur"
    assert flt.is_active is True
    assert page.total == 2


def test_list_members_rejects_unknown_payment_status():
    svc = _service(FakeMembersRepo())

    with pytest.raises(ValidationError):
        svc.list_members(ADMIN, {"paymentStatus": "LATE"}, page=PageRequest(), now=NOW)


def test_member_detail_reports_current_payment_status():
    payments = FakePaymentsRepo(_payment(PaymentStatus.PAID, ApprovalStatus.PENDING))
    svc = _service(FakeMembersRepo(_member(1)), payments)

    detail = svc.get_member(ADMIN, 1, now=NOW)

    assert detail["currentPaymentStatus"] == "PENDING_APPROVAL"
    assert len(detail["payments"]) == 1


def test_member_of_other_pg_type_is_hidden():
    svc = _service(FakeMembersRepo(_member(1, pg_type=PgType.WOMENS, pg_id=4)))

    with pytest.raises(NotFoundError):
        svc.get_member(ADMIN, 1, now=NOW)
