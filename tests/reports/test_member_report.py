from __future__ import annotations

import json
import zipfile
from datetime import date, datetime

import pytest

from src.pg_manager.pg_manager.auth.tokens import AdminIdentity
from src.pg_manager.pg_manager.common.uploads import UploadStore
from src.pg_manager.pg_manager.core.enums import (
    ApprovalStatus,
    Gender,
    LeavingStatus,
    PaymentMethod,
    PaymentStatus,
    PgType,
    RentType,
)
from src.pg_manager.pg_manager.core.exceptions import NotFoundError
from src.pg_manager.pg_manager.leaving.model import LeavingRequest
from src.pg_manager.pg_manager.members.model import Member
from src.pg_manager.pg_manager.members.service import MemberService
from src.pg_manager.pg_manager.payments.model import Payment
from src.pg_manager.pg_manager.reports.member_report import MemberReportService, render_member_pdf, report_filename


NOW = datetime(2026, 8, 1, 11, 0, 0)
ADMIN = AdminIdentity(id=1, email="admin@pg.local", name="Admin", pg_type=PgType.MENS)


def _member(**overrides) -> Member:
    base = dict(
        id=7,
        member_id="MRM2345",
        name="Ravi Kumar",
        dob=date(2000, 5, 1),
        gender=Gender.MALE,
        location="Chennai",
        email="ravi@example.com",
        phone="9876543210",
        work="Engineer",
        rent_type=RentType.LONG_TERM,
        pg_id=3,
        room_id=11,
        date_of_joining=date(2026, 1, 15),
        pg_type=PgType.MENS,
        pg_name="Sunrise",
        room_no="101",
        photo_url="/uploads/profile/ravi.jpg",
        document_url="/uploads/documents/ravi.pdf",
    )
    base.update(overrides)
    return Member(**base)


PAYMENT = Payment(
    payment_id=1,
    member_id=7,
    pg_id=3,
    month=6,
    year=2026,
    amount=6000.0,
    due_date=date(2026, 6, 15),
    overdue_date=date(2026, 6, 22),
    payment_status=PaymentStatus.PAID,
    approval_status=ApprovalStatus.APPROVED,
    paid_date=datetime(2026, 6, 14, 9, 0, 0),
    payment_method=PaymentMethod.ONLINE,
    rent_bill_screenshot="/uploads/payment/rent/june.png",
)

LEAVING = LeavingRequest(
    request_id=1,
    member_id=7,
    pg_id=3,
    requested_leave_date=date(2026, 8, 31),
    reason="Moving to another city",
    status=LeavingStatus.PENDING,
    pending_dues=0.0,
)


class FakeMembersRepo:
    def __init__(self, member):
        self.member = member

    def get_by_id(self, member_pk, *, tx=None):
        return self.member if int(member_pk) == self.member.id else None


class FakePaymentsRepo:
    def recent_for_member(self, *, member_id, limit=12):
        return [PAYMENT]


class FakeLeavingRepo:
    def list_for_member(self, member_id):
        return [LEAVING]


def _service(tmp_path, member=None):
    uploads = UploadStore(tmp_path)
    members = MemberService(FakeMembersRepo(member or _member()), FakePaymentsRepo(), rooms=None, pg_service=None)
    return MemberReportService(members, FakePaymentsRepo(), FakeLeavingRepo(), uploads=uploads), uploads


def _put(uploads: UploadStore, url: str, content: bytes = b"data"):
    path = uploads.path_for(url)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def test_pdf_renders():
    pdf = render_member_pdf(_member(), [PAYMENT], [LEAVING], generated_at=NOW)

    assert pdf.startswith(b"%PDF")


def test_filename_is_sanitized():
    assert report_filename(_member(name="Ravi K. (Jr)")) == "MRM2345_Ravi_K___Jr__complete_report.zip"


def test_zip_bundles_pdf_files_and_manifest(tmp_path):
    svc, uploads = _service(tmp_path)
    _put(uploads, "/uploads/profile/ravi.jpg")
    _put(uploads, "/uploads/payment/rent/june.png")

    filename, buf = svc.build(ADMIN, 7, now=NOW)

    assert filename == "MRM2345_Ravi_Kumar_complete_report.zip"
    with zipfile.ZipFile(buf) as z:
        names = set(z.namelist())
        manifest = json.loads(z.read("manifest.json"))
    assert {"report.pdf", "manifest.json", "profile/ravi.jpg", "payments/june.png"} <= names
    assert manifest["missing"] == ["/uploads/documents/ravi.pdf"]
    assert {f["path"] for f in manifest["files"]} == {"profile/ravi.jpg", "payments/june.png"}
    assert manifest["generatedAt"] == NOW.isoformat()


def test_member_of_other_pg_type_not_found(tmp_path):
    svc, _ = _service(tmp_path, member=_member(pg_type=PgType.WOMENS))

    with pytest.raises(NotFoundError):
        svc.build(ADMIN, 7, now=NOW)
