from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from src.pg_manager.pg_manager.auth.tokens import AdminIdentity
from src.pg_manager.pg_manager.core.enums import ApprovalStatus, Gender, OtpType, PaymentStatus, PgType, RentType
from src.pg_manager.pg_manager.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.pg_manager.pg_manager.members.approval_service import MemberApprovalService
from src.pg_manager.pg_manager.members.member_ids import generate_member_id
from src.pg_manager.pg_manager.members.model import Member, NewMember, RegisteredMember
from src.pg_manager.pg_manager.otp.model import Otp
from src.pg_manager.pg_manager.otp.service import OtpService
from src.pg_manager.pg_manager.payments.service import PaymentService
from src.pg_manager.pg_manager.pgs.model import PG
from src.pg_manager.pg_manager.pgs.service import PgService
from src.pg_manager.pg_manager.rooms.model import Room


NOW = datetime(2026, 4, 2, 9, 30, 0)
ADMIN = AdminIdentity(id=1, email="admin@pg.local", name="Admin", pg_type=PgType.MENS)


class FakePgRepo:
    def __init__(self, *pgs: PG):
        self._pgs = {p.pg_id: p for p in pgs}

    def get_by_id(self, pg_id):
        return self._pgs.get(int(pg_id))

    def list_by_type(self, pg_type):
        return [p for p in self._pgs.values() if p.pg_type == pg_type]


class FakeRoomsRepo:
    def __init__(self, *rooms: Room):
        self._rooms = {r.room_id: r for r in rooms}

    def get_by_id(self, room_id):
        return self._rooms.get(int(room_id))


class FakeRegisteredRepo:
    def __init__(self, *regs: RegisteredMember):
        self._regs = {r.registration_id: r for r in regs}

    def get_by_id(self, registration_id):
        return self._regs.get(int(registration_id))

    def delete(self, registration_id, *, tx=None):
        return self._regs.pop(int(registration_id), None) is not None

    def count_for_type(self, pg_type):
        return sum(1 for r in self._regs.values() if r.pg_type == pg_type)


class FakeMembersRepo:
    def __init__(self, pgs: FakePgRepo, rooms: FakeRoomsRepo):
        self._pgs = pgs
        self._rooms = rooms
        self._next_id = 1
        self._members: dict[int, Member] = {}

    def member_id_exists(self, member_id):
        return any(m.member_id == member_id for m in self._members.values())

    def find_duplicate(self, *, email, phone, exclude_id=None):
        for m in self._members.values():
            if m.id == exclude_id:
                continue
            if m.email == email:
                return "email"
            if m.phone == phone:
                return "phone"
        return None

    def create(self, new: NewMember, *, tx=None):
        pk = self._next_id
        self._next_id += 1
        pg = self._pgs.get_by_id(new.pg_id)
        room = self._rooms.get_by_id(new.room_id) if new.room_id else None
        self._members[pk] = Member(
            id=pk,
            member_id=new.member_id,
            name=new.name,
            dob=new.dob,
            gender=new.gender,
            location=new.location,
            email=new.email,
            phone=new.phone,
            work=new.work,
            rent_type=new.rent_type,
            pg_id=new.pg_id,
            room_id=new.room_id,
            date_of_joining=new.date_of_joining,
            date_of_relieving=new.date_of_relieving,
            advance_amount=new.advance_amount,
            price_per_day=new.price_per_day,
            photo_url=new.photo_url,
            document_url=new.document_url,
            pg_type=pg.pg_type,
            room_rent=room.rent if room else None,
        )
        return pk

    def get_by_id(self, member_pk, *, tx=None):
        return self._members.get(int(member_pk))


class FakePaymentsRepo:
    def __init__(self):
        self.created = []

    def create(self, payment, *, tx=None):
        self.created.append(payment)
        return len(self.created)

    def count_awaiting_approval(self, pg_type):
        return 4


class RecordingUploads:
    def __init__(self):
        self.deleted = []

    def delete_all(self, urls):
        self.deleted.extend(u for u in urls if u)
        return len(self.deleted)


class FakeOtpRepo:
    def __init__(self):
        self.rows = {}
        self._next_id = 1

    def create(self, *, member_id, code_hash, otp_type, expires_at, tx=None):
        otp_id = self._next_id
        self._next_id += 1
        self.rows[otp_id] = Otp(
            otp_id=otp_id, member_id=member_id, code_hash=code_hash, otp_type=otp_type, expires_at=expires_at
        )
        return otp_id

    def discard_unused(self, *, member_id, otp_type, tx=None):
        stale = [k for k, o in self.rows.items() if o.member_id == member_id and o.otp_type == otp_type and not o.used]
        for k in stale:
            del self.rows[k]
        return len(stale)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def registration_approved(self, member, *, otp_code=None):
        self.sent.append(("approved", member.email, otp_code))
        return True

    def registration_rejected(self, reg):
        self.sent.append(("rejected", reg.email, None))
        return True


def _registration(registration_id=1, **overrides) -> RegisteredMember:
    base = dict(
        registration_id=registration_id,
        name="Arun",
        dob=date(1999, 8, 12),
        gender=Gender.MALE,
        location="Madurai",
        pg_location="Velachery",
        pg_type=PgType.MENS,
        email="arun@example.com",
        phone="9000000001",
        work="Analyst",
        rent_type=RentType.LONG_TERM,
        photo_url="/uploads/profile/a.jpg",
        document_url="/uploads/documents/a.pdf",
    )
    base.update(overrides)
    return RegisteredMember(**base)


def _build(*regs: RegisteredMember, room_occupants=0, otp=None, notifier=None):
    pgs = FakePgRepo(
        PG(pg_id=3, name="Sunrise", pg_type=PgType.MENS, location="Velachery"),
        PG(pg_id=4, name="Lotus", pg_type=PgType.WOMENS, location="Adyar"),
    )
    rooms = FakeRoomsRepo(
        Room(room_id=11, room_no="101", rent=5500.0, electricity_charge=300.0, capacity=2, pg_id=3,
             occupants=room_occupants),
        Room(room_id=12, room_no="201", rent=5000.0, electricity_charge=300.0, capacity=2, pg_id=4),
    )
    registered = FakeRegisteredRepo(*regs)
    members = FakeMembersRepo(pgs, rooms)
    payments_repo = FakePaymentsRepo()
    uploads = RecordingUploads()
    svc = MemberApprovalService(
        registered,
        members,
        rooms,
        PgService(pgs),
        PaymentService(payments_repo, members),
        uploads=uploads,
        id_generator=lambda exists: "MRM2345",
        otp=otp,
        notifier=notifier,
    )
    return svc, registered, members, payments_repo, uploads


def test_approve_creates_member_removes_registration_and_opens_first_payment():
    svc, registered, members, payments, _ = _build(_registration())

    member = svc.decide(
        ADMIN,
        1,
        {"status": "APPROVED", "pgId": 3, "roomId": 11, "dateOfJoining": "2026-04-01", "advanceAmount": "2000"},
        now=NOW,
    )

    assert member.member_id == "MRM2345"
    assert member.date_of_joining == date(2026, 4, 1)
    assert member.advance_amount == 2000.0
    assert registered.get_by_id(1) is None
    assert len(payments.created) == 1
    first = payments.created[0]
    assert (first.month, first.year, first.amount) == (4, 2026, 5500.0)
    assert first.payment_status == PaymentStatus.PENDING
    assert first.approval_status == ApprovalStatus.PENDING


def test_approve_without_room_skips_first_payment():
    svc, _, _, payments, _ = _build(_registration())

    member = svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 3}, now=NOW)

    assert member.room_id is None
    assert member.date_of_joining == NOW.date()
    assert payments.created == []


def test_approve_short_term_requires_price_and_later_relieving_date():
    reg = _registration(rent_type=RentType.SHORT_TERM, date_of_relieving=date(2026, 4, 10))
    svc, _, _, payments, _ = _build(reg)

    with pytest.raises(ValidationError):
        svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 3, "roomId": 11}, now=NOW)

    with pytest.raises(ValidationError):
        svc.decide(
            ADMIN,
            1,
            {"status": "APPROVED", "pgId": 3, "pricePerDay": 400, "dateOfJoining": "2026-04-12"},
            now=NOW,
        )

    member = svc.decide(
        ADMIN,
        1,
        {"status": "APPROVED", "pgId": 3, "roomId": 11, "pricePerDay": 400, "dateOfJoining": "2026-04-01"},
        now=NOW,
    )
    assert member.price_per_day == 400.0
    assert payments.created[0].amount == 3600.0
    assert payments.created[0].approval_status == ApprovalStatus.APPROVED


def test_approve_rejects_full_room_and_room_from_other_pg():
    svc, _, _, _, _ = _build(_registration(), room_occupants=2)

    with pytest.raises(ValidationError):
        svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 3, "roomId": 11}, now=NOW)

    with pytest.raises(ValidationError):
        svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 3, "roomId": 12}, now=NOW)


def test_approve_refuses_pg_of_other_type():
    svc, _, _, _, _ = _build(_registration())

    with pytest.raises(NotFoundError):
        svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 4}, now=NOW)


def test_approve_detects_duplicate_member():
    svc, _, _, _, _ = _build(_registration(1), _registration(2, phone="9000000002"))
    svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 3}, now=NOW)

    with pytest.raises(ConflictError) as exc:
        svc.decide(ADMIN, 2, {"status": "APPROVED", "pgId": 3}, now=NOW)
    assert exc.value.field == "email"


def test_reject_discards_registration_and_its_files():
    svc, registered, _, payments, uploads = _build(_registration())

    assert svc.decide(ADMIN, 1, {"status": "REJECTED"}, now=NOW) is None
    assert registered.get_by_id(1) is None
    assert uploads.deleted == ["/uploads/profile/a.jpg", "/uploads/documents/a.pdf"]
    assert payments.created == []


def test_registration_of_other_pg_type_is_hidden():
    svc, _, _, _, _ = _build(_registration(pg_type=PgType.WOMENS))

    with pytest.raises(NotFoundError):
        svc.decide(ADMIN, 1, {"status": "REJECTED"}, now=NOW)


def test_pending_is_not_a_decision():
    svc, _, _, _, _ = _build(_registration())

    with pytest.raises(ValidationError):
        svc.decide(ADMIN, 1, {"status": "PENDING"}, now=NOW)


def test_approval_stats_counts_both_queues():
    svc, _, _, _, _ = _build(_registration(1), _registration(2, pg_type=PgType.WOMENS))

    assert svc.approval_stats(ADMIN) == {"pendingRegistrations": 1, "pendingPayments": 4}


def test_generated_member_id_skips_taken_values():
    taken = {"MRM2222"}
    values = iter(["2", "2", "2", "2", "3", "4", "5", "6"])

    class Rng:
        def choice(self, _digits):
            return next(values)

    assert generate_member_id(lambda c: c in taken, rng=Rng()) == "MRM3456"


def test_long_term_approval_mails_a_fresh_setup_code():
    otps = FakeOtpRepo()
    notifier = RecordingNotifier()
    svc, _, _, _, _ = _build(
        _registration(), otp=OtpService(otps, code_generator=lambda: "482913"), notifier=notifier
    )

    member = svc.decide(ADMIN, 1, {"status": "APPROVED", "pgId": 3, "roomId": 11}, now=NOW)

    assert notifier.sent == [("approved", "arun@example.com", "482913")]
    (otp,) = otps.rows.values()
    assert otp.member_id == member.id
    assert otp.otp_type == OtpType.INITIAL_SETUP
    assert otp.expires_at == NOW + timedelta(hours=24)
    assert otp.code_hash != "482913"


def test_short_term_approval_mails_without_setup_code():
    otps = FakeOtpRepo()
    notifier = RecordingNotifier()
    reg = _registration(rent_type=RentType.SHORT_TERM, date_of_relieving=date(2026, 4, 10))
    svc, _, _, _, _ = _build(reg, otp=OtpService(otps), notifier=notifier)

    svc.decide(
        ADMIN,
        1,
        {"status": "APPROVED", "pgId": 3, "roomId": 11, "pricePerDay": 400, "dateOfJoining": "2026-04-01"},
        now=NOW,
    )

    assert notifier.sent == [("approved", "arun@example.com", None)]
    assert otps.rows == {}


def test_rejection_is_mailed_to_applicant():
    notifier = RecordingNotifier()
    svc, _, _, _, _ = _build(_registration(), notifier=notifier)

    svc.decide(ADMIN, 1, {"status": "REJECTED"}, now=NOW)

    assert notifier.sent == [("rejected", "arun@example.com", None)]
