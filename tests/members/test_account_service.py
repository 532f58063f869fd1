from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest
from werkzeug.security import generate_password_hash

from src.pg_manager.pg_manager.auth.tokens import TokenService
from src.pg_manager.pg_manager.core.constants import SETUP_TOKEN_SCOPE
from src.pg_manager.pg_manager.core.enums import Gender, OtpType, PgType, RentType
from src.pg_manager.pg_manager.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from src.pg_manager.pg_manager.members.account_service import MemberAccountService
from src.pg_manager.pg_manager.members.model import Member
from src.pg_manager.pg_manager.otp.model import Otp
from src.pg_manager.pg_manager.otp.service import OtpService


NOW = datetime(2026, 5, 10, 18, 0, 0)


class FakeMembersRepo:
    def __init__(self, *members: Member):
        self._members = {m.id: m for m in members}

    def get_by_id(self, member_pk, *, tx=None):
        return self._members.get(int(member_pk))

    def get_by_email(self, email):
        return next((m for m in self._members.values() if m.email == email), None)

    def set_password(self, *, member_pk, password_hash):
        m = self._members[member_pk]
        self._members[member_pk] = replace(m, password_hash=password_hash, is_first_time_login=False)
        return True

    def find_duplicate(self, *, email, phone, exclude_id=None):
        for m in self._members.values():
            if m.id == exclude_id:
                continue
            if m.email == email:
                return "email"
            if m.phone == phone:
                return "phone"
        return None

    def update_profile(self, *, member_pk, location, work, phone):
        m = self._members[member_pk]
        self._members[member_pk] = replace(m, location=location, work=work, phone=phone)
        return True


class FakePaymentsRepo:
    def latest_attempt(self, *, member_id, month, year):
        return None


class FakeLeavingRepo:
    def open_for_member(self, member_id):
        return None


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

    def latest_unused(self, *, member_id, otp_type):
        live = [o for o in self.rows.values() if o.member_id == member_id and o.otp_type == otp_type and not o.used]
        return max(live, key=lambda o: o.otp_id) if live else None

    def record_failure(self, otp_id):
        otp = self.rows[otp_id]
        self.rows[otp_id] = replace(otp, attempts=otp.attempts + 1)

    def mark_used(self, otp_id, *, used_at):
        otp = self.rows[otp_id]
        if otp.used:
            return False
        self.rows[otp_id] = replace(otp, used=True, used_at=used_at)
        return True


class RecordingNotifier:
    def __init__(self):
        self.codes = []

    def setup_otp(self, member, code):
        self.codes.append((OtpType.INITIAL_SETUP, member.email, code))
        return True

    def password_reset_otp(self, member, code):
        self.codes.append((OtpType.PASSWORD_RESET, member.email, code))
        return True


def _member(member_pk=1, **overrides) -> Member:
    base = dict(
        id=member_pk,
        member_id=f"MRM{1000 + member_pk}",
        name="Ravi",
        dob=date(1998, 6, 1),
        gender=Gender.MALE,
        location="Salem",
        email=f"m{member_pk}@example.com",
        phone=f"90000000{member_pk:02d}",
        work="Engineer",
        rent_type=RentType.LONG_TERM,
        pg_id=3,
        date_of_joining=date(2026, 3, 14),
        pg_type=PgType.MENS,
    )
    base.update(overrides)
    return Member(**base)


def _with_password(member_pk=1, password="secret1", **overrides) -> Member:
    return _member(
        member_pk, is_first_time_login=False, password_hash=generate_password_hash(password), **overrides
    )


@pytest.fixture()
def tokens():
    return TokenService("test-jwt-secret", expires_hours=1)


def _service(tokens, *members: Member):
    repo = FakeMembersRepo(*members)
    notifier = RecordingNotifier()
    codes = iter(["111111", "222222", "333333", "444444"])
    svc = MemberAccountService(
        repo,
        FakePaymentsRepo(),
        FakeLeavingRepo(),
        tokens,
        otp=OtpService(FakeOtpRepo(), code_generator=lambda: next(codes)),
        notifier=notifier,
    )
    return svc, repo, notifier


def test_first_login_returns_no_token(tokens):
    svc, _, _ = _service(tokens, _member())

    result = svc.login("m1@example.com", "")

    assert result == {"token": None, "member": None, "isFirstTimeLogin": True, "email": "m1@example.com"}


def test_inactive_member_is_forbidden(tokens):
    svc, _, _ = _service(tokens, _with_password(is_active=False))

    with pytest.raises(AuthorizationError):
        svc.login("m1@example.com", "secret1")


def test_wrong_password_and_unknown_email_are_refused(tokens):
    svc, _, _ = _service(tokens, _with_password())

    with pytest.raises(AuthenticationError):
        svc.login("m1@example.com", "wrong-one")
    with pytest.raises(AuthenticationError):
        svc.login("nobody@example.com", "secret1")


def test_login_issues_member_token(tokens):
    svc, _, _ = _service(tokens, _with_password())

    session = svc.login("m1@example.com", "secret1")

    claims = tokens.decode(session["token"])
    assert claims["memberId"] == "MRM1001"
    assert "scope" not in claims
    assert session["isFirstTimeLogin"] is False


def test_setup_flow_goes_through_emailed_code(tokens):
    svc, repo, notifier = _service(tokens, _member())

    svc.request_setup_otp("m1@example.com", now=NOW)
    ((otp_type, email, code),) = notifier.codes
    assert (otp_type, email) == (OtpType.INITIAL_SETUP, "m1@example.com")

    verified = svc.verify_setup_otp({"email": "m1@example.com", "otp": code}, now=NOW)
    claims = tokens.decode(verified["setupToken"])
    assert claims["scope"] == SETUP_TOKEN_SCOPE
    assert verified["expiresIn"] == 15 * 60

    session = svc.setup_password(
        tokens.member_from_claims(claims), {"password": "fresh-pass", "confirmPassword": "fresh-pass"}
    )
    assert session["isFirstTimeLogin"] is False
    assert "scope" not in tokens.decode(session["token"])
    assert repo.get_by_id(1).is_first_time_login is False
    assert svc.login("m1@example.com", "fresh-pass")["token"]


def test_wrong_setup_code_gives_no_setup_token(tokens):
    svc, _, _ = _service(tokens, _member())
    svc.request_setup_otp("m1@example.com", now=NOW)

    with pytest.raises(AuthenticationError):
        svc.verify_setup_otp({"email": "m1@example.com", "otp": "999999"}, now=NOW)


def test_setup_code_is_refused_once_password_is_set(tokens):
    svc, _, notifier = _service(tokens, _with_password())

    svc.request_setup_otp("m1@example.com", now=NOW)
    assert notifier.codes == []

    with pytest.raises(ValidationError):
        svc.verify_setup_otp({"email": "m1@example.com", "otp": "111111"}, now=NOW)


def test_setup_password_rejects_mismatch_and_second_setup(tokens):
    svc, _, _ = _service(tokens, _member(), _with_password(2))
    first_timer = _member().identity()

    with pytest.raises(ValidationError):
        svc.setup_password(first_timer, {"password": "fresh-pass", "confirmPassword": "other-pass"})

    with pytest.raises(ValidationError, match="already"):
        svc.setup_password(
            _with_password(2).identity(), {"password": "fresh-pass", "confirmPassword": "fresh-pass"}
        )


def test_otp_requests_for_unknown_email_are_silent(tokens):
    svc, _, notifier = _service(tokens, _member())

    svc.request_setup_otp("nobody@example.com", now=NOW)
    svc.request_password_reset("nobody@example.com", now=NOW)
    svc.request_password_reset("m1@example.com", now=NOW)

    assert notifier.codes == []


def test_password_reset_with_emailed_code(tokens):
    svc, _, notifier = _service(tokens, _with_password())

    svc.request_password_reset("m1@example.com", now=NOW)
    ((otp_type, _, code),) = notifier.codes
    assert otp_type == OtpType.PASSWORD_RESET

    payload = {"email": "m1@example.com", "otp": "000000", "newPassword": "reset-pass", "confirmPassword": "reset-pass"}
    with pytest.raises(AuthenticationError):
        svc.reset_password(payload, now=NOW)

    svc.reset_password(dict(payload, otp=code), now=NOW)

    assert svc.login("m1@example.com", "reset-pass")["token"]
    with pytest.raises(AuthenticationError):
        svc.login("m1@example.com", "secret1")
    with pytest.raises(AuthenticationError):
        svc.reset_password(dict(payload, otp=code), now=NOW)


def test_reset_password_needs_matching_confirmation(tokens):
    svc, _, _ = _service(tokens, _with_password())

    with pytest.raises(ValidationError):
        svc.reset_password(
            {"email": "m1@example.com", "otp": "111111", "newPassword": "reset-pass", "confirmPassword": "nope"},
            now=NOW,
        )


def test_change_password_checks_current_password(tokens):
    svc, _, _ = _service(tokens, _with_password())
    identity = _member().identity()

    with pytest.raises(AuthenticationError):
        svc.change_password(identity, {"currentPassword": "wrong-one", "newPassword": "another1"})
    with pytest.raises(ValidationError):
        svc.change_password(identity, {"currentPassword": "secret1", "newPassword": "secret1"})

    svc.change_password(identity, {"currentPassword": "secret1", "newPassword": "another1"})
    assert svc.login("m1@example.com", "another1")["token"]


def test_update_profile_rejects_phone_of_another_member(tokens):
    svc, _, _ = _service(tokens, _with_password(1), _with_password(2))

    with pytest.raises(ConflictError) as exc:
        svc.update_profile(_member(1).identity(), {"phone": "9000000002"})
    assert exc.value.field == "phone"

    updated = svc.update_profile(_member(1).identity(), {"work": "Architect", "phone": "9000000077"})
    assert (updated["work"], updated["phone"]) == ("Architect", "9000000077")


def test_month_overview_without_payment_row(tokens):
    svc, _, _ = _service(tokens, _with_password())

    overview = svc.current_month_overview(_member().identity(), now=NOW)

    assert overview["paymentStatus"] == "NO_PAYMENT"
    assert overview["payment"] is None
    assert overview["dueDate"] == date(2026, 5, 14)
    assert overview["overdueDate"] == date(2026, 5, 21)
    assert overview["daysUntilDue"] == 4
    assert overview["room"] is None
    assert overview["leavingRequest"] is None
