from __future__ import annotations

from dataclasses import replace
from datetime import date
from types import SimpleNamespace

import pytest
from flask import Flask

from src.pg_manager.pg_manager.auth.guards import Guards
from src.pg_manager.pg_manager.auth.tokens import TokenService
from src.pg_manager.pg_manager.common.responses import ApiJSONProvider, register_error_handlers
from src.pg_manager.pg_manager.core.enums import Gender, PgType, RentType
from src.pg_manager.pg_manager.members.account_service import MemberAccountService
from src.pg_manager.pg_manager.members.controller import register as register_members
from src.pg_manager.pg_manager.members.model import Member
from src.pg_manager.pg_manager.otp.model import Otp
from src.pg_manager.pg_manager.otp.service import OtpService


NEWCOMER = Member(
    id=9,
    member_id="MRM5555",
    name="Karthik",
    dob=date(1997, 1, 20),
    gender=Gender.MALE,
    location="Erode",
    email="karthik@example.com",
    phone="9000000055",
    work="Chef",
    rent_type=RentType.LONG_TERM,
    pg_id=3,
    date_of_joining=date(2026, 4, 1),
    pg_type=PgType.MENS,
)


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


class FakeOtpRepo:
    def __init__(self):
        self.rows = {}

    def create(self, *, member_id, code_hash, otp_type, expires_at, tx=None):
        otp_id = len(self.rows) + 1
        self.rows[otp_id] = Otp(
            otp_id=otp_id, member_id=member_id, code_hash=code_hash, otp_type=otp_type, expires_at=expires_at
        )
        return otp_id

    def discard_unused(self, *, member_id, otp_type, tx=None):
        return 0

    def latest_unused(self, *, member_id, otp_type):
        live = [o for o in self.rows.values() if o.member_id == member_id and o.otp_type == otp_type and not o.used]
        return live[-1] if live else None

    def record_failure(self, otp_id):
        self.rows[otp_id] = replace(self.rows[otp_id], attempts=self.rows[otp_id].attempts + 1)

    def mark_used(self, otp_id, *, used_at):
        self.rows[otp_id] = replace(self.rows[otp_id], used=True, used_at=used_at)
        return True


class CodeInbox:
    def __init__(self):
        self.codes = []

    def setup_otp(self, member, code):
        self.codes.append(code)
        return True


@pytest.fixture()
def tokens():
    return TokenService("test-jwt-secret", expires_hours=1)


@pytest.fixture()
def app_parts(tokens):
    members = FakeMembersRepo(NEWCOMER)
    inbox = CodeInbox()
    account = MemberAccountService(
        members,
        payments=None,
        leaving=None,
        tokens=tokens,
        otp=OtpService(FakeOtpRepo(), code_generator=lambda: "731946"),
        notifier=inbox,
    )
    container = SimpleNamespace(tokens=tokens, guards=Guards(tokens), account_service=account)
    app = Flask(__name__)
    app.json = ApiJSONProvider(app)
    register_error_handlers(app)
    register_members(app, container)
    return app.test_client(), members, inbox


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


PASSWORDS = {"password": "taken-over", "confirmPassword": "taken-over"}


def test_setup_password_without_token_is_refused(app_parts):
    client, members, _ = app_parts

    res = client.post("/api/v1/user/setup-password", json=dict(PASSWORDS, email=NEWCOMER.email))

    assert res.status_code == 401
    assert res.get_json()["success"] is False
    assert members.get_by_id(9).password_hash is None
    assert members.get_by_id(9).is_first_time_login is True


def test_setup_password_refuses_regular_member_token(app_parts, tokens):
    client, members, _ = app_parts

    res = client.post(
        "/api/v1/user/setup-password", json=PASSWORDS, headers=_auth(tokens.issue_member(NEWCOMER.identity()))
    )

    assert res.status_code == 403
    assert members.get_by_id(9).password_hash is None


def test_setup_token_does_not_open_member_routes(app_parts, tokens):
    client, _, _ = app_parts

    res = client.get("/api/v1/user/profile", headers=_auth(tokens.issue_setup(NEWCOMER.identity())))

    assert res.status_code == 403


def test_wrong_code_gets_no_setup_token(app_parts):
    client, _, _ = app_parts
    client.post("/api/v1/user/request-otp", json={"email": NEWCOMER.email})

    res = client.post("/api/v1/user/otp-verify", json={"email": NEWCOMER.email, "otp": "000000"})

    assert res.status_code == 401
    assert "setupToken" not in (res.get_json().get("data") or {})


def test_emailed_code_unlocks_password_setup(app_parts):
    client, members, inbox = app_parts

    res = client.post("/api/v1/user/request-otp", json={"email": NEWCOMER.email})
    assert res.status_code == 200
    assert inbox.codes == ["731946"]

    res = client.post("/api/v1/user/otp-verify", json={"email": NEWCOMER.email, "otp": "731946"})
    assert res.status_code == 200
    setup_token = res.get_json()["data"]["setupToken"]

    res = client.post("/api/v1/user/setup-password", json=PASSWORDS, headers=_auth(setup_token))
    assert res.status_code == 200
    assert res.get_json()["data"]["token"]
    assert members.get_by_id(9).is_first_time_login is False


def test_request_otp_answers_the_same_for_unknown_email(app_parts):
    client, _, inbox = app_parts

    known = client.post("/api/v1/user/request-otp", json={"email": NEWCOMER.email})
    unknown = client.post("/api/v1/user/request-otp", json={"email": "stranger@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.get_json()["message"] == unknown.get_json()["message"]
    assert len(inbox.codes) == 1
