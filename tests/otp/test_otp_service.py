from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.pg_manager.pg_manager.core.enums import OtpType
from src.pg_manager.pg_manager.core.exceptions import AuthenticationError
from src.pg_manager.pg_manager.otp.model import Otp
from src.pg_manager.pg_manager.otp.service import OtpService, generate_code


NOW = datetime(2026, 5, 10, 18, 0, 0)


class FakeOtpRepo:
    def __init__(self):
        self.rows: dict[int, Otp] = {}
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
        otp = self.rows.get(otp_id)
        if otp is None or otp.used:
            return False
        self.rows[otp_id] = replace(otp, used=True, used_at=used_at)
        return True

    def purge_expired(self, now):
        gone = [k for k, o in self.rows.items() if o.used or o.expires_at < now]
        for k in gone:
            del self.rows[k]
        return len(gone)


def _service(*codes):
    repo = FakeOtpRepo()
    values = iter(codes or ["123456"])
    return OtpService(repo, code_generator=lambda: next(values)), repo


def test_generated_codes_are_six_digits():
    codes = {generate_code() for _ in range(50)}

    assert all(len(c) == 6 and c.isdigit() for c in codes)
    assert len(codes) > 1


def test_issue_stores_only_a_hash_with_type_specific_expiry():
    svc, repo = _service("111111", "222222")

    svc.issue(7, OtpType.INITIAL_SETUP, now=NOW)
    svc.issue(8, OtpType.PASSWORD_RESET, now=NOW)

    setup, reset = repo.rows[1], repo.rows[2]
    assert setup.code_hash != "111111"
    assert setup.expires_at == NOW + timedelta(hours=24)
    assert reset.expires_at == NOW + timedelta(minutes=15)


def test_correct_code_verifies_once():
    svc, repo = _service("654321")
    svc.issue(7, OtpType.INITIAL_SETUP, now=NOW)

    svc.verify(7, OtpType.INITIAL_SETUP, "654321", now=NOW + timedelta(minutes=5))

    assert repo.rows[1].used is True
    with pytest.raises(AuthenticationError):
        svc.verify(7, OtpType.INITIAL_SETUP, "654321", now=NOW + timedelta(minutes=6))


def test_reissue_invalidates_the_previous_code():
    svc, _ = _service("111111", "222222")
    svc.issue(7, OtpType.PASSWORD_RESET, now=NOW)
    svc.issue(7, OtpType.PASSWORD_RESET, now=NOW)

    with pytest.raises(AuthenticationError):
        svc.verify(7, OtpType.PASSWORD_RESET, "111111", now=NOW)
    svc.verify(7, OtpType.PASSWORD_RESET, "222222", now=NOW)


def test_code_of_other_type_or_member_does_not_verify():
    svc, _ = _service("111111")
    svc.issue(7, OtpType.INITIAL_SETUP, now=NOW)

    with pytest.raises(AuthenticationError):
        svc.verify(7, OtpType.PASSWORD_RESET, "111111", now=NOW)
    with pytest.raises(AuthenticationError):
        svc.verify(8, OtpType.INITIAL_SETUP, "111111", now=NOW)


def test_expired_code_is_refused():
    svc, _ = _service("111111")
    svc.issue(7, OtpType.PASSWORD_RESET, now=NOW)

    with pytest.raises(AuthenticationError, match="expired"):
        svc.verify(7, OtpType.PASSWORD_RESET, "111111", now=NOW + timedelta(minutes=15))


def test_code_locks_after_too_many_wrong_guesses():
    svc, repo = _service("111111")
    svc.issue(7, OtpType.INITIAL_SETUP, now=NOW)

    for guess in ["000000", "000001", "000002", "000003", "000004"]:
        with pytest.raises(AuthenticationError):
            svc.verify(7, OtpType.INITIAL_SETUP, guess, now=NOW)

    assert repo.rows[1].attempts == 5
    with pytest.raises(AuthenticationError, match="Too many"):
        svc.verify(7, OtpType.INITIAL_SETUP, "111111", now=NOW)
    assert repo.rows[1].used is False


def test_purge_drops_used_and_expired_codes():
    svc, repo = _service("111111", "222222", "333333")
    svc.issue(1, OtpType.PASSWORD_RESET, now=NOW - timedelta(hours=1))
    svc.issue(2, OtpType.INITIAL_SETUP, now=NOW)
    svc.issue(3, OtpType.INITIAL_SETUP, now=NOW)
    svc.verify(3, OtpType.INITIAL_SETUP, "333333", now=NOW)

    assert svc.purge_expired(now=NOW) == 2
    assert [o.member_id for o in repo.rows.values()] == [2]
