from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..core.constants import OTP_LENGTH, OTP_MAX_ATTEMPTS, OTP_RESET_TTL_MINUTES, OTP_SETUP_TTL_HOURS
from ..core.enums import OtpType
from ..core.exceptions import AuthenticationError
from .repository import OtpRepository

logger = logging.getLogger(__name__)

LIFETIMES = {
    OtpType.INITIAL_SETUP: timedelta(hours=OTP_SETUP_TTL_HOURS),
    OtpType.PASSWORD_RESET: timedelta(minutes=OTP_RESET_TTL_MINUTES),
}


def generate_code(length: int = OTP_LENGTH) -> str:
    return f"{secrets.randbelow(10 ** length):0{length}d}"


class OtpService:
    """One-time codes for first password setup and password reset.

    Only a hash of each code is stored. Issuing a new code discards the member's
    unused codes of the same type; a code dies after use, expiry or too many wrong guesses.
    """

    def __init__(self, otps: OtpRepository, *, code_generator: Callable[[], str] = generate_code):
        self._otps = otps
        self._generate = code_generator

    def issue(self, member_pk: int, otp_type: OtpType, *, now: Optional[datetime] = None, tx: Any = None) -> str:
        now = now or now_local()
        code = self._generate()
        self._otps.discard_unused(member_id=member_pk, otp_type=otp_type, tx=tx)
        self._otps.create(
            member_id=member_pk,
            code_hash=generate_password_hash(code),
            otp_type=otp_type,
            expires_at=now + LIFETIMES[otp_type],
            tx=tx,
        )
        logger.info("Issued %s OTP for member %s", otp_type.value, member_pk)
        return code

    def verify(self, member_pk: int, otp_type: OtpType, code: str, *, now: Optional[datetime] = None) -> None:
        now = now or now_local()
        otp = self._otps.latest_unused(member_id=member_pk, otp_type=otp_type)
        if otp is None or otp.is_expired(now):
            raise AuthenticationError("Invalid or expired OTP")
        if otp.attempts >= OTP_MAX_ATTEMPTS:
            raise AuthenticationError("Too many wrong attempts, please request a new OTP")
        if not check_password_hash(otp.code_hash, str(code or "").strip()):
            self._otps.record_failure(otp.otp_id)
            logger.info("Wrong %s OTP for member %s", otp_type.value, member_pk)
            raise AuthenticationError("Invalid or expired OTP")
        if not self._otps.mark_used(otp.otp_id, used_at=now):
            raise AuthenticationError("Invalid or expired OTP")

    def purge_expired(self, *, now: Optional[datetime] = None) -> int:
        removed = self._otps.purge_expired(now or now_local())
        if removed:
            logger.info("Purged %s used or expired OTPs", removed)
        return removed
