from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.tokens import MemberIdentity, TokenService
from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_length, require_min_length, require_non_empty, require_phone
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import OtpType
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..leaving.repository import LeavingRequestRepository
from ..notifications.service import NotificationService
from ..otp.service import OtpService
from ..payments.model import display_status
from ..payments.repository import PaymentRepository
from ..payments.schedule import due_dates_for
from .model import Member
from .repository import MemberRepository

logger = logging.getLogger(__name__)


def _has_password(member: Member) -> bool:
    return not member.is_first_time_login and bool(member.password_hash)


class MemberAccountService:
    """Member login, OTP-gated password setup and reset, and the self-service profile."""

    def __init__(
        self,
        members: MemberRepository,
        payments: PaymentRepository,
        leaving: LeavingRequestRepository,
        tokens: TokenService,
        *,
        otp: OtpService,
        notifier: Optional[NotificationService] = None,
    ):
        self._members = members
        self._payments = payments
        self._leaving = leaving
        self._tokens = tokens
        self._otp = otp
        self._notifier = notifier

    def _session(self, member: Member) -> dict:
        return {
            "token": self._tokens.issue_member(member.identity()),
            "member": member.to_dict(),
            "isFirstTimeLogin": False,
        }

    def login(self, email: str, password: str) -> dict:
        email = require_email(email)
        member = self._members.get_by_email(email)
        if not member:
            raise AuthenticationError("Invalid email or password")
        if not member.is_active:
            raise AuthorizationError("Your account is inactive")
        if not _has_password(member):
            return {"token": None, "member": None, "isFirstTimeLogin": True, "email": member.email}

        password = require_non_empty(password, "password")
        if not check_password_hash(member.password_hash, password):
            logger.info("Failed member login for %s", email)
            raise AuthenticationError("Invalid email or password")
        return self._session(member)

    @staticmethod
    def _new_password(payload: dict, field: str) -> str:
        password = require_min_length(payload.get(field), field, MIN_PASSWORD_LENGTH)
        if password != payload.get("confirmPassword"):
            raise ValidationError("Passwords do not match")
        return password

    def verify_setup_otp(self, payload: dict, *, now: Optional[datetime] = None) -> dict:
        """Exchange the emailed setup code for a short-lived password setup token."""
        email = require_email(payload.get("email"))
        code = require_non_empty(payload.get("otp"), "otp")
        member = self._members.get_by_email(email)
        if not member:
            raise AuthenticationError("Invalid or expired OTP")
        if not member.is_active:
            raise AuthorizationError("Your account is inactive")
        if _has_password(member):
            raise ValidationError("Password has already been set, please log in")

        self._otp.verify(member.id, OtpType.INITIAL_SETUP, code, now=now)
        logger.info("Member %s verified their setup OTP", member.member_id)
        return {
            "setupToken": self._tokens.issue_setup(member.identity()),
            "expiresIn": self._tokens.setup_expires_seconds,
            "isFirstTimeLogin": True,
            "email": member.email,
        }

    def setup_password(self, identity: MemberIdentity, payload: dict) -> dict:
        password = self._new_password(payload, "password")
        member = self._get(identity)
        if not member.is_active:
            raise AuthorizationError("Your account is inactive")
        if _has_password(member):
            raise ValidationError("Password has already been set")

        self._members.set_password(member_pk=member.id, password_hash=generate_password_hash(password))
        logger.info("Member %s completed first-time password setup", member.member_id)
        refreshed = self._members.get_by_id(member.id) or member
        return self._session(refreshed)

    def request_setup_otp(self, email: str, *, now: Optional[datetime] = None) -> None:
        email = require_email(email)
        member = self._members.get_by_email(email)
        if not member or not member.is_active or _has_password(member):
            logger.info("No setup OTP issued for %s", email)
            return
        code = self._otp.issue(member.id, OtpType.INITIAL_SETUP, now=now)
        if self._notifier:
            self._notifier.setup_otp(member, code)

    def request_password_reset(self, email: str, *, now: Optional[datetime] = None) -> None:
        email = require_email(email)
        member = self._members.get_by_email(email)
        if not member or not member.is_active or not _has_password(member):
            logger.info("No password reset OTP issued for %s", email)
            return
        code = self._otp.issue(member.id, OtpType.PASSWORD_RESET, now=now)
        if self._notifier:
            self._notifier.password_reset_otp(member, code)

    def reset_password(self, payload: dict, *, now: Optional[datetime] = None) -> None:
        email = require_email(payload.get("email"))
        code = require_non_empty(payload.get("otp"), "otp")
        password = self._new_password(payload, "newPassword")
        member = self._members.get_by_email(email)
        if not member or not member.is_active:
            raise AuthenticationError("Invalid or expired OTP")

        self._otp.verify(member.id, OtpType.PASSWORD_RESET, code, now=now)
        self._members.set_password(member_pk=member.id, password_hash=generate_password_hash(password))
        logger.info("Member %s reset their password", member.member_id)

    def change_password(self, identity: MemberIdentity, payload: dict) -> None:
        member = self._get(identity)
        current = require_non_empty(payload.get("currentPassword"), "currentPassword")
        new = require_min_length(payload.get("newPassword"), "newPassword", MIN_PASSWORD_LENGTH)
        if not member.password_hash or not check_password_hash(member.password_hash, current):
            raise AuthenticationError("Current password is incorrect")
        if current == new:
            raise ValidationError("New password must be different from the current password")
        self._members.set_password(member_pk=member.id, password_hash=generate_password_hash(new))

    def _get(self, identity: MemberIdentity) -> Member:
        member = self._members.get_by_id(identity.id)
        if not member:
            raise NotFoundError("Member not found")
        return member

    def get_profile(self, identity: MemberIdentity, *, now: Optional[datetime] = None) -> dict:
        return self._get(identity).to_dict(today=(now or now_local()).date())

    def update_profile(self, identity: MemberIdentity, payload: dict) -> dict:
        member = self._get(identity)
        location = member.location
        if payload.get("location") is not None:
            location = require_length(payload.get("location"), "location", 2, 191)
        work = member.work
        if payload.get("work") is not None:
            work = require_length(payload.get("work"), "work", 2, 100)
        phone = member.phone
        if payload.get("phone") is not None:
            phone = require_phone(payload.get("phone"))
            if phone != member.phone and self._members.find_duplicate(
                email=member.email, phone=phone, exclude_id=member.id
            ):
                raise ConflictError("Phone number is already in use", field="phone")

        self._members.update_profile(member_pk=member.id, location=location, work=work, phone=phone)
        return self._get(identity).to_dict()

    def current_month_overview(self, identity: MemberIdentity, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        member = self._get(identity)
        payment = self._payments.latest_attempt(member_id=member.id, month=now.month, year=now.year)
        if payment:
            due, overdue = payment.due_date, payment.overdue_date
        else:
            due, overdue = due_dates_for(now.year, now.month, member.date_of_joining)
        leaving = self._leaving.open_for_member(member.id)
        return {
            "month": now.month,
            "year": now.year,
            "rentType": member.rent_type.value,
            "paymentStatus": display_status(payment),
            "payment": payment.to_dict() if payment else None,
            "dueDate": due,
            "overdueDate": overdue,
            "daysUntilDue": (due - now.date()).days,
            "room": {
                "roomNo": member.room_no,
                "rent": member.room_rent,
                "electricityCharge": member.electricity_charge,
            }
            if member.room_id
            else None,
            "leavingRequest": leaving.to_dict() if leaving else None,
        }
