from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..core.constants import OTP_RESET_TTL_MINUTES, OTP_SETUP_TTL_HOURS
from ..core.enums import RentType
from ..members.model import Member, RegisteredMember
from .mailer import Mailer

logger = logging.getLogger(__name__)


def _money(amount: Optional[float]) -> str:
    return f"Rs. {amount:,.2f}" if amount else "N/A"


def _day(value: Optional[date]) -> str:
    return value.strftime("%d %B %Y") if value else "To be confirmed"


class NotificationService:
    """Member-facing emails: approval (with the first setup OTP), rejection and OTP mails."""

    def __init__(self, mailer: Mailer, *, company_name: str = "PG Manager"):
        self._mailer = mailer
        self._company = company_name

    def _sign_off(self) -> str:
        return f"Best regards,\nThe {self._company} Team\n"

    def registration_approved(self, member: Member, *, otp_code: Optional[str] = None) -> bool:
        lines = [
            f"Dear {member.name},",
            "",
            "Your application for accommodation has been approved.",
            "",
            f"Member ID: {member.member_id}",
            f"PG: {member.pg_name or '-'} ({member.pg_location or '-'})",
            f"Rent type: {'Short term' if member.rent_type == RentType.SHORT_TERM else 'Long term'}",
            f"Room: {member.room_no}" if member.room_no else "Room: will be assigned soon",
        ]
        if member.rent_type == RentType.LONG_TERM and member.room_rent:
            lines.append(f"Monthly rent: {_money(member.room_rent)} (due each month on your joining date)")
        if member.rent_type == RentType.SHORT_TERM and member.price_per_day:
            lines.append(f"Daily rate: {_money(member.price_per_day)}")
            lines.append(f"Stay until: {_day(member.date_of_relieving)}")
        if member.advance_amount:
            lines.append(f"Advance amount: {_money(member.advance_amount)}")
        lines.append(f"Date of joining: {_day(member.date_of_joining)}")

        if otp_code:
            lines += [
                "",
                f"Your account setup code is: {otp_code}",
                f"It is valid for {OTP_SETUP_TTL_HOURS} hours. Verify it on the member portal with your",
                "registered email, then choose your password. Do not share this code with anyone.",
            ]
        lines += ["", f"Welcome to the {self._company} family!", "", self._sign_off()]
        return self._mailer.send(
            member.email,
            f"Application Approved - Welcome to {member.pg_name or self._company}!",
            "\n".join(lines),
        )

    def registration_rejected(self, reg: RegisteredMember) -> bool:
        body = "\n".join(
            [
                f"Dear {reg.name},",
                "",
                f"Thank you for your interest in our {reg.pg_type.value.lower()} PG accommodation.",
                "After careful consideration we are unable to offer you accommodation at this time.",
                "You are welcome to apply again when new openings become available.",
                "",
                self._sign_off(),
            ]
        )
        return self._mailer.send(reg.email, f"Application Update - {reg.name}", body)

    def setup_otp(self, member: Member, code: str) -> bool:
        body = "\n".join(
            [
                f"Dear {member.name},",
                "",
                f"Your account setup code is: {code}",
                f"It is valid for {OTP_SETUP_TTL_HOURS} hours and can be used once.",
                "If you did not request this, you can ignore this email.",
                "",
                self._sign_off(),
            ]
        )
        return self._mailer.send(member.email, f"Your {self._company} account setup code", body)

    def password_reset_otp(self, member: Member, code: str) -> bool:
        body = "\n".join(
            [
                f"Dear {member.name},",
                "",
                f"We received a request to reset the password of your {self._company} account.",
                f"Your password reset code is: {code}",
                f"It is valid for {OTP_RESET_TTL_MINUTES} minutes and can be used once.",
                "If you did not request a reset, you can ignore this email; your password is unchanged.",
                "",
                self._sign_off(),
            ]
        )
        return self._mailer.send(member.email, "Password Reset Request", body)
