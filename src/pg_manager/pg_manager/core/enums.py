from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Token kinds used for route guards."""

    ADMIN = "admin"
    MEMBER = "member"


class PgType(str, Enum):
    MENS = "MENS"
    WOMENS = "WOMENS"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class RentType(str, Enum):
    LONG_TERM = "LONG_TERM"
    SHORT_TERM = "SHORT_TERM"


class PaymentStatus(str, Enum):
    """Money axis of a payment row."""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    REJECTED = "REJECTED"


class ApprovalStatus(str, Enum):
    """Admin verification axis, independent from PaymentStatus."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    ONLINE = "ONLINE"


class LeavingStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class EntryType(str, Enum):
    CASH_IN = "CASH_IN"
    CASH_OUT = "CASH_OUT"


class ReportType(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class OtpType(str, Enum):
    INITIAL_SETUP = "INITIAL_SETUP"
    PASSWORD_RESET = "PASSWORD_RESET"


class EnquiryStatus(str, Enum):
    NOT_RESOLVED = "NOT_RESOLVED"
    RESOLVED = "RESOLVED"
