from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApprovalStatus, PaymentMethod, PaymentStatus, PgType


@dataclass(frozen=True)
class Payment:
    payment_id: int
    member_id: int
    pg_id: int
    month: int
    year: int
    amount: float
    due_date: date
    overdue_date: date
    payment_status: PaymentStatus
    approval_status: ApprovalStatus
    attempt_number: int = 1
    paid_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    rent_bill_screenshot: Optional[str] = None
    electricity_bill_screenshot: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    pg_type: Optional[PgType] = None

    @property
    def is_processed(self) -> bool:
        return self.approval_status != ApprovalStatus.PENDING

    def screenshots(self) -> list[Optional[str]]:
        return [self.rent_bill_screenshot, self.electricity_bill_screenshot]

    def to_dict(self) -> dict:
        return {
            "id": self.payment_id,
            "memberId": self.member_id,
            "pgId": self.pg_id,
            "month": self.month,
            "year": self.year,
            "amount": self.amount,
            "dueDate": self.due_date,
            "overdueDate": self.overdue_date,
            "paidDate": self.paid_date,
            "paymentMethod": self.payment_method.value if self.payment_method else None,
            "rentBillScreenshot": self.rent_bill_screenshot,
            "electricityBillScreenshot": self.electricity_bill_screenshot,
            "attemptNumber": self.attempt_number,
            "paymentStatus": self.payment_status.value,
            "approvalStatus": self.approval_status.value,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class NewPayment:
    member_id: int
    pg_id: int
    month: int
    year: int
    amount: float
    due_date: date
    overdue_date: date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    attempt_number: int = 1
    paid_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    rent_bill_screenshot: Optional[str] = None
    electricity_bill_screenshot: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None


def display_status(payment: Optional[Payment]) -> str:
    """Single status label combining both axes, for member lists and overviews."""
    if payment is None:
        return "NO_PAYMENT"
    if payment.approval_status == ApprovalStatus.APPROVED:
        return "APPROVED"
    if payment.payment_status == PaymentStatus.PAID:
        return "PENDING_APPROVAL"
    if payment.payment_status == PaymentStatus.OVERDUE:
        return "OVERDUE"
    if payment.payment_status == PaymentStatus.REJECTED or payment.approval_status == ApprovalStatus.REJECTED:
        return "REJECTED"
    return "PENDING"
