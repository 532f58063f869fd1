from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeavingStatus, PaymentMethod, PgType


@dataclass(frozen=True)
class LeavingRequest:
    request_id: int
    member_id: int
    pg_id: int
    requested_leave_date: date
    reason: str
    status: LeavingStatus
    room_id: Optional[int] = None
    feedback: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    pending_dues: Optional[float] = None
    final_amount: Optional[float] = None
    settled_date: Optional[date] = None
    settlement_proof: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    created_at: Optional[datetime] = None
    # Joined member / PG / room columns.
    member_name: Optional[str] = None
    member_code: Optional[str] = None
    pg_name: Optional[str] = None
    pg_type: Optional[PgType] = None
    room_no: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "memberId": self.member_id,
            "memberName": self.member_name,
            "memberMemberId": self.member_code,
            "pgId": self.pg_id,
            "pgName": self.pg_name,
            "pgType": self.pg_type.value if self.pg_type else None,
            "roomId": self.room_id,
            "roomNo": self.room_no,
            "requestedLeaveDate": self.requested_leave_date,
            "reason": self.reason,
            "feedback": self.feedback,
            "status": self.status.value,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at,
            "pendingDues": self.pending_dues,
            "finalAmount": self.final_amount,
            "settledDate": self.settled_date,
            "settlementProof": self.settlement_proof,
            "paymentMethod": self.payment_method.value if self.payment_method else None,
            "createdAt": self.created_at,
        }
