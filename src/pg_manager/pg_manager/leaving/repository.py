from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import LeavingStatus, PaymentMethod, PgType
from .model import LeavingRequest


class LeavingRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[LeavingRequest]:
        raise NotImplementedError

    def open_for_member(self, member_id: int) -> Optional[LeavingRequest]:
        """The member's PENDING or APPROVED request, if any."""

        raise NotImplementedError

    def list_for_member(self, member_id: int) -> Sequence[LeavingRequest]:
        raise NotImplementedError

    def create(
        self,
        *,
        member_id: int,
        pg_id: int,
        room_id: Optional[int],
        requested_leave_date: date,
        reason: str,
        feedback: Optional[str],
        pending_dues: float,
    ) -> int:
        raise NotImplementedError

    def list_for_admin(
        self,
        *,
        pg_type: PgType,
        status: Optional[LeavingStatus],
        search: Optional[str],
        pg_id: Optional[int],
        offset: int,
        limit: int,
    ) -> tuple[list[LeavingRequest], int]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: LeavingStatus,
        approved_by: int,
        approved_at: datetime,
        reason: str,
        pending_dues: Optional[float],
        final_amount: Optional[float],
    ) -> bool:
        """Only PENDING requests change."""

        raise NotImplementedError

    def complete(
        self,
        *,
        request_id: int,
        settled_date: date,
        payment_method: PaymentMethod,
        settlement_proof: Optional[str],
        tx: Any = None,
    ) -> bool:
        raise NotImplementedError

    def list_pending(self) -> Sequence[LeavingRequest]:
        raise NotImplementedError

    def set_pending_dues(self, *, request_id: int, pending_dues: float) -> bool:
        raise NotImplementedError
