from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.uploads import UploadStore
from ..common.validators import optional_bool, optional_enum, optional_int
from ..core.enums import PaymentStatus, RentType
from ..core.exceptions import NotFoundError, ValidationError
from ..payments.model import display_status
from ..payments.repository import PaymentRepository
from ..pgs.service import PgService
from ..rooms.repository import RoomRepository
from .model import Member
from .repository import MemberFilter, MemberRepository

logger = logging.getLogger(__name__)

PAYMENT_STATUS_FILTERS = ("APPROVED", "PENDING_APPROVAL", "PENDING", "OVERDUE", "REJECTED", "NO_PAYMENT")


class MemberService:
    """Admin-facing member directory and housekeeping."""

    def __init__(
        self,
        members: MemberRepository,
        payments: PaymentRepository,
        rooms: RoomRepository,
        pg_service: PgService,
        *,
        uploads: Optional[UploadStore] = None,
    ):
        self._members = members
        self._payments = payments
        self._rooms = rooms
        self._pgs = pg_service
        self._uploads = uploads

    def list_members(
        self,
        admin: AdminIdentity,
        args: dict,
        *,
        page: PageRequest,
        now: Optional[datetime] = None,
    ) -> Page:
        now = now or now_local()
        payment_status = (args.get("paymentStatus") or "").strip().upper() or None
        if payment_status and payment_status not in PAYMENT_STATUS_FILTERS:
            raise ValidationError(f"paymentStatus must be one of: {', '.join(PAYMENT_STATUS_FILTERS)}")

        flt = MemberFilter(
            pg_ids=self._pgs.scoped_ids(admin),
            month=now.month,
            year=now.year,
            search=(args.get("search") or "").strip() or None,
            rent_type=optional_enum(args.get("rentType"), RentType, "rentType"),
            pg_id=optional_int(args.get("pgId"), "pgId"),
            room_id=optional_int(args.get("roomId"), "roomId"),
            payment_status=payment_status,
            is_active=optional_bool(args.get("isActive")),
            sort_by=args.get("sortBy") or "createdAt",
            sort_order=args.get("sortOrder") or "desc",
        )
        items, total = self._members.list_for_admin(flt, offset=page.offset, limit=page.limit)
        return Page(items=items, total=total, request=page)

    def get_scoped(self, admin: AdminIdentity, member_pk: int) -> Member:
        member = self._members.get_by_id(int(member_pk))
        if not member or member.pg_type != admin.pg_type:
            raise NotFoundError("Member not found")
        return member

    def get_member(self, admin: AdminIdentity, member_pk: int, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        member = self.get_scoped(admin, member_pk)
        current = self._payments.latest_attempt(member_id=member.id, month=now.month, year=now.year)
        data = member.to_dict(today=now.date())
        data["currentPaymentStatus"] = display_status(current)
        data["payments"] = [p.to_dict() for p in self._payments.recent_for_member(member_id=member.id, limit=12)]
        return data

    def get_filters(self, admin: AdminIdentity) -> dict:
        pg_ids = self._pgs.scoped_ids(admin)
        return {
            "pgs": [pg for pg in self._pgs.list_for_admin(admin)],
            "rooms": [
                {"id": r.room_id, "roomNo": r.room_no, "pgId": r.pg_id} for r in self._rooms.list_for_pgs(pg_ids)
            ],
            "rentTypes": [t.value for t in RentType],
            "paymentStatuses": list(PAYMENT_STATUS_FILTERS),
        }

    def cleanup_inactive(self) -> int:
        removed = 0
        for member in self._members.list_inactive():
            files = list(member.uploaded_files()) + list(self._payments.screenshots_for_member(member.id))
            if not self._members.delete(member.id):
                continue
            removed += 1
            if self._uploads:
                self._uploads.delete_all(files)
            logger.info("Removed inactive member %s", member.member_id)
        logger.info("Inactive member cleanup removed %s members", removed)
        return removed
