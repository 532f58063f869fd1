from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Callable, ContextManager, Optional

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.uploads import UploadStore
from ..common.validators import (
    optional_amount,
    optional_date,
    optional_enum,
    optional_int,
    require_enum,
    require_int,
)
from ..core.enums import ApprovalStatus, OtpType, RentType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..otp.service import OtpService
from ..payments.service import PaymentService
from ..pgs.service import PgService
from ..rooms.repository import RoomRepository
from .member_ids import generate_member_id
from .model import Member, NewMember, RegisteredMember
from .repository import MemberRepository, RegisteredMemberRepository

logger = logging.getLogger(__name__)


class MemberApprovalService:
    """Promotes a RegisteredMember to a Member (or discards it)."""

    def __init__(
        self,
        registered: RegisteredMemberRepository,
        members: MemberRepository,
        rooms: RoomRepository,
        pg_service: PgService,
        payment_service: PaymentService,
        *,
        transaction: Optional[Callable[[], ContextManager]] = None,
        uploads: Optional[UploadStore] = None,
        id_generator: Callable[[Callable[[str], bool]], str] = generate_member_id,
        otp: Optional[OtpService] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self._registered = registered
        self._members = members
        self._rooms = rooms
        self._pgs = pg_service
        self._payments = payment_service
        self._transaction = transaction or nullcontext
        self._uploads = uploads
        self._id_generator = id_generator
        self._otp = otp
        self._notifier = notifier

    def list_registrations(
        self,
        admin: AdminIdentity,
        *,
        page: PageRequest,
        search: Optional[str] = None,
        rent_type: Optional[str] = None,
    ) -> Page:
        items, total = self._registered.list_for_type(
            pg_type=admin.pg_type,
            search=(search or "").strip() or None,
            rent_type=optional_enum(rent_type, RentType, "rentType"),
            offset=page.offset,
            limit=page.limit,
        )
        return Page(items=[r.to_dict() for r in items], total=total, request=page)

    def _scoped_registration(self, admin: AdminIdentity, registration_id: int) -> RegisteredMember:
        reg = self._registered.get_by_id(int(registration_id))
        if not reg or reg.pg_type != admin.pg_type:
            raise NotFoundError("Registration not found")
        return reg

    def decide(
        self,
        admin: AdminIdentity,
        registration_id: int,
        payload: dict,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[Member]:
        now = now or now_local()
        decision = require_enum(payload.get("status"), ApprovalStatus, "status")
        if decision == ApprovalStatus.PENDING:
            raise ValidationError("status must be APPROVED or REJECTED")

        reg = self._scoped_registration(admin, registration_id)
        if decision == ApprovalStatus.REJECTED:
            self._reject(admin, reg)
            return None
        return self._approve(admin, reg, payload, now=now)

    def _reject(self, admin: AdminIdentity, reg: RegisteredMember) -> None:
        self._registered.delete(reg.registration_id)
        if self._uploads:
            self._uploads.delete_all([reg.photo_url, reg.document_url])
        logger.info("Admin %s rejected registration %s", admin.id, reg.registration_id)
        if self._notifier:
            self._notifier.registration_rejected(reg)

    def _approve(self, admin: AdminIdentity, reg: RegisteredMember, payload: dict, *, now: datetime) -> Member:
        pg = self._pgs.get_scoped(admin, require_int(payload.get("pgId"), "pgId"))
        joining = optional_date(payload.get("dateOfJoining"), "dateOfJoining") or now.date()
        advance = optional_amount(payload.get("advanceAmount"), "advanceAmount") or 0.0

        price_per_day: Optional[float] = None
        relieving = optional_date(payload.get("dateOfRelieving"), "dateOfRelieving") or reg.date_of_relieving
        if reg.rent_type == RentType.SHORT_TERM:
            price_per_day = optional_amount(payload.get("pricePerDay"), "pricePerDay", allow_zero=False)
            if not price_per_day:
                raise ValidationError("pricePerDay is required for short term members")
            if relieving is None or relieving <= joining:
                raise ValidationError("dateOfRelieving must be after dateOfJoining")

        room_id = optional_int(payload.get("roomId"), "roomId")
        if room_id is not None:
            room = self._rooms.get_by_id(room_id)
            if not room or room.pg_id != pg.pg_id:
                raise ValidationError("Room does not belong to the selected PG")
            if room.occupants >= room.capacity:
                raise ValidationError(f"Room {room.room_no} is already full")

        duplicate = self._members.find_duplicate(email=reg.email, phone=reg.phone)
        if duplicate:
            raise ConflictError(f"A member with this {duplicate} already exists", field=duplicate)

        new = NewMember(
            member_id=self._id_generator(self._members.member_id_exists),
            name=reg.name,
            dob=reg.dob,
            gender=reg.gender,
            location=reg.location,
            email=reg.email,
            phone=reg.phone,
            work=reg.work,
            rent_type=reg.rent_type,
            pg_id=pg.pg_id,
            room_id=room_id,
            date_of_joining=joining,
            date_of_relieving=relieving,
            advance_amount=advance,
            price_per_day=price_per_day,
            photo_url=reg.photo_url,
            document_url=reg.document_url,
        )

        with self._transaction() as tx:
            member_pk = self._members.create(new, tx=tx)
            member = self._members.get_by_id(member_pk, tx=tx)
            if member is None:
                raise NotFoundError("Member not found")
            self._registered.delete(reg.registration_id, tx=tx)
            self._payments.create_first_payment(member, approved_by=admin.id, now=now, tx=tx)
            setup_code = None
            if member.rent_type == RentType.LONG_TERM and self._otp is not None:
                setup_code = self._otp.issue(member.id, OtpType.INITIAL_SETUP, now=now, tx=tx)

        logger.info("Admin %s approved registration %s as %s", admin.id, reg.registration_id, new.member_id)
        if self._notifier:
            self._notifier.registration_approved(member, otp_code=setup_code)
        return member

    def approval_stats(self, admin: AdminIdentity) -> dict:
        return {
            "pendingRegistrations": self._registered.count_for_type(admin.pg_type),
            "pendingPayments": self._payments.count_awaiting_approval(admin),
        }
