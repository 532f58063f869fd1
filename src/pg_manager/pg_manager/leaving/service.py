from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Callable, ContextManager, Optional, Sequence

from werkzeug.datastructures import FileStorage

from ..auth.tokens import AdminIdentity, MemberIdentity
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.uploads import UploadStore
from ..common.validators import (
    optional_amount,
    optional_enum,
    optional_int,
    require_date,
    require_enum,
    require_length,
)
from ..core.enums import LeavingStatus, PaymentMethod
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..members.repository import MemberRepository
from .dues import PendingDuesCalculator
from .model import LeavingRequest
from .repository import LeavingRequestRepository

logger = logging.getLogger(__name__)


class LeavingRequestService:
    def __init__(
        self,
        requests: LeavingRequestRepository,
        members: MemberRepository,
        dues: PendingDuesCalculator,
        *,
        transaction: Optional[Callable[[], ContextManager]] = None,
        uploads: Optional[UploadStore] = None,
    ):
        self._requests = requests
        self._members = members
        self._dues = dues
        self._transaction = transaction or nullcontext
        self._uploads = uploads

    # -------- Member side --------
    def apply(self, identity: MemberIdentity, payload: dict, *, now: Optional[datetime] = None) -> LeavingRequest:
        now = now or now_local()
        member = self._members.get_by_id(identity.id)
        if not member:
            raise NotFoundError("Member not found")
        if not member.is_active:
            raise AuthorizationError("Your account is inactive")

        if self._requests.open_for_member(member.id):
            raise ValidationError("You already have a pending or approved leaving request")

        leave_date = require_date(payload.get("requestedLeaveDate"), "requestedLeaveDate")
        if leave_date <= now.date():
            raise ValidationError("requestedLeaveDate must be in the future")
        reason = require_length(payload.get("reason"), "reason", 10, 1000)
        feedback = (payload.get("feedback") or "").strip() or None

        request_id = self._requests.create(
            member_id=member.id,
            pg_id=member.pg_id,
            room_id=member.room_id,
            requested_leave_date=leave_date,
            reason=reason,
            feedback=feedback,
            pending_dues=self._dues.for_member(member_id=member.id, leave_date=leave_date),
        )
        logger.info("Member %s applied to leave on %s", member.member_id, leave_date)
        return self._get(request_id)

    def status(self, identity: MemberIdentity) -> Sequence[LeavingRequest]:
        return self._requests.list_for_member(identity.id)

    # -------- Admin side --------
    def _get(self, request_id: int) -> LeavingRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Leaving request not found")
        return req

    def _scoped(self, admin: AdminIdentity, request_id: int) -> LeavingRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req or req.pg_type != admin.pg_type:
            raise NotFoundError("Leaving request not found")
        return req

    def list_for_admin(self, admin: AdminIdentity, args: dict, *, page: PageRequest) -> Page:
        items, total = self._requests.list_for_admin(
            pg_type=admin.pg_type,
            status=optional_enum(args.get("status"), LeavingStatus, "status"),
            search=(args.get("search") or "").strip() or None,
            pg_id=optional_int(args.get("pgId"), "pgId"),
            offset=page.offset,
            limit=page.limit,
        )
        return Page(items=[r.to_dict() for r in items], total=total, request=page)

    def decide(
        self,
        admin: AdminIdentity,
        request_id: int,
        payload: dict,
        *,
        now: Optional[datetime] = None,
    ) -> LeavingRequest:
        now = now or now_local()
        decision = require_enum(payload.get("status"), LeavingStatus, "status")
        if decision not in (LeavingStatus.APPROVED, LeavingStatus.REJECTED):
            raise ValidationError("status must be APPROVED or REJECTED")

        req = self._scoped(admin, request_id)
        if req.status != LeavingStatus.PENDING:
            raise NotFoundError("Leaving request not found or already processed")

        reason = req.reason
        pending_dues = final_amount = None
        if decision == LeavingStatus.APPROVED:
            pending_dues = optional_amount(payload.get("pendingDues"), "pendingDues")
            final_amount = optional_amount(payload.get("finalAmount"), "finalAmount")
        else:
            rejection = (payload.get("reason") or "").strip()
            if rejection:
                reason = f"{req.reason}\n\nRejection Reason: {rejection}"

        changed = self._requests.decide(
            request_id=req.request_id,
            status=decision,
            approved_by=admin.id,
            approved_at=now,
            reason=reason,
            pending_dues=pending_dues,
            final_amount=final_amount,
        )
        if not changed:
            raise NotFoundError("Leaving request not found or already processed")
        logger.info("Admin %s %s leaving request %s", admin.id, decision.value.lower(), req.request_id)
        return self._get(req.request_id)

    def complete(
        self,
        admin: AdminIdentity,
        request_id: int,
        payload: dict,
        *,
        settlement_proof: Optional[FileStorage] = None,
        now: Optional[datetime] = None,
    ) -> LeavingRequest:
        now = now or now_local()
        req = self._scoped(admin, request_id)
        if req.status != LeavingStatus.APPROVED:
            raise ValidationError("Only approved leaving requests can be settled")

        settled = require_date(payload.get("settledDate"), "settledDate")
        if settled > now.date():
            raise ValidationError("settledDate cannot be in the future")
        method = require_enum(payload.get("paymentMethod"), PaymentMethod, "paymentMethod")
        proof_url = self._uploads.save(settlement_proof, "settlements") if self._uploads else None

        with self._transaction() as tx:
            if not self._requests.complete(
                request_id=req.request_id,
                settled_date=settled,
                payment_method=method,
                settlement_proof=proof_url,
                tx=tx,
            ):
                raise ValidationError("Only approved leaving requests can be settled")
            self._members.deactivate(req.member_id, tx=tx)

        logger.info("Leaving request %s settled; member %s deactivated", req.request_id, req.member_id)
        return self._get(req.request_id)

    def refresh_pending_dues(self) -> int:
        updated = 0
        for req in self._requests.list_pending():
            dues = self._dues.for_member(member_id=req.member_id, leave_date=req.requested_leave_date)
            if req.pending_dues is None or abs(dues - req.pending_dues) > 0.005:
                self._requests.set_pending_dues(request_id=req.request_id, pending_dues=dues)
                updated += 1
        logger.info("Pending dues refreshed on %s leaving requests", updated)
        return updated
