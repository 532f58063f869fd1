from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_enum, optional_int, require_enum, require_length, require_phone
from ..core.enums import EnquiryStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import Enquiry
from .repository import EnquiryFilter, EnquiryRepository

logger = logging.getLogger(__name__)

_SORT_FIELDS = {"createdAt", "updatedAt", "name", "status"}
DATE_RANGES = ("7", "30", "90", "180", "365", "all")


class EnquiryService:
    def __init__(self, enquiries: EnquiryRepository):
        self._enquiries = enquiries

    def create(self, payload: dict) -> Enquiry:
        enquiry_id = self._enquiries.create(
            name=require_length(payload.get("name"), "name", 2, 100),
            phone=require_phone(payload.get("phone")),
            message=require_length(payload.get("message"), "message", 10, 1000),
        )
        logger.info("New enquiry %s", enquiry_id)
        return self.get(enquiry_id)

    def get(self, enquiry_id: int) -> Enquiry:
        enquiry = self._enquiries.get_by_id(int(enquiry_id))
        if not enquiry:
            raise NotFoundError("Enquiry not found")
        return enquiry

    def list(self, args: dict, *, page: PageRequest, now: Optional[datetime] = None) -> Page:
        sort_by = args.get("sortBy") or "createdAt"
        if sort_by not in _SORT_FIELDS:
            raise ValidationError(f"sortBy must be one of: {', '.join(sorted(_SORT_FIELDS))}")
        sort_order = (args.get("sortOrder") or "desc").lower()
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sortOrder must be asc or desc")

        date_range = str(args.get("dateRange") or "all")
        if date_range not in DATE_RANGES:
            raise ValidationError(f"dateRange must be one of: {', '.join(DATE_RANGES)}")
        since = None
        if date_range != "all":
            since = (now or now_local()) - timedelta(days=int(date_range))

        flt = EnquiryFilter(
            status=optional_enum(args.get("status"), EnquiryStatus, "status"),
            search=(args.get("search") or "").strip() or None,
            resolved_by=optional_int(args.get("resolvedBy"), "resolvedBy"),
            created_since=since,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        items, total = self._enquiries.list(flt, offset=page.offset, limit=page.limit)
        return Page(items=[e.to_dict() for e in items], total=total, request=page)

    def set_status(
        self,
        admin: AdminIdentity,
        enquiry_id: int,
        payload: dict,
        *,
        now: Optional[datetime] = None,
    ) -> Enquiry:
        status = require_enum(payload.get("status") or EnquiryStatus.RESOLVED.value, EnquiryStatus, "status")
        current = self.get(enquiry_id)

        if status == EnquiryStatus.RESOLVED:
            # the first resolver is kept
            if current.status == EnquiryStatus.RESOLVED:
                resolved_by, resolved_at = current.resolved_by, current.resolved_at
            else:
                resolved_by, resolved_at = admin.id, now or now_local()
        else:
            resolved_by, resolved_at = None, None

        self._enquiries.set_status(
            enquiry_id=current.enquiry_id, status=status, resolved_by=resolved_by, resolved_at=resolved_at
        )
        logger.info("Admin %s marked enquiry %s as %s", admin.id, current.enquiry_id, status.value)
        return self.get(current.enquiry_id)

    def delete(self, enquiry_id: int) -> None:
        if not self._enquiries.delete(int(enquiry_id)):
            raise NotFoundError("Enquiry not found")

    def stats(self, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        counts = self._enquiries.counts(today_start=now.replace(hour=0, minute=0, second=0, microsecond=0))
        resolution_rate = round(counts.resolved / counts.total * 100) if counts.total else 0
        pending_share = round(counts.pending / (counts.total or 1) * 100)

        resolved_card = {
            "title": "Resolved Enquiries",
            "value": f"{counts.resolved:,}",
            "icon": "checkCircle",
            "color": "success" if counts.resolved else "neutral",
            "subtitle": f"{resolution_rate}% resolution rate",
        }
        if counts.total and resolution_rate == 100:
            resolved_card["badge"] = {"text": "Perfect!", "color": "success"}
        pending_card = {
            "title": "Pending Enquiries",
            "value": f"{counts.pending:,}",
            "icon": "clock",
            "color": "warning" if counts.pending else "success",
            "subtitle": f"{pending_share}% of total enquiries",
        }
        if counts.pending:
            pending_card["badge"] = {"text": "Action Required", "color": "warning"}

        return {
            "cards": [
                {
                    "title": "Total Enquiries",
                    "value": f"{counts.total:,}",
                    "icon": "messageCircle",
                    "color": "primary",
                    "subtitle": f"{counts.today:,} new enquiries today",
                },
                resolved_card,
                pending_card,
            ],
            "summary": {
                "totalEnquiries": counts.total,
                "resolvedEnquiries": counts.resolved,
                "pendingEnquiries": counts.pending,
                "todayEnquiries": counts.today,
                "resolutionRate": resolution_rate,
            },
            "lastUpdated": now,
        }
