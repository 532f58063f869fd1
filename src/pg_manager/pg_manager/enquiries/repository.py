from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import EnquiryStatus
from .model import Enquiry, EnquiryCounts


@dataclass(frozen=True)
class EnquiryFilter:
    status: Optional[EnquiryStatus] = None
    search: Optional[str] = None
    resolved_by: Optional[int] = None
    created_since: Optional[datetime] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"


class EnquiryRepository(Protocol):
    def get_by_id(self, enquiry_id: int) -> Optional[Enquiry]:
        raise NotImplementedError

    def create(self, *, name: str, phone: str, message: str) -> int:
        raise NotImplementedError

    def list(self, flt: EnquiryFilter, *, offset: int, limit: int) -> tuple[list[Enquiry], int]:
        raise NotImplementedError

    def set_status(
        self,
        *,
        enquiry_id: int,
        status: EnquiryStatus,
        resolved_by: Optional[int],
        resolved_at: Optional[datetime],
    ) -> bool:
        raise NotImplementedError

    def delete(self, enquiry_id: int) -> bool:
        raise NotImplementedError

    def counts(self, *, today_start: datetime) -> EnquiryCounts:
        raise NotImplementedError
