from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EnquiryStatus, PgType


@dataclass(frozen=True)
class Enquiry:
    """A question left on the public site; any admin can resolve it."""

    enquiry_id: int
    name: str
    phone: str
    message: str
    status: EnquiryStatus = EnquiryStatus.NOT_RESOLVED
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Joined resolver columns.
    resolver_name: Optional[str] = None
    resolver_email: Optional[str] = None
    resolver_pg_type: Optional[PgType] = None

    def to_dict(self) -> dict:
        return {
            "id": self.enquiry_id,
            "name": self.name,
            "phone": self.phone,
            "message": self.message,
            "status": self.status.value,
            "resolvedBy": self.resolved_by,
            "resolvedAt": self.resolved_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "resolver": (
                {
                    "id": self.resolved_by,
                    "name": self.resolver_name,
                    "email": self.resolver_email,
                    "pgType": self.resolver_pg_type.value if self.resolver_pg_type else None,
                }
                if self.resolved_by
                else None
            ),
        }


@dataclass(frozen=True)
class EnquiryCounts:
    total: int = 0
    resolved: int = 0
    pending: int = 0
    today: int = 0
