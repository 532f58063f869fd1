from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import PgType


@dataclass(frozen=True)
class DashboardTotals:
    total_members: int = 0
    rent_collection: float = 0.0
    new_members: int = 0
    payment_approvals: int = 0
    registration_approvals: int = 0

    def minus(self, other: "DashboardTotals") -> "DashboardTotals":
        return DashboardTotals(
            total_members=self.total_members - other.total_members,
            rent_collection=round(self.rent_collection - other.rent_collection, 2),
            new_members=self.new_members - other.new_members,
            payment_approvals=self.payment_approvals - other.payment_approvals,
            registration_approvals=self.registration_approvals - other.registration_approvals,
        )


@dataclass(frozen=True)
class DashboardStats:
    """Cached dashboard figures for one PG type and month; ``trends`` holds deltas against the month before."""

    pg_type: PgType
    month: int
    year: int
    totals: DashboardTotals = field(default_factory=DashboardTotals)
    trends: DashboardTotals = field(default_factory=DashboardTotals)
    calculated_at: Optional[datetime] = None
