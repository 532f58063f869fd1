from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta
from typing import Optional

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import add_months, now_local
from ..core.constants import DASHBOARD_CACHE_MINUTES
from ..payments.service import PaymentService
from .model import DashboardStats, DashboardTotals
from .repository import DashboardRepository

logger = logging.getLogger(__name__)


def trend_percentage(current: float, trend: float) -> int:
    if current == 0:
        return 0
    previous = current - trend
    if previous == 0:
        return 100 if trend > 0 else 0
    return round(trend / previous * 100)


def _number(value: float) -> str:
    return f"{value:,.0f}"


def _approval_card(title: str, count: int, *, icon: str, route: str) -> dict:
    card = {
        "title": title,
        "value": _number(count),
        "icon": icon,
        "color": "warning",
        "subtitle": "Awaiting admin action",
    }
    if count > 0:
        card["badge"] = {"text": "Action Required", "color": "error"}
        card["onClickRoute"] = route
    return card


def build_cards(stats: DashboardStats) -> list[dict]:
    t, d = stats.totals, stats.trends
    new_members_up = d.new_members >= 0
    return [
        {
            "title": "Total Members",
            "value": _number(t.total_members),
            "trend": "up" if d.total_members >= 0 else "down",
            "percentage": abs(trend_percentage(t.total_members, d.total_members)),
            "icon": "users",
            "color": "primary",
            "subtitle": f"Compared to last month in {stats.pg_type.value.lower()}'s PG",
        },
        {
            "title": "Rent Collection",
            "value": f"₹{t.rent_collection:,.2f}",
            "trend": "up" if d.rent_collection >= 0 else "down",
            "percentage": abs(trend_percentage(t.rent_collection, d.rent_collection)),
            "icon": "indianRupee",
            "color": "success",
            "subtitle": f"{calendar.month_name[stats.month]} {stats.year}",
        },
        {
            "title": "New Members",
            "value": _number(t.new_members),
            "trend": "up" if new_members_up else "down",
            "percentage": abs(trend_percentage(t.new_members, d.new_members)),
            "icon": "userPlus" if new_members_up else "userMinus",
            "color": "success" if new_members_up else "error",
            "subtitle": "More than previous month" if new_members_up else "Lesser than previous month",
        },
        _approval_card(
            "Pending Payment Approvals",
            t.payment_approvals,
            icon="clock",
            route="/admin/approvals/payments",
        ),
        _approval_card(
            "Pending Registration Approvals",
            t.registration_approvals,
            icon="file",
            route="/admin/approvals/members",
        ),
    ]


class DashboardService:
    def __init__(
        self,
        dashboard: DashboardRepository,
        payment_service: PaymentService,
        *,
        cache_minutes: int = DASHBOARD_CACHE_MINUTES,
    ):
        self._dashboard = dashboard
        self._payments = payment_service
        self._cache_ttl = timedelta(minutes=int(cache_minutes))

    def _previous_totals(self, admin: AdminIdentity, month: int, year: int) -> DashboardTotals:
        prev_year, prev_month = add_months(year, month, -1)
        cached = self._dashboard.get_cached(pg_type=admin.pg_type, month=prev_month, year=prev_year)
        if cached:
            return cached.totals
        return self._dashboard.month_totals(pg_type=admin.pg_type, month=prev_month, year=prev_year)

    def _calculate(self, admin: AdminIdentity, now: datetime) -> DashboardStats:
        current = self._dashboard.month_totals(pg_type=admin.pg_type, month=now.month, year=now.year)
        previous = self._previous_totals(admin, now.month, now.year)
        stats = DashboardStats(
            pg_type=admin.pg_type,
            month=now.month,
            year=now.year,
            totals=current,
            trends=current.minus(previous),
            calculated_at=now,
        )
        self._dashboard.upsert(stats)
        return stats

    def _response(self, stats: DashboardStats) -> dict:
        return {"cards": build_cards(stats), "lastUpdated": stats.calculated_at}

    def stats(self, admin: AdminIdentity, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        self._payments.sweep_overdue(now=now)

        cached = self._dashboard.get_cached(pg_type=admin.pg_type, month=now.month, year=now.year)
        if cached and cached.calculated_at and now - cached.calculated_at < self._cache_ttl:
            return self._response(cached)
        return self._response(self._calculate(admin, now))

    def refresh(self, admin: AdminIdentity, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        self._payments.sweep_overdue(now=now)
        stats = self._calculate(admin, now)
        logger.info("Dashboard stats refreshed for %s by admin %s", admin.pg_type.value, admin.id)
        return self._response(stats)
