from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from typing import Optional

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import now_local
from ..common.validators import optional_int, require_enum
from ..core.enums import PgType, ReportType
from ..core.exceptions import ValidationError
from ..payments.service import PaymentService
from .excel import build_workbook
from .model import PeriodFigures, Report, ReportCards
from .periods import MAX_WEEK, ReportPeriod, current_period, is_completed, previous_period, resolve
from .repository import ReportRepository

logger = logging.getLogger(__name__)


def trend_percent(previous: float, current: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / abs(previous) * 100, 2)


def _rate(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def pg_performance_row(r: dict) -> dict:
    total_rooms = int(r["total_rooms"])
    occupied = int(r["occupied_rooms"])
    return {
        "pgName": r["pg_name"],
        "pgLocation": r["pg_location"],
        "totalMembers": int(r["total_members"]),
        "newMembers": int(r["new_members"]),
        "totalRooms": total_rooms,
        "occupiedRooms": occupied,
        "vacantRooms": total_rooms - occupied,
        "occupancyRate": _rate(occupied, total_rooms),
        "revenue": r["revenue"],
        "pendingPayments": int(r["pending_payments"]),
        "overduePayments": int(r["overdue_payments"]),
        "expenses": r["expenses"],
        "netRevenue": round(r["revenue"] - r["expenses"], 2),
    }


def room_utilization_row(r: dict) -> dict:
    capacity = int(r["capacity"])
    occupants = int(r["occupants"])
    return {
        "pgName": r["pg_name"],
        "roomNo": r["room_no"],
        "capacity": capacity,
        "occupants": occupants,
        "utilizationRate": _rate(occupants, capacity),
        "rent": r["rent"],
        "revenue": r["revenue"],
        "availableSlots": max(capacity - occupants, 0),
    }


def payment_analytics_row(r: dict) -> dict:
    return {
        "pgName": r["pg_name"],
        "pgLocation": r["pg_location"],
        "totalPaymentsDue": int(r["payments_due"]),
        "paymentsReceived": int(r["payments_received"]),
        "paymentsApproved": int(r["payments_approved"]),
        "paymentsPending": int(r["payments_pending"]),
        "paymentsOverdue": int(r["payments_overdue"]),
        "amountDue": r["amount_due"],
        "amountReceived": r["amount_received"],
        "collectionEfficiency": _rate(r["amount_received"], r["amount_due"]),
    }


def financial_summary_row(r: dict) -> dict:
    return {
        "pgName": r["pg_name"],
        "pgLocation": r["pg_location"],
        "expectedRevenue": r["expected_revenue"],
        "actualRevenue": r["actual_revenue"],
        "pendingAmount": r["pending_amount"],
        "overdueAmount": r["overdue_amount"],
        "advanceCollected": r["advance_collected"],
        "cashIn": r["cash_in"],
        "cashOut": r["cash_out"],
        "netCashFlow": round(r["actual_revenue"] + r["cash_in"] - r["cash_out"], 2),
    }


class ReportService:
    """Weekly and monthly report cards and tables; completed periods are served from the Report cache."""

    def __init__(self, reports: ReportRepository, payment_service: PaymentService):
        self._reports = reports
        self._payments = payment_service

    def _period(self, report_type: ReportType, period: Optional[int], year: Optional[int], now: datetime) -> ReportPeriod:
        today = now.date()
        if period is None:
            return current_period(report_type, today)
        p = resolve(report_type, period, year or today.year)
        if p.start > today:
            raise ValidationError("Reports are not available for future periods")
        return p

    def _cards(self, pg_type: PgType, period: ReportPeriod) -> ReportCards:
        cur = self._reports.period_figures(pg_type=pg_type, start=period.start, end=period.end)
        prev_period = previous_period(period)
        prev: PeriodFigures = self._reports.period_figures(
            pg_type=pg_type, start=prev_period.start, end=prev_period.end
        )
        return ReportCards(
            figures=cur,
            new_members_trend=trend_percent(prev.new_members, cur.new_members),
            member_departures_trend=trend_percent(prev.member_departures, cur.member_departures),
            rent_collected_trend=trend_percent(prev.rent_collected, cur.rent_collected),
            total_expenses_trend=trend_percent(prev.total_expenses, cur.total_expenses),
            net_profit_trend=trend_percent(prev.net_profit, cur.net_profit),
        )

    def _tables(self, pg_type: PgType, period: ReportPeriod) -> dict:
        span = {"pg_type": pg_type, "start": period.start, "end": period.end}
        return {
            "pgPerformance": [pg_performance_row(r) for r in self._reports.pg_rows(**span)],
            "roomUtilization": [room_utilization_row(r) for r in self._reports.room_rows(**span)],
            "paymentAnalytics": [payment_analytics_row(r) for r in self._reports.payment_rows(**span)],
            "financialSummary": [financial_summary_row(r) for r in self._reports.finance_rows(**span)],
        }

    def build(self, pg_type: PgType, period: ReportPeriod, *, now: datetime) -> Report:
        return Report(
            pg_type=pg_type,
            period=period,
            cards=self._cards(pg_type, period),
            tables=self._tables(pg_type, period),
            calculated_at=now,
        )

    def _report_for(self, pg_type: PgType, period: ReportPeriod, now: datetime) -> Report:
        if not is_completed(period, now.date()):
            return self.build(pg_type, period, now=now)

        cached = self._reports.get_cached(pg_type=pg_type, period=period)
        if cached:
            return cached
        report = self.build(pg_type, period, now=now)
        self._reports.upsert(report)
        return report

    def report(
        self,
        admin: AdminIdentity,
        report_type: str,
        args: dict,
        *,
        now: Optional[datetime] = None,
    ) -> Report:
        now = now or now_local()
        kind = require_enum(report_type, ReportType, "type")
        bound = MAX_WEEK if kind == ReportType.WEEKLY else 12
        period_arg = "week" if kind == ReportType.WEEKLY else "month"
        raw = args.get(period_arg)
        if raw is None or str(raw).strip() == "":
            raw = args.get("period")
        period = optional_int(raw, period_arg, min_value=0, max_value=bound)
        year = optional_int(args.get("year"), "year", min_value=2000, max_value=now.year)

        self._payments.sweep_overdue(now=now)
        return self._report_for(admin.pg_type, self._period(kind, period, year, now), now)

    def cards(self, admin: AdminIdentity, report_type: str, args: dict, *, now: Optional[datetime] = None) -> dict:
        return self.report(admin, report_type, args, now=now).cards_dict()

    def tables(self, admin: AdminIdentity, report_type: str, args: dict, *, now: Optional[datetime] = None) -> dict:
        return self.report(admin, report_type, args, now=now).tables_dict()

    def download(
        self,
        admin: AdminIdentity,
        report_type: str,
        args: dict,
        *,
        now: Optional[datetime] = None,
    ) -> tuple[str, BytesIO]:
        report = self.report(admin, report_type, args, now=now)
        p = report.period
        label = f"week{p.period}" if p.report_type == ReportType.WEEKLY else f"month{p.period}"
        filename = f"{report.pg_type.value.lower()}_{p.report_type.value.lower()}_report_{label}_{p.year}.xlsx"
        return filename, build_workbook(report)

    def cache_completed_periods(self, *, now: Optional[datetime] = None) -> int:
        now = now or now_local()
        today = now.date()
        cached = 0
        for kind in ReportType:
            last = previous_period(current_period(kind, today))
            for pg_type in PgType:
                self._reports.upsert(self.build(pg_type, last, now=now))
                cached += 1
        logger.info("Cached %s completed report periods", cached)
        return cached
