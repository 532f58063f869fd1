from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.pg_manager.pg_manager.auth.tokens import AdminIdentity
from src.pg_manager.pg_manager.core.enums import PgType, ReportType
from src.pg_manager.pg_manager.core.exceptions import ValidationError
from src.pg_manager.pg_manager.reports.model import PeriodFigures
from src.pg_manager.pg_manager.reports.service import (
    ReportService,
    financial_summary_row,
    pg_performance_row,
    trend_percent,
)


NOW = datetime(2026, 7, 12, 10, 0, 0)
ADMIN = AdminIdentity(id=1, email="admin@pg.local", name="Admin", pg_type=PgType.MENS)


class FakeReportsRepo:
    def __init__(self, figures=None):
        # period start -> PeriodFigures
        self.figures = figures or {}
        self.cache = {}
        self.upserts = []
        self.builds = 0

    def period_figures(self, *, pg_type, start, end):
        self.builds += 1
        return self.figures.get(start, PeriodFigures())

    def pg_rows(self, *, pg_type, start, end):
        return [
            {
                "pg_name": "Sunrise",
                "pg_location": "Velachery",
                "total_members": 8,
                "new_members": 2,
                "total_rooms": 4,
                "occupied_rooms": 3,
                "revenue": 48000.0,
                "pending_payments": 1,
                "overdue_payments": 0,
                "expenses": 6000.0,
            }
        ]

    def room_rows(self, *, pg_type, start, end):
        return []

    def payment_rows(self, *, pg_type, start, end):
        return []

    def finance_rows(self, *, pg_type, start, end):
        return []

    def get_cached(self, *, pg_type, period):
        return self.cache.get((pg_type, period.report_type, period.period, period.year))

    def upsert(self, report):
        p = report.period
        self.upserts.append(report)
        self.cache[(report.pg_type, p.report_type, p.period, p.year)] = replace(report, cached=True)


class FakePaymentService:
    def __init__(self):
        self.sweeps = 0

    def sweep_overdue(self, *, now=None):
        self.sweeps += 1
        return 0


def _svc(repo=None):
    repo = repo or FakeReportsRepo()
    payments = FakePaymentService()
    return ReportService(repo, payments), repo, payments


def test_trend_percent():
    assert trend_percent(0, 0) == 0.0
    assert trend_percent(0, 10) == 100.0
    assert trend_percent(200, 150) == -25.0
    assert trend_percent(-500, 500) == 200.0


def test_cards_compare_with_previous_period():
    repo = FakeReportsRepo(
        {
            date(2026, 6, 1): PeriodFigures(new_members=4, rent_collected=12000, total_expenses=11500),
            date(2026, 5, 1): PeriodFigures(new_members=2, rent_collected=10000, total_expenses=10500),
        }
    )
    svc, _, payments = _svc(repo)

    out = svc.cards(ADMIN, "monthly", {"month": "6", "year": "2026"}, now=NOW)

    cards = {c["key"]: c for c in out["cards"]}
    assert cards["newMembers"]["percentage"] == 100.0
    assert cards["rentCollected"]["percentage"] == 20.0
    assert cards["netProfit"]["value"] == 500.0
    assert cards["netProfit"]["trend"] == "up"
    assert cards["netProfit"]["percentage"] == 200.0
    assert out["period"]["startDate"] == date(2026, 6, 1)
    assert payments.sweeps == 1


def test_completed_period_is_cached_once_and_reused():
    svc, repo, _ = _svc()

    first = svc.tables(ADMIN, "monthly", {"month": 6, "year": 2026}, now=NOW)
    builds = repo.builds
    second = svc.tables(ADMIN, "monthly", {"month": 6, "year": 2026}, now=NOW)

    assert first["cached"] is False
    assert second["cached"] is True
    assert repo.builds == builds
    assert len(repo.upserts) == 1
    assert second["pgPerformance"][0]["occupancyRate"] == 75.0


def test_current_period_is_always_live():
    svc, repo, _ = _svc()

    svc.cards(ADMIN, "weekly", {}, now=NOW)
    svc.cards(ADMIN, "weekly", {}, now=NOW)

    assert repo.upserts == []


def test_future_and_invalid_periods_rejected():
    svc, _, _ = _svc()

    with pytest.raises(ValidationError):
        svc.cards(ADMIN, "monthly", {"month": 8, "year": 2026}, now=NOW)
    with pytest.raises(ValidationError):
        svc.cards(ADMIN, "monthly", {"month": 1, "year": 2027}, now=NOW)
    with pytest.raises(ValidationError):
        svc.cards(ADMIN, "weekly", {"week": 54, "year": 2025}, now=NOW)
    with pytest.raises(ValidationError):
        svc.cards(ADMIN, "yearly", {}, now=NOW)


def test_week_zero_reads_last_week_of_previous_year():
    svc, _, _ = _svc()

    out = svc.cards(ADMIN, "weekly", {"week": 0, "year": 2026}, now=NOW)

    assert (out["period"]["period"], out["period"]["year"]) == (52, 2025)


def test_download_names_file_after_period():
    svc, _, _ = _svc()

    filename, buf = svc.download(ADMIN, "monthly", {"month": 6, "year": 2026}, now=NOW)

    assert filename == "mens_monthly_report_month6_2026.xlsx"
    assert buf.read(2) == b"PK"


def test_cache_completed_periods_covers_both_types_and_kinds():
    svc, repo, _ = _svc()

    assert svc.cache_completed_periods(now=NOW) == 4

    kinds = {(r.pg_type, r.period.report_type, r.period.period) for r in repo.upserts}
    assert kinds == {
        (PgType.MENS, ReportType.WEEKLY, 27),
        (PgType.WOMENS, ReportType.WEEKLY, 27),
        (PgType.MENS, ReportType.MONTHLY, 6),
        (PgType.WOMENS, ReportType.MONTHLY, 6),
    }


def test_row_shapers():
    perf = pg_performance_row(FakeReportsRepo().pg_rows(pg_type=PgType.MENS, start=None, end=None)[0])
    assert perf["vacantRooms"] == 1
    assert perf["netRevenue"] == 42000.0

    finance = financial_summary_row(
        {
            "pg_name": "Sunrise",
            "pg_location": "Velachery",
            "expected_revenue": 50000.0,
            "actual_revenue": 45000.0,
            "pending_amount": 5000.0,
            "overdue_amount": 0.0,
            "advance_collected": 10000.0,
            "cash_in": 2000.0,
            "cash_out": 7000.0,
        }
    )
    assert finance["netCashFlow"] == 40000.0
