from __future__ import annotations

from typing import Optional

from ..common.datetime_utils import month_bounds
from ..core.enums import ApprovalStatus, PaymentStatus, PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_float
from .model import DashboardStats, DashboardTotals
from .repository import DashboardRepository


def _totals(r: dict, suffix: str = "") -> DashboardTotals:
    return DashboardTotals(
        total_members=int(to_float(r[f"total_members{suffix}"])),
        rent_collection=to_float(r[f"rent_collection{suffix}"]),
        new_members=int(to_float(r[f"new_members{suffix}"])),
        payment_approvals=int(to_float(r[f"payment_approvals{suffix}"])),
        registration_approvals=int(to_float(r[f"registration_approvals{suffix}"])),
    )


class MySQLDashboardRepository(DashboardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def month_totals(self, *, pg_type: PgType, month: int, year: int) -> DashboardTotals:
        start, end = month_bounds(year, month)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM members m JOIN pgs g ON g.pg_id = m.pg_id
                     WHERE g.pg_type=%s AND m.is_active=1 AND m.date_of_joining <= %s) AS total_members,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p JOIN pgs g ON g.pg_id = p.pg_id
                     WHERE g.pg_type=%s AND p.month=%s AND p.year=%s AND p.approval_status=%s) AS rent_collection,
                    (SELECT COUNT(*) FROM members m JOIN pgs g ON g.pg_id = m.pg_id
                     WHERE g.pg_type=%s AND m.date_of_joining BETWEEN %s AND %s) AS new_members,
                    (SELECT COUNT(*) FROM payments p JOIN pgs g ON g.pg_id = p.pg_id
                     WHERE g.pg_type=%s AND p.payment_status=%s AND p.approval_status=%s
                       AND (p.year < %s OR (p.year = %s AND p.month <= %s))) AS payment_approvals,
                    (SELECT COUNT(*) FROM registered_members r
                     WHERE r.pg_type=%s AND r.created_at <= %s) AS registration_approvals
                """,
                (
                    pg_type.value,
                    end.date(),
                    pg_type.value,
                    int(month),
                    int(year),
                    ApprovalStatus.APPROVED.value,
                    pg_type.value,
                    start.date(),
                    end.date(),
                    pg_type.value,
                    PaymentStatus.PAID.value,
                    ApprovalStatus.PENDING.value,
                    int(year),
                    int(year),
                    int(month),
                    pg_type.value,
                    end,
                ),
            )
            return _totals(fetchone(cur) or {})

    def get_cached(self, *, pg_type: PgType, month: int, year: int) -> Optional[DashboardStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM dashboard_stats WHERE pg_type=%s AND month=%s AND year=%s",
                (pg_type.value, int(month), int(year)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return DashboardStats(
                pg_type=PgType(r["pg_type"]),
                month=int(r["month"]),
                year=int(r["year"]),
                totals=_totals(r),
                trends=_totals(r, "_trend"),
                calculated_at=r.get("calculated_at"),
            )

    def upsert(self, stats: DashboardStats) -> None:
        t, d = stats.totals, stats.trends
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO dashboard_stats(
                    pg_type, month, year,
                    total_members, rent_collection, new_members, payment_approvals, registration_approvals,
                    total_members_trend, rent_collection_trend, new_members_trend,
                    payment_approvals_trend, registration_approvals_trend, calculated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_members=VALUES(total_members),
                    rent_collection=VALUES(rent_collection),
                    new_members=VALUES(new_members),
                    payment_approvals=VALUES(payment_approvals),
                    registration_approvals=VALUES(registration_approvals),
                    total_members_trend=VALUES(total_members_trend),
                    rent_collection_trend=VALUES(rent_collection_trend),
                    new_members_trend=VALUES(new_members_trend),
                    payment_approvals_trend=VALUES(payment_approvals_trend),
                    registration_approvals_trend=VALUES(registration_approvals_trend),
                    calculated_at=VALUES(calculated_at)
                """,
                (
                    stats.pg_type.value,
                    int(stats.month),
                    int(stats.year),
                    t.total_members,
                    t.rent_collection,
                    t.new_members,
                    t.payment_approvals,
                    t.registration_approvals,
                    d.total_members,
                    d.rent_collection,
                    d.new_members,
                    d.payment_approvals,
                    d.registration_approvals,
                    stats.calculated_at,
                ),
            )
