from __future__ import annotations

import json
from datetime import date
from typing import Optional, Sequence

from ..core.enums import ApprovalStatus, EntryType, LeavingStatus, PaymentStatus, PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, json_column, to_float
from .model import PeriodFigures, Report, ReportCards
from .periods import ReportPeriod
from .repository import ReportRepository

_APPROVED = ApprovalStatus.APPROVED.value
_PENDING = PaymentStatus.PENDING.value
_OVERDUE = PaymentStatus.OVERDUE.value
_CASH_IN = EntryType.CASH_IN.value
_CASH_OUT = EntryType.CASH_OUT.value


def _money_rows(rows: list[dict], *columns: str) -> list[dict]:
    for r in rows:
        for c in columns:
            r[c] = to_float(r.get(c))
    return rows


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def period_figures(self, *, pg_type: PgType, start: date, end: date) -> PeriodFigures:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM members m JOIN pgs g ON g.pg_id = m.pg_id
                     WHERE g.pg_type=%s AND DATE(m.created_at) BETWEEN %s AND %s) AS new_members,
                    (SELECT COUNT(*) FROM leaving_requests l JOIN pgs g ON g.pg_id = l.pg_id
                     WHERE g.pg_type=%s AND l.status=%s AND l.settled_date BETWEEN %s AND %s) AS member_departures,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p JOIN pgs g ON g.pg_id = p.pg_id
                     WHERE g.pg_type=%s AND p.approval_status=%s AND DATE(p.paid_date) BETWEEN %s AND %s)
                        AS rent_collected,
                    (SELECT COALESCE(SUM(e.amount), 0) FROM expenses e JOIN pgs g ON g.pg_id = e.pg_id
                     WHERE g.pg_type=%s AND e.entry_type=%s AND e.entry_date BETWEEN %s AND %s) AS total_expenses
                """,
                (
                    pg_type.value, start, end,
                    pg_type.value, LeavingStatus.COMPLETED.value, start, end,
                    pg_type.value, _APPROVED, start, end,
                    pg_type.value, _CASH_OUT, start, end,
                ),
            )
            r = fetchone(cur) or {}
            return PeriodFigures(
                new_members=int(r.get("new_members") or 0),
                member_departures=int(r.get("member_departures") or 0),
                rent_collected=to_float(r.get("rent_collected")),
                total_expenses=to_float(r.get("total_expenses")),
            )

    def pg_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.pg_id, g.name AS pg_name, g.location AS pg_location,
                    (SELECT COUNT(*) FROM members m WHERE m.pg_id = g.pg_id AND m.is_active=1) AS total_members,
                    (SELECT COUNT(*) FROM members m
                     WHERE m.pg_id = g.pg_id AND DATE(m.created_at) BETWEEN %s AND %s) AS new_members,
                    (SELECT COUNT(*) FROM rooms r WHERE r.pg_id = g.pg_id) AS total_rooms,
                    (SELECT COUNT(*) FROM rooms r WHERE r.pg_id = g.pg_id AND EXISTS(
                        SELECT 1 FROM members m WHERE m.room_id = r.room_id AND m.is_active=1)) AS occupied_rooms,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.approval_status=%s
                       AND DATE(p.paid_date) BETWEEN %s AND %s) AS revenue,
                    (SELECT COUNT(*) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.payment_status=%s AND p.due_date BETWEEN %s AND %s)
                        AS pending_payments,
                    (SELECT COUNT(*) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.payment_status=%s AND p.due_date BETWEEN %s AND %s)
                        AS overdue_payments,
                    (SELECT COALESCE(SUM(e.amount), 0) FROM expenses e
                     WHERE e.pg_id = g.pg_id AND e.entry_type=%s AND e.entry_date BETWEEN %s AND %s) AS expenses
                FROM pgs g
                WHERE g.pg_type=%s
                ORDER BY g.name
                """,
                (
                    start, end,
                    _APPROVED, start, end,
                    _PENDING, start, end,
                    _OVERDUE, start, end,
                    _CASH_OUT, start, end,
                    pg_type.value,
                ),
            )
            return _money_rows(fetchall(cur), "revenue", "expenses")

    def room_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.name AS pg_name, r.room_id, r.room_no, r.capacity, r.rent,
                    (SELECT COUNT(*) FROM members m WHERE m.room_id = r.room_id AND m.is_active=1) AS occupants,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p
                     JOIN members m ON m.id = p.member_id
                     WHERE m.room_id = r.room_id AND p.approval_status=%s
                       AND DATE(p.paid_date) BETWEEN %s AND %s) AS revenue
                FROM rooms r
                JOIN pgs g ON g.pg_id = r.pg_id
                WHERE g.pg_type=%s
                ORDER BY g.name, r.room_no
                """,
                (_APPROVED, start, end, pg_type.value),
            )
            return _money_rows(fetchall(cur), "rent", "revenue")

    def payment_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.name AS pg_name, g.location AS pg_location,
                    COUNT(p.payment_id) AS payments_due,
                    COALESCE(SUM(p.payment_status='PAID'), 0) AS payments_received,
                    COALESCE(SUM(p.approval_status=%s), 0) AS payments_approved,
                    COALESCE(SUM(p.payment_status=%s), 0) AS payments_pending,
                    COALESCE(SUM(p.payment_status=%s), 0) AS payments_overdue,
                    COALESCE(SUM(p.amount), 0) AS amount_due,
                    COALESCE(SUM(CASE WHEN p.approval_status=%s THEN p.amount END), 0) AS amount_received
                FROM pgs g
                LEFT JOIN payments p ON p.pg_id = g.pg_id AND p.due_date BETWEEN %s AND %s
                WHERE g.pg_type=%s
                GROUP BY g.pg_id, g.name, g.location
                ORDER BY g.name
                """,
                (_APPROVED, _PENDING, _OVERDUE, _APPROVED, start, end, pg_type.value),
            )
            return _money_rows(fetchall(cur), "amount_due", "amount_received")

    def finance_rows(self, *, pg_type: PgType, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.name AS pg_name, g.location AS pg_location,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.due_date BETWEEN %s AND %s) AS expected_revenue,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.approval_status=%s
                       AND DATE(p.paid_date) BETWEEN %s AND %s) AS actual_revenue,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.payment_status=%s AND p.due_date BETWEEN %s AND %s)
                        AS pending_amount,
                    (SELECT COALESCE(SUM(p.amount), 0) FROM payments p
                     WHERE p.pg_id = g.pg_id AND p.payment_status=%s AND p.due_date BETWEEN %s AND %s)
                        AS overdue_amount,
                    (SELECT COALESCE(SUM(m.advance_amount), 0) FROM members m
                     WHERE m.pg_id = g.pg_id AND m.date_of_joining BETWEEN %s AND %s) AS advance_collected,
                    (SELECT COALESCE(SUM(e.amount), 0) FROM expenses e
                     WHERE e.pg_id = g.pg_id AND e.entry_type=%s AND e.entry_date BETWEEN %s AND %s) AS cash_in,
                    (SELECT COALESCE(SUM(e.amount), 0) FROM expenses e
                     WHERE e.pg_id = g.pg_id AND e.entry_type=%s AND e.entry_date BETWEEN %s AND %s) AS cash_out
                FROM pgs g
                WHERE g.pg_type=%s
                ORDER BY g.name
                """,
                (
                    start, end,
                    _APPROVED, start, end,
                    _PENDING, start, end,
                    _OVERDUE, start, end,
                    start, end,
                    _CASH_IN, start, end,
                    _CASH_OUT, start, end,
                    pg_type.value,
                ),
            )
            return _money_rows(
                fetchall(cur),
                "expected_revenue",
                "actual_revenue",
                "pending_amount",
                "overdue_amount",
                "advance_collected",
                "cash_in",
                "cash_out",
            )

    def get_cached(self, *, pg_type: PgType, period: ReportPeriod) -> Optional[Report]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM reports WHERE pg_type=%s AND report_type=%s AND period=%s AND year=%s",
                (pg_type.value, period.report_type.value, int(period.period), int(period.year)),
            )
            r = fetchone(cur)
            if not r:
                return None
            cards = ReportCards(
                figures=PeriodFigures(
                    new_members=int(r["new_members"]),
                    member_departures=int(r["member_departures"]),
                    rent_collected=to_float(r["rent_collected"]),
                    total_expenses=to_float(r["total_expenses"]),
                ),
                new_members_trend=to_float(r["new_members_trend"]),
                member_departures_trend=to_float(r["member_departures_trend"]),
                rent_collected_trend=to_float(r["rent_collected_trend"]),
                total_expenses_trend=to_float(r["total_expenses_trend"]),
                net_profit_trend=to_float(r["net_profit_trend"]),
            )
            return Report(
                pg_type=pg_type,
                period=period,
                cards=cards,
                tables=json_column(r.get("tables_json")) or {},
                calculated_at=r.get("calculated_at"),
                cached=True,
            )

    def upsert(self, report: Report) -> None:
        c, f, p = report.cards, report.cards.figures, report.period
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO reports(
                    pg_type, report_type, period, year, period_start, period_end,
                    new_members, new_members_trend, member_departures, member_departures_trend,
                    rent_collected, rent_collected_trend, total_expenses, total_expenses_trend,
                    net_profit, net_profit_trend, tables_json, calculated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    period_start=VALUES(period_start),
                    period_end=VALUES(period_end),
                    new_members=VALUES(new_members),
                    new_members_trend=VALUES(new_members_trend),
                    member_departures=VALUES(member_departures),
                    member_departures_trend=VALUES(member_departures_trend),
                    rent_collected=VALUES(rent_collected),
                    rent_collected_trend=VALUES(rent_collected_trend),
                    total_expenses=VALUES(total_expenses),
                    total_expenses_trend=VALUES(total_expenses_trend),
                    net_profit=VALUES(net_profit),
                    net_profit_trend=VALUES(net_profit_trend),
                    tables_json=VALUES(tables_json),
                    calculated_at=VALUES(calculated_at)
                """,
                (
                    report.pg_type.value,
                    p.report_type.value,
                    int(p.period),
                    int(p.year),
                    p.start,
                    p.end,
                    f.new_members,
                    c.new_members_trend,
                    f.member_departures,
                    c.member_departures_trend,
                    f.rent_collected,
                    c.rent_collected_trend,
                    f.total_expenses,
                    c.total_expenses_trend,
                    f.net_profit,
                    c.net_profit_trend,
                    json.dumps(report.tables, default=str),
                    report.calculated_at,
                ),
            )
