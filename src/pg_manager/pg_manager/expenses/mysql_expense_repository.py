from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import EntryType, PaymentMethod, PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_params, to_float, where_clause
from .model import Expense, ExpenseStats, MonthTotals
from .repository import ExpenseFilter, ExpenseRepository, ExpenseStatsRepository

_SELECT = """
    SELECT e.expense_id, e.entry_type, e.amount, e.entry_date, e.party_name, e.payment_type, e.remarks,
           e.attached_bill1, e.attached_bill2, e.attached_bill3, e.created_by, e.pg_id, e.created_at,
           g.name AS pg_name, a.name AS admin_name
    FROM expenses e
    JOIN pgs g ON g.pg_id = e.pg_id
    LEFT JOIN admins a ON a.admin_id = e.created_by
"""

_SORT_COLUMNS = {
    "date": "e.entry_date",
    "amount": "e.amount",
    "createdAt": "e.created_at",
    "entryType": "e.entry_type",
    "partyName": "e.party_name",
}


def _padded_bills(bills: Sequence[Optional[str]]) -> tuple[Optional[str], Optional[str], Optional[str]]:
    padded = list(bills)[:3] + [None] * (3 - min(len(bills), 3))
    return padded[0], padded[1], padded[2]


def _to_expense(r: dict) -> Expense:
    return Expense(
        expense_id=int(r["expense_id"]),
        entry_type=EntryType(r["entry_type"]),
        amount=to_float(r["amount"]),
        entry_date=r["entry_date"],
        party_name=r["party_name"],
        payment_type=PaymentMethod(r["payment_type"]),
        remarks=r.get("remarks"),
        bills=(r.get("attached_bill1"), r.get("attached_bill2"), r.get("attached_bill3")),
        pg_id=int(r["pg_id"]),
        created_by=int(r["created_by"]),
        created_at=r.get("created_at"),
        pg_name=r.get("pg_name"),
        admin_name=r.get("admin_name"),
    )


class MySQLExpenseRepository(ExpenseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.expense_id=%s", (int(expense_id),))
            r = fetchone(cur)
            return _to_expense(r) if r else None

    def create(
        self,
        *,
        entry_type: EntryType,
        amount: float,
        entry_date: date,
        party_name: str,
        payment_type: PaymentMethod,
        remarks: Optional[str],
        bills: Sequence[Optional[str]],
        pg_id: int,
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO expenses(
                    entry_type, amount, entry_date, party_name, payment_type, remarks,
                    attached_bill1, attached_bill2, attached_bill3, created_by, pg_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry_type.value,
                    amount,
                    entry_date,
                    party_name,
                    payment_type.value,
                    remarks,
                    *_padded_bills(bills),
                    int(created_by),
                    int(pg_id),
                ),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        expense_id: int,
        entry_type: EntryType,
        amount: float,
        entry_date: date,
        party_name: str,
        payment_type: PaymentMethod,
        remarks: Optional[str],
        bills: Sequence[Optional[str]],
        pg_id: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE expenses
                SET entry_type=%s, amount=%s, entry_date=%s, party_name=%s, payment_type=%s, remarks=%s,
                    attached_bill1=%s, attached_bill2=%s, attached_bill3=%s, pg_id=%s
                WHERE expense_id=%s
                """,
                (
                    entry_type.value,
                    amount,
                    entry_date,
                    party_name,
                    payment_type.value,
                    remarks,
                    *_padded_bills(bills),
                    int(pg_id),
                    int(expense_id),
                ),
            )
            return cur.rowcount >= 0

    def delete(self, expense_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM expenses WHERE expense_id=%s", (int(expense_id),))
            return cur.rowcount > 0

    def list(self, flt: ExpenseFilter, *, offset: int, limit: int) -> tuple[list[Expense], int]:
        placeholders, pg_params = in_params([int(p) for p in flt.pg_ids])
        clauses = [f"e.pg_id IN {placeholders}"]
        params: list[object] = list(pg_params)
        if flt.entry_type is not None:
            clauses.append("e.entry_type=%s")
            params.append(flt.entry_type.value)
        if flt.payment_type is not None:
            clauses.append("e.payment_type=%s")
            params.append(flt.payment_type.value)
        if flt.start_date is not None:
            clauses.append("e.entry_date >= %s")
            params.append(flt.start_date)
        if flt.end_date is not None:
            clauses.append("e.entry_date <= %s")
            params.append(flt.end_date)
        where = where_clause(clauses)
        order = _SORT_COLUMNS.get(flt.sort_by, "e.entry_date")
        direction = "ASC" if str(flt.sort_order).lower() == "asc" else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM expenses e WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                _SELECT + f" WHERE {where} ORDER BY {order} {direction}, e.expense_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_expense(r) for r in fetchall(cur)], total

    def month_totals(self, *, pg_type: PgType, month: int, year: int) -> MonthTotals:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN e.entry_type='CASH_IN' THEN e.amount END), 0) AS cash_in_amount,
                    COALESCE(SUM(e.entry_type='CASH_IN'), 0) AS cash_in_count,
                    COALESCE(SUM(CASE WHEN e.entry_type='CASH_OUT' THEN e.amount END), 0) AS cash_out_amount,
                    COALESCE(SUM(e.entry_type='CASH_OUT'), 0) AS cash_out_count,
                    COALESCE(SUM(CASE WHEN e.entry_type='CASH_IN' AND e.payment_type='ONLINE' THEN e.amount END), 0)
                        AS cash_in_online,
                    COALESCE(SUM(CASE WHEN e.entry_type='CASH_IN' AND e.payment_type='CASH' THEN e.amount END), 0)
                        AS cash_in_cash,
                    COALESCE(SUM(CASE WHEN e.entry_type='CASH_OUT' AND e.payment_type='ONLINE' THEN e.amount END), 0)
                        AS cash_out_online,
                    COALESCE(SUM(CASE WHEN e.entry_type='CASH_OUT' AND e.payment_type='CASH' THEN e.amount END), 0)
                        AS cash_out_cash
                FROM expenses e
                JOIN pgs g ON g.pg_id = e.pg_id
                WHERE g.pg_type=%s AND MONTH(e.entry_date)=%s AND YEAR(e.entry_date)=%s
                """,
                (pg_type.value, int(month), int(year)),
            )
            r = fetchone(cur) or {}
            return MonthTotals(
                cash_in_amount=to_float(r.get("cash_in_amount")),
                cash_in_count=int(r.get("cash_in_count") or 0),
                cash_out_amount=to_float(r.get("cash_out_amount")),
                cash_out_count=int(r.get("cash_out_count") or 0),
                cash_in_online=to_float(r.get("cash_in_online")),
                cash_in_cash=to_float(r.get("cash_in_cash")),
                cash_out_online=to_float(r.get("cash_out_online")),
                cash_out_cash=to_float(r.get("cash_out_cash")),
            )


def _to_stats(r: dict) -> ExpenseStats:
    return ExpenseStats(
        pg_type=PgType(r["pg_type"]),
        month=int(r["month"]),
        year=int(r["year"]),
        totals=MonthTotals(
            cash_in_amount=to_float(r["total_cash_in_amount"]),
            cash_in_count=int(r["total_cash_in_count"]),
            cash_out_amount=to_float(r["total_cash_out_amount"]),
            cash_out_count=int(r["total_cash_out_count"]),
            cash_in_online=to_float(r["cash_in_online"]),
            cash_in_cash=to_float(r["cash_in_cash"]),
            cash_out_online=to_float(r["cash_out_online"]),
            cash_out_cash=to_float(r["cash_out_cash"]),
        ),
        cash_in_percent_change=to_float(r["cash_in_percent_change"]),
        cash_out_percent_change=to_float(r["cash_out_percent_change"]),
        net_percent_change=to_float(r["net_percent_change"]),
        calculated_at=r.get("calculated_at"),
    )


class MySQLExpenseStatsRepository(ExpenseStatsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, pg_type: PgType, month: int, year: int) -> Optional[ExpenseStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM expense_stats WHERE pg_type=%s AND month=%s AND year=%s",
                (pg_type.value, int(month), int(year)),
            )
            r = fetchone(cur)
            return _to_stats(r) if r else None

    def upsert(self, stats: ExpenseStats) -> None:
        t = stats.totals
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO expense_stats(
                    pg_type, month, year, total_cash_in_amount, total_cash_in_count,
                    total_cash_out_amount, total_cash_out_count, net_amount,
                    cash_in_online, cash_in_cash, cash_out_online, cash_out_cash,
                    cash_in_percent_change, cash_out_percent_change, net_percent_change, calculated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    total_cash_in_amount=VALUES(total_cash_in_amount),
                    total_cash_in_count=VALUES(total_cash_in_count),
                    total_cash_out_amount=VALUES(total_cash_out_amount),
                    total_cash_out_count=VALUES(total_cash_out_count),
                    net_amount=VALUES(net_amount),
                    cash_in_online=VALUES(cash_in_online),
                    cash_in_cash=VALUES(cash_in_cash),
                    cash_out_online=VALUES(cash_out_online),
                    cash_out_cash=VALUES(cash_out_cash),
                    cash_in_percent_change=VALUES(cash_in_percent_change),
                    cash_out_percent_change=VALUES(cash_out_percent_change),
                    net_percent_change=VALUES(net_percent_change),
                    calculated_at=VALUES(calculated_at)
                """,
                (
                    stats.pg_type.value,
                    int(stats.month),
                    int(stats.year),
                    t.cash_in_amount,
                    t.cash_in_count,
                    t.cash_out_amount,
                    t.cash_out_count,
                    t.net_amount,
                    t.cash_in_online,
                    t.cash_in_cash,
                    t.cash_out_online,
                    t.cash_out_cash,
                    stats.cash_in_percent_change,
                    stats.cash_out_percent_change,
                    stats.net_percent_change,
                    stats.calculated_at,
                ),
            )

    def list_for_year(self, *, pg_type: PgType, year: int) -> Sequence[ExpenseStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM expense_stats WHERE pg_type=%s AND year=%s ORDER BY month",
                (pg_type.value, int(year)),
            )
            return [_to_stats(r) for r in fetchall(cur)]
