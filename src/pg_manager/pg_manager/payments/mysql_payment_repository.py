from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import ApprovalStatus, PaymentMethod, PaymentStatus, PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_params, to_float, where_clause
from .model import NewPayment, Payment
from .repository import ApprovalFilter, PaymentRepository

_COLUMNS = """
    p.payment_id, p.member_id, p.pg_id, p.month, p.year, p.amount, p.due_date, p.overdue_date,
    p.paid_date, p.payment_method, p.rent_bill_screenshot, p.electricity_bill_screenshot,
    p.attempt_number, p.payment_status, p.approval_status, p.approved_by, p.approved_at,
    p.created_at, g.pg_type
"""

_FROM = " FROM payments p JOIN pgs g ON g.pg_id = p.pg_id "


def _to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=int(r["payment_id"]),
        member_id=int(r["member_id"]),
        pg_id=int(r["pg_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        amount=to_float(r["amount"]),
        due_date=r["due_date"],
        overdue_date=r["overdue_date"],
        paid_date=r.get("paid_date"),
        payment_method=PaymentMethod(r["payment_method"]) if r.get("payment_method") else None,
        rent_bill_screenshot=r.get("rent_bill_screenshot"),
        electricity_bill_screenshot=r.get("electricity_bill_screenshot"),
        attempt_number=int(r.get("attempt_number") or 1),
        payment_status=PaymentStatus(r["payment_status"]),
        approval_status=ApprovalStatus(r["approval_status"]),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        created_at=r.get("created_at"),
        pg_type=PgType(r["pg_type"]) if r.get("pg_type") else None,
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payment_id: int, *, tx: Any = None) -> Optional[Payment]:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} {_FROM} WHERE p.payment_id=%s", (int(payment_id),))
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def latest_attempt(self, *, member_id: int, month: int, year: int, tx: Any = None) -> Optional[Payment]:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} {_FROM}
                WHERE p.member_id=%s AND p.month=%s AND p.year=%s
                ORDER BY p.attempt_number DESC
                LIMIT 1
                """,
                (int(member_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def exists_for_period(self, *, member_id: int, month: int, year: int, tx: Any = None) -> bool:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                "SELECT payment_id FROM payments WHERE member_id=%s AND month=%s AND year=%s LIMIT 1",
                (int(member_id), int(month), int(year)),
            )
            return fetchone(cur) is not None

    def create(self, payment: NewPayment, *, tx: Any = None) -> int:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                """
                INSERT INTO payments(
                    member_id, pg_id, month, year, amount, due_date, overdue_date,
                    paid_date, payment_method, rent_bill_screenshot, electricity_bill_screenshot,
                    attempt_number, payment_status, approval_status, approved_by, approved_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(payment.member_id),
                    int(payment.pg_id),
                    int(payment.month),
                    int(payment.year),
                    payment.amount,
                    payment.due_date,
                    payment.overdue_date,
                    payment.paid_date,
                    payment.payment_method.value if payment.payment_method else None,
                    payment.rent_bill_screenshot,
                    payment.electricity_bill_screenshot,
                    int(payment.attempt_number),
                    payment.payment_status.value,
                    payment.approval_status.value,
                    payment.approved_by,
                    payment.approved_at,
                ),
            )
            return int(cur.lastrowid)

    def mark_paid(
        self,
        *,
        payment_id: int,
        amount: float,
        paid_date: datetime,
        method: PaymentMethod,
        rent_bill_screenshot: Optional[str],
        electricity_bill_screenshot: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payments
                SET payment_status=%s, amount=%s, paid_date=%s, payment_method=%s,
                    rent_bill_screenshot=%s, electricity_bill_screenshot=%s
                WHERE payment_id=%s AND approval_status=%s AND payment_status IN (%s, %s)
                """,
                (
                    PaymentStatus.PAID.value,
                    amount,
                    paid_date,
                    method.value,
                    rent_bill_screenshot,
                    electricity_bill_screenshot,
                    int(payment_id),
                    ApprovalStatus.PENDING.value,
                    PaymentStatus.PENDING.value,
                    PaymentStatus.OVERDUE.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        payment_id: int,
        payment_status: PaymentStatus,
        approval_status: ApprovalStatus,
        approved_by: int,
        approved_at: datetime,
        paid_date: Optional[datetime],
        tx: Any = None,
    ) -> bool:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                """
                UPDATE payments
                SET payment_status=%s, approval_status=%s, approved_by=%s, approved_at=%s,
                    paid_date=COALESCE(paid_date, %s)
                WHERE payment_id=%s AND approval_status=%s
                """,
                (
                    payment_status.value,
                    approval_status.value,
                    int(approved_by),
                    approved_at,
                    paid_date,
                    int(payment_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def sweep_overdue(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payments
                SET payment_status=%s
                WHERE approval_status=%s AND payment_status=%s AND overdue_date < %s
                """,
                (
                    PaymentStatus.OVERDUE.value,
                    ApprovalStatus.PENDING.value,
                    PaymentStatus.PENDING.value,
                    now,
                ),
            )
            return int(cur.rowcount or 0)

    def history(
        self,
        *,
        member_id: int,
        year: Optional[int],
        payment_status: Optional[PaymentStatus],
        offset: int,
        limit: int,
    ) -> tuple[list[Payment], int]:
        clauses = ["p.member_id=%s"]
        params: list[object] = [int(member_id)]
        if year is not None:
            clauses.append("p.year=%s")
            params.append(int(year))
        if payment_status is not None:
            clauses.append("p.payment_status=%s")
            params.append(payment_status.value)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM payments p WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_COLUMNS} {_FROM}
                WHERE {where}
                ORDER BY p.year DESC, p.month DESC, p.attempt_number DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_payment(r) for r in fetchall(cur)], total

    def list_for_year(self, *, member_id: int, year: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} {_FROM}
                WHERE p.member_id=%s AND p.year=%s
                ORDER BY p.month ASC, p.attempt_number ASC
                """,
                (int(member_id), int(year)),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def recent_for_member(self, *, member_id: int, limit: int = 12) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} {_FROM}
                WHERE p.member_id=%s
                ORDER BY p.year DESC, p.month DESC, p.attempt_number DESC
                LIMIT %s
                """,
                (int(member_id), int(limit)),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def outstanding_up_to(self, *, member_id: int, year: int, month: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} {_FROM}
                WHERE p.member_id=%s
                  AND p.payment_status IN (%s, %s)
                  AND (p.year * 12 + p.month) <= %s
                ORDER BY p.year, p.month
                """,
                (
                    int(member_id),
                    PaymentStatus.PENDING.value,
                    PaymentStatus.OVERDUE.value,
                    int(year) * 12 + int(month),
                ),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def screenshots_for_member(self, member_id: int) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT rent_bill_screenshot, electricity_bill_screenshot
                FROM payments WHERE member_id=%s
                """,
                (int(member_id),),
            )
            out: list[str] = []
            for r in fetchall(cur):
                out.extend(v for v in (r.get("rent_bill_screenshot"), r.get("electricity_bill_screenshot")) if v)
            return out

    def list_for_approval(self, flt: ApprovalFilter, *, offset: int, limit: int) -> tuple[list[dict], int]:
        clauses = ["g.pg_type=%s"]
        params: list[object] = [flt.pg_type.value]
        if flt.payment_status is not None:
            clauses.append("p.payment_status=%s")
            params.append(flt.payment_status.value)
        if flt.approval_status is not None:
            clauses.append("p.approval_status=%s")
            params.append(flt.approval_status.value)
        if flt.rent_type is not None:
            clauses.append("m.rent_type=%s")
            params.append(flt.rent_type.value)
        if flt.pg_locations:
            placeholders, loc_params = in_params(list(flt.pg_locations))
            clauses.append(f"g.location IN {placeholders}")
            params.extend(loc_params)
        if flt.month is not None:
            clauses.append("p.month=%s")
            params.append(int(flt.month))
        if flt.year is not None:
            clauses.append("p.year=%s")
            params.append(int(flt.year))
        if flt.search:
            like = f"%{flt.search}%"
            clauses.append("(m.name LIKE %s OR m.member_id LIKE %s OR m.phone LIKE %s OR m.email LIKE %s)")
            params.extend([like, like, like, like])
        where = where_clause(clauses)
        joins = " JOIN members m ON m.id = p.member_id LEFT JOIN rooms r ON r.room_id = m.room_id "

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total {_FROM} {joins} WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_COLUMNS},
                       m.member_id AS member_code, m.name AS member_name, m.phone AS member_phone,
                       m.email AS member_email, m.rent_type, m.photo_url,
                       g.name AS pg_name, g.location AS pg_location, r.room_no
                {_FROM} {joins}
                WHERE {where}
                ORDER BY p.paid_date DESC, p.created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                row = _to_payment(r).to_dict()
                row["member"] = {
                    "id": int(r["member_id"]),
                    "memberId": r["member_code"],
                    "name": r["member_name"],
                    "phone": r["member_phone"],
                    "email": r["member_email"],
                    "rentType": r["rent_type"],
                    "photoUrl": r.get("photo_url"),
                }
                row["pg"] = {"id": int(r["pg_id"]), "name": r["pg_name"], "location": r["pg_location"]}
                row["roomNo"] = r.get("room_no")
                out.append(row)
            return out, total

    def count_awaiting_approval(self, pg_type: PgType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total {_FROM}
                WHERE g.pg_type=%s AND p.payment_status=%s AND p.approval_status=%s
                """,
                (pg_type.value, PaymentStatus.PAID.value, ApprovalStatus.PENDING.value),
            )
            return int((fetchone(cur) or {}).get("total") or 0)
