from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import ApprovalStatus, Gender, PaymentStatus, PgType, RentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_params, to_float, where_clause
from .model import Member, NewMember
from .repository import MemberFilter, MemberRepository

_COLUMNS = """
    m.id, m.member_id, m.name, m.dob, m.gender, m.location, m.email, m.phone, m.work,
    m.rent_type, m.pg_id, m.room_id, m.date_of_joining, m.date_of_relieving,
    m.advance_amount, m.price_per_day, m.is_active, m.is_first_time_login, m.password_hash,
    m.photo_url, m.document_url, m.digital_signature, m.created_at,
    g.name AS pg_name, g.pg_type, g.location AS pg_location,
    r.room_no, r.rent AS room_rent, r.electricity_charge
"""

_FROM = """
    FROM members m
    JOIN pgs g ON g.pg_id = m.pg_id
    LEFT JOIN rooms r ON r.room_id = m.room_id
"""

_SELECT = "SELECT " + _COLUMNS + _FROM

# Mirrors payments.model.display_status for the member's latest attempt of the month.
_PAYMENT_STATUS_CASE = f"""
    CASE
        WHEN cp.payment_id IS NULL THEN 'NO_PAYMENT'
        WHEN cp.approval_status = '{ApprovalStatus.APPROVED.value}' THEN 'APPROVED'
        WHEN cp.payment_status = '{PaymentStatus.PAID.value}' THEN 'PENDING_APPROVAL'
        WHEN cp.payment_status = '{PaymentStatus.OVERDUE.value}' THEN 'OVERDUE'
        WHEN cp.payment_status = '{PaymentStatus.REJECTED.value}'
             OR cp.approval_status = '{ApprovalStatus.REJECTED.value}' THEN 'REJECTED'
        ELSE 'PENDING'
    END
"""

_SORT_COLUMNS = {
    "createdAt": "m.created_at",
    "name": "m.name",
    "memberId": "m.member_id",
    "dateOfJoining": "m.date_of_joining",
    "rentType": "m.rent_type",
}


def _to_member(r: dict) -> Member:
    return Member(
        id=int(r["id"]),
        member_id=r["member_id"],
        name=r["name"],
        dob=r["dob"],
        gender=Gender(r["gender"]),
        location=r["location"],
        email=r["email"],
        phone=r["phone"],
        work=r["work"],
        rent_type=RentType(r["rent_type"]),
        pg_id=int(r["pg_id"]),
        room_id=int(r["room_id"]) if r.get("room_id") else None,
        date_of_joining=r["date_of_joining"],
        date_of_relieving=r.get("date_of_relieving"),
        advance_amount=to_float(r.get("advance_amount")),
        price_per_day=to_float(r["price_per_day"]) if r.get("price_per_day") is not None else None,
        is_active=bool(r.get("is_active")),
        is_first_time_login=bool(r.get("is_first_time_login")),
        password_hash=r.get("password_hash"),
        photo_url=r.get("photo_url"),
        document_url=r.get("document_url"),
        digital_signature=r.get("digital_signature"),
        created_at=r.get("created_at"),
        pg_name=r.get("pg_name"),
        pg_type=PgType(r["pg_type"]) if r.get("pg_type") else None,
        pg_location=r.get("pg_location"),
        room_no=r.get("room_no"),
        room_rent=to_float(r["room_rent"]) if r.get("room_rent") is not None else None,
        electricity_charge=to_float(r["electricity_charge"]) if r.get("electricity_charge") is not None else None,
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, member_pk: int, *, tx: Any = None) -> Optional[Member]:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(_SELECT + " WHERE m.id=%s", (int(member_pk),))
            r = fetchone(cur)
            return _to_member(r) if r else None

    def get_by_email(self, email: str) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE m.email=%s", (email,))
            r = fetchone(cur)
            return _to_member(r) if r else None

    def member_id_exists(self, member_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM members WHERE member_id=%s", (member_id,))
            return fetchone(cur) is not None

    def find_duplicate(self, *, email: str, phone: str, exclude_id: Optional[int] = None) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT email, phone FROM members WHERE (email=%s OR phone=%s) AND id<>%s LIMIT 1",
                (email, phone, int(exclude_id or 0)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return "email" if r["email"] == email else "phone"

    def create(self, new: NewMember, *, tx: Any = None) -> int:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                """
                INSERT INTO members(
                    member_id, name, dob, gender, location, email, phone, work, rent_type,
                    pg_id, room_id, date_of_joining, date_of_relieving, advance_amount,
                    price_per_day, photo_url, document_url, is_active, is_first_time_login
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1,1)
                """,
                (
                    new.member_id,
                    new.name,
                    new.dob,
                    new.gender.value,
                    new.location,
                    new.email,
                    new.phone,
                    new.work,
                    new.rent_type.value,
                    int(new.pg_id),
                    new.room_id,
                    new.date_of_joining,
                    new.date_of_relieving,
                    new.advance_amount,
                    new.price_per_day,
                    new.photo_url,
                    new.document_url,
                ),
            )
            return int(cur.lastrowid)

    def set_password(self, *, member_pk: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE members SET password_hash=%s, is_first_time_login=0 WHERE id=%s",
                (password_hash, int(member_pk)),
            )
            return cur.rowcount > 0

    def update_profile(self, *, member_pk: int, location: str, work: str, phone: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE members SET location=%s, work=%s, phone=%s WHERE id=%s",
                (location, work, phone, int(member_pk)),
            )
            return cur.rowcount >= 0

    def deactivate(self, member_pk: int, *, tx: Any = None) -> bool:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute("UPDATE members SET is_active=0, room_id=NULL WHERE id=%s", (int(member_pk),))
            return cur.rowcount > 0

    def list_for_admin(self, flt: MemberFilter, *, offset: int, limit: int) -> tuple[list[dict], int]:
        pg_placeholders, pg_params = in_params([int(p) for p in flt.pg_ids])
        clauses = [f"m.pg_id IN {pg_placeholders}"]
        params: list[object] = list(pg_params)

        if flt.search:
            like = f"%{flt.search}%"
            clauses.append("(m.name LIKE %s OR m.member_id LIKE %s OR m.email LIKE %s OR m.phone LIKE %s)")
            params.extend([like, like, like, like])
        if flt.rent_type is not None:
            clauses.append("m.rent_type=%s")
            params.append(flt.rent_type.value)
        if flt.pg_id is not None:
            clauses.append("m.pg_id=%s")
            params.append(int(flt.pg_id))
        if flt.room_id is not None:
            clauses.append("m.room_id=%s")
            params.append(int(flt.room_id))
        if flt.is_active is not None:
            clauses.append("m.is_active=%s")
            params.append(1 if flt.is_active else 0)
        if flt.payment_status:
            clauses.append(f"({_PAYMENT_STATUS_CASE})=%s")
            params.append(flt.payment_status)
        where = where_clause(clauses)

        current_payment_join = """
            LEFT JOIN payments cp ON cp.payment_id = (
                SELECT p2.payment_id FROM payments p2
                WHERE p2.member_id = m.id AND p2.month=%s AND p2.year=%s
                ORDER BY p2.attempt_number DESC
                LIMIT 1
            )
        """
        period = [int(flt.month), int(flt.year)]
        order = _SORT_COLUMNS.get(flt.sort_by, "m.created_at")
        direction = "ASC" if str(flt.sort_order).lower() == "asc" else "DESC"

        base = _SELECT + current_payment_join
        status_column = f"({_PAYMENT_STATUS_CASE}) AS current_payment_status, cp.amount AS current_payment_amount"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM ({base} WHERE {where}) t",
                tuple(period + params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_COLUMNS}, {status_column}
                {_FROM}
                {current_payment_join}
                WHERE {where}
                ORDER BY {order} {direction}
                LIMIT %s OFFSET %s
                """,
                tuple(period + params + [int(limit), int(offset)]),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                row = _to_member(r).to_dict()
                row["currentPaymentStatus"] = r["current_payment_status"]
                row["currentPaymentAmount"] = (
                    to_float(r["current_payment_amount"]) if r.get("current_payment_amount") is not None else None
                )
                out.append(row)
            return out, total

    def list_inactive(self) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE m.is_active=0")
            return [_to_member(r) for r in fetchall(cur)]

    def delete(self, member_pk: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM members WHERE id=%s", (int(member_pk),))
            return cur.rowcount > 0
