from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..core.enums import LeavingStatus, PaymentMethod, PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float, where_clause
from .model import LeavingRequest
from .repository import LeavingRequestRepository

_SELECT = """
    SELECT l.request_id, l.member_id, l.pg_id, l.room_id, l.requested_leave_date, l.reason, l.feedback,
           l.status, l.approved_by, l.approved_at, l.pending_dues, l.final_amount, l.settled_date,
           l.settlement_proof, l.payment_method, l.created_at,
           m.name AS member_name, m.member_id AS member_code,
           g.name AS pg_name, g.pg_type, r.room_no
    FROM leaving_requests l
    JOIN members m ON m.id = l.member_id
    JOIN pgs g ON g.pg_id = l.pg_id
    LEFT JOIN rooms r ON r.room_id = l.room_id
"""


def _money(value: Any) -> Optional[float]:
    return to_float(value) if value is not None else None


def _to_request(r: dict) -> LeavingRequest:
    return LeavingRequest(
        request_id=int(r["request_id"]),
        member_id=int(r["member_id"]),
        pg_id=int(r["pg_id"]),
        room_id=int(r["room_id"]) if r.get("room_id") else None,
        requested_leave_date=r["requested_leave_date"],
        reason=r["reason"],
        feedback=r.get("feedback"),
        status=LeavingStatus(r["status"]),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        pending_dues=_money(r.get("pending_dues")),
        final_amount=_money(r.get("final_amount")),
        settled_date=r.get("settled_date"),
        settlement_proof=r.get("settlement_proof"),
        payment_method=PaymentMethod(r["payment_method"]) if r.get("payment_method") else None,
        created_at=r.get("created_at"),
        member_name=r.get("member_name"),
        member_code=r.get("member_code"),
        pg_name=r.get("pg_name"),
        pg_type=PgType(r["pg_type"]) if r.get("pg_type") else None,
        room_no=r.get("room_no"),
    )


class MySQLLeavingRequestRepository(LeavingRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[LeavingRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE l.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def open_for_member(self, member_id: int) -> Optional[LeavingRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE l.member_id=%s AND l.status IN (%s, %s) ORDER BY l.created_at DESC LIMIT 1",
                (int(member_id), LeavingStatus.PENDING.value, LeavingStatus.APPROVED.value),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_for_member(self, member_id: int) -> Sequence[LeavingRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE l.member_id=%s ORDER BY l.created_at DESC", (int(member_id),))
            return [_to_request(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        member_id: int,
        pg_id: int,
        room_id: Optional[int],
        requested_leave_date: date,
        reason: str,
        feedback: Optional[str],
        pending_dues: float,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaving_requests(
                    member_id, pg_id, room_id, requested_leave_date, reason, feedback, status, pending_dues
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(member_id),
                    int(pg_id),
                    room_id,
                    requested_leave_date,
                    reason,
                    feedback,
                    LeavingStatus.PENDING.value,
                    pending_dues,
                ),
            )
            return int(cur.lastrowid)

    def list_for_admin(
        self,
        *,
        pg_type: PgType,
        status: Optional[LeavingStatus],
        search: Optional[str],
        pg_id: Optional[int],
        offset: int,
        limit: int,
    ) -> tuple[list[LeavingRequest], int]:
        clauses = ["g.pg_type=%s"]
        params: list[object] = [pg_type.value]
        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)
        if pg_id is not None:
            clauses.append("l.pg_id=%s")
            params.append(int(pg_id))
        if search:
            like = f"%{search}%"
            clauses.append("(m.name LIKE %s OR m.member_id LIKE %s)")
            params.extend([like, like])
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM leaving_requests l
                JOIN members m ON m.id = l.member_id
                JOIN pgs g ON g.pg_id = l.pg_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                _SELECT + f" WHERE {where} ORDER BY l.created_at DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_request(r) for r in fetchall(cur)], total

    def decide(
        self,
        *,
        request_id: int,
        status: LeavingStatus,
        approved_by: int,
        approved_at: datetime,
        reason: str,
        pending_dues: Optional[float],
        final_amount: Optional[float],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaving_requests
                SET status=%s, approved_by=%s, approved_at=%s, reason=%s,
                    pending_dues=COALESCE(%s, pending_dues), final_amount=COALESCE(%s, final_amount)
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(approved_by),
                    approved_at,
                    reason,
                    pending_dues,
                    final_amount,
                    int(request_id),
                    LeavingStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def complete(
        self,
        *,
        request_id: int,
        settled_date: date,
        payment_method: PaymentMethod,
        settlement_proof: Optional[str],
        tx: Any = None,
    ) -> bool:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                """
                UPDATE leaving_requests
                SET status=%s, settled_date=%s, payment_method=%s, settlement_proof=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    LeavingStatus.COMPLETED.value,
                    settled_date,
                    payment_method.value,
                    settlement_proof,
                    int(request_id),
                    LeavingStatus.APPROVED.value,
                ),
            )
            return cur.rowcount > 0

    def list_pending(self) -> Sequence[LeavingRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE l.status=%s", (LeavingStatus.PENDING.value,))
            return [_to_request(r) for r in fetchall(cur)]

    def set_pending_dues(self, *, request_id: int, pending_dues: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leaving_requests SET pending_dues=%s WHERE request_id=%s",
                (pending_dues, int(request_id)),
            )
            return cur.rowcount >= 0
