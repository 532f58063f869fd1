from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from ..core.enums import EnquiryStatus, PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import Enquiry, EnquiryCounts
from .repository import EnquiryFilter, EnquiryRepository

_SELECT = """
    SELECT q.enquiry_id, q.name, q.phone, q.message, q.status, q.resolved_by, q.resolved_at,
           q.created_at, q.updated_at,
           a.name AS resolver_name, a.email AS resolver_email, a.pg_type AS resolver_pg_type
    FROM enquiries q
    LEFT JOIN admins a ON a.admin_id = q.resolved_by
"""

_SORT_COLUMNS = {
    "createdAt": "q.created_at",
    "updatedAt": "q.updated_at",
    "name": "q.name",
    "status": "q.status",
}


def _to_enquiry(r: dict) -> Enquiry:
    return Enquiry(
        enquiry_id=int(r["enquiry_id"]),
        name=r["name"],
        phone=r["phone"],
        message=r["message"],
        status=EnquiryStatus(r["status"]),
        resolved_by=int(r["resolved_by"]) if r.get("resolved_by") else None,
        resolved_at=r.get("resolved_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        resolver_name=r.get("resolver_name"),
        resolver_email=r.get("resolver_email"),
        resolver_pg_type=PgType(r["resolver_pg_type"]) if r.get("resolver_pg_type") else None,
    )


class MySQLEnquiryRepository(EnquiryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, enquiry_id: int) -> Optional[Enquiry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE q.enquiry_id=%s", (int(enquiry_id),))
            r = fetchone(cur)
            return _to_enquiry(r) if r else None

    def create(self, *, name: str, phone: str, message: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO enquiries (name, phone, message, status) VALUES (%s, %s, %s, %s)",
                (name, phone, message, EnquiryStatus.NOT_RESOLVED.value),
            )
            return int(cur.lastrowid)

    def list(self, flt: EnquiryFilter, *, offset: int, limit: int) -> tuple[list[Enquiry], int]:
        clauses: List[str] = []
        params: List[Any] = []
        if flt.status is not None:
            clauses.append("q.status=%s")
            params.append(flt.status.value)
        if flt.search:
            like = f"%{flt.search}%"
            clauses.append("(q.name LIKE %s OR q.phone LIKE %s OR q.message LIKE %s)")
            params.extend([like, like, like])
        if flt.resolved_by is not None:
            clauses.append("q.resolved_by=%s")
            params.append(int(flt.resolved_by))
        if flt.created_since is not None:
            clauses.append("q.created_at >= %s")
            params.append(flt.created_since)
        where = where_clause(clauses)
        order = _SORT_COLUMNS.get(flt.sort_by, "q.created_at")
        direction = "ASC" if str(flt.sort_order).lower() == "asc" else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM enquiries q WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                _SELECT + f" WHERE {where} ORDER BY {order} {direction}, q.enquiry_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_enquiry(r) for r in fetchall(cur)], total

    def set_status(
        self,
        *,
        enquiry_id: int,
        status: EnquiryStatus,
        resolved_by: Optional[int],
        resolved_at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE enquiries SET status=%s, resolved_by=%s, resolved_at=%s WHERE enquiry_id=%s",
                (status.value, resolved_by, resolved_at, int(enquiry_id)),
            )
            return cur.rowcount > 0

    def delete(self, enquiry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM enquiries WHERE enquiry_id=%s", (int(enquiry_id),))
            return cur.rowcount > 0

    def counts(self, *, today_start: datetime) -> EnquiryCounts:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(status=%s), 0) AS resolved,
                       COALESCE(SUM(status=%s), 0) AS pending,
                       COALESCE(SUM(created_at >= %s), 0) AS today
                FROM enquiries
                """,
                (EnquiryStatus.RESOLVED.value, EnquiryStatus.NOT_RESOLVED.value, today_start),
            )
            r = fetchone(cur) or {}
            return EnquiryCounts(
                total=int(r.get("total") or 0),
                resolved=int(r.get("resolved") or 0),
                pending=int(r.get("pending") or 0),
                today=int(r.get("today") or 0),
            )
