from __future__ import annotations

from typing import Any, Optional

from ..core.enums import Gender, PgType, RentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import RegisteredMember
from .repository import RegisteredMemberRepository

_COLUMNS = """
    registration_id, name, dob, gender, location, pg_location, pg_type, email, phone, work,
    rent_type, photo_url, document_url, date_of_relieving, created_at
"""


def _to_registration(r: dict) -> RegisteredMember:
    return RegisteredMember(
        registration_id=int(r["registration_id"]),
        name=r["name"],
        dob=r["dob"],
        gender=Gender(r["gender"]),
        location=r["location"],
        pg_location=r["pg_location"],
        pg_type=PgType(r["pg_type"]),
        email=r["email"],
        phone=r["phone"],
        work=r["work"],
        rent_type=RentType(r["rent_type"]),
        photo_url=r.get("photo_url"),
        document_url=r.get("document_url"),
        date_of_relieving=r.get("date_of_relieving"),
        created_at=r.get("created_at"),
    )


class MySQLRegisteredMemberRepository(RegisteredMemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, registration_id: int) -> Optional[RegisteredMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM registered_members WHERE registration_id=%s", (int(registration_id),))
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def find_duplicate(self, *, email: str, phone: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT email, phone FROM registered_members WHERE email=%s OR phone=%s LIMIT 1",
                (email, phone),
            )
            r = fetchone(cur)
            if not r:
                return None
            return "email" if r["email"] == email else "phone"

    def create(
        self,
        *,
        name,
        dob,
        gender,
        location,
        pg_location,
        pg_type,
        email,
        phone,
        work,
        rent_type,
        photo_url,
        document_url,
        date_of_relieving,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO registered_members(
                    name, dob, gender, location, pg_location, pg_type, email, phone, work,
                    rent_type, photo_url, document_url, date_of_relieving
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    name,
                    dob,
                    gender.value,
                    location,
                    pg_location,
                    pg_type.value,
                    email,
                    phone,
                    work,
                    rent_type.value,
                    photo_url,
                    document_url,
                    date_of_relieving,
                ),
            )
            return int(cur.lastrowid)

    def list_for_type(
        self,
        *,
        pg_type: PgType,
        search: Optional[str],
        rent_type: Optional[RentType],
        offset: int,
        limit: int,
    ) -> tuple[list[RegisteredMember], int]:
        clauses = ["pg_type=%s"]
        params: list[object] = [pg_type.value]
        if search:
            like = f"%{search}%"
            clauses.append("(name LIKE %s OR email LIKE %s OR phone LIKE %s)")
            params.extend([like, like, like])
        if rent_type is not None:
            clauses.append("rent_type=%s")
            params.append(rent_type.value)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM registered_members WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM registered_members
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_registration(r) for r in fetchall(cur)], total

    def count_for_type(self, pg_type: PgType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM registered_members WHERE pg_type=%s", (pg_type.value,))
            return int((fetchone(cur) or {}).get("total") or 0)

    def delete(self, registration_id: int, *, tx: Any = None) -> bool:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute("DELETE FROM registered_members WHERE registration_id=%s", (int(registration_id),))
            return cur.rowcount > 0
