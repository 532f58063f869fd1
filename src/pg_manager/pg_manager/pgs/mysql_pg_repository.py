from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PG
from .repository import PgRepository


def _to_pg(r: dict) -> PG:
    return PG(
        pg_id=int(r["pg_id"]),
        name=r["name"],
        pg_type=PgType(r["pg_type"]),
        location=r["location"],
        created_at=r.get("created_at"),
    )


class MySQLPgRepository(PgRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, pg_id: int) -> Optional[PG]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT pg_id, name, pg_type, location, created_at FROM pgs WHERE pg_id=%s", (int(pg_id),))
            r = fetchone(cur)
            return _to_pg(r) if r else None

    def list_by_type(self, pg_type: PgType) -> Sequence[PG]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT pg_id, name, pg_type, location, created_at FROM pgs WHERE pg_type=%s ORDER BY name",
                (pg_type.value,),
            )
            return [_to_pg(r) for r in fetchall(cur)]

    def list_with_counts(self, pg_type: PgType) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.pg_id, p.name, p.pg_type, p.location, p.created_at,
                       (SELECT COUNT(*) FROM rooms r WHERE r.pg_id = p.pg_id) AS room_count,
                       (SELECT COUNT(*) FROM members m WHERE m.pg_id = p.pg_id AND m.is_active = 1) AS member_count
                FROM pgs p
                WHERE p.pg_type=%s
                ORDER BY p.name
                """,
                (pg_type.value,),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                row = _to_pg(r).to_dict()
                row["roomCount"] = int(r["room_count"])
                row["memberCount"] = int(r["member_count"])
                out.append(row)
            return out

    def find_by_location(self, *, location: str, pg_type: PgType) -> Optional[PG]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT pg_id, name, pg_type, location, created_at
                FROM pgs WHERE location=%s AND pg_type=%s
                ORDER BY pg_id LIMIT 1
                """,
                (location, pg_type.value),
            )
            r = fetchone(cur)
            return _to_pg(r) if r else None

    def name_location_taken(self, *, name: str, location: str, exclude_id: Optional[int] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT pg_id FROM pgs WHERE name=%s AND location=%s AND pg_id<>%s",
                (name, location, int(exclude_id or 0)),
            )
            return fetchone(cur) is not None

    def create(self, *, name: str, pg_type: PgType, location: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO pgs (name, pg_type, location) VALUES (%s, %s, %s)",
                (name, pg_type.value, location),
            )
            return int(cur.lastrowid)

    def update(self, *, pg_id: int, name: str, pg_type: PgType, location: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE pgs SET name=%s, pg_type=%s, location=%s WHERE pg_id=%s",
                (name, pg_type.value, location, int(pg_id)),
            )
            return cur.rowcount >= 0

    def delete(self, pg_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM pgs WHERE pg_id=%s", (int(pg_id),))
            return cur.rowcount > 0

    def dependent_counts(self, pg_id: int) -> tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT (SELECT COUNT(*) FROM members WHERE pg_id=%s) AS members,
                       (SELECT COUNT(*) FROM rooms WHERE pg_id=%s) AS rooms
                """,
                (int(pg_id), int(pg_id)),
            )
            r = fetchone(cur) or {}
            return int(r.get("members") or 0), int(r.get("rooms") or 0)
