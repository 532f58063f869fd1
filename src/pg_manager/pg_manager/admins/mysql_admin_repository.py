from __future__ import annotations

from typing import Optional

from ..core.enums import PgType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Admin
from .repository import AdminRepository

_COLUMNS = "admin_id, name, email, password_hash, pg_type, created_at, updated_at"


def _to_admin(r: dict) -> Admin:
    return Admin(
        admin_id=int(r["admin_id"]),
        name=r["name"],
        email=r["email"],
        password_hash=r["password_hash"],
        pg_type=PgType(r["pg_type"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLAdminRepository(AdminRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins WHERE admin_id=%s", (int(admin_id),))
            r = fetchone(cur)
            return _to_admin(r) if r else None

    def get_by_email(self, email: str) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins WHERE email=%s", (email,))
            r = fetchone(cur)
            return _to_admin(r) if r else None

    def create(self, *, name: str, email: str, password_hash: str, pg_type: PgType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO admins (name, email, password_hash, pg_type) VALUES (%s, %s, %s, %s)",
                (name, email, password_hash, pg_type.value),
            )
            return int(cur.lastrowid)

    def update_profile(self, *, admin_id: int, name: str, email: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE admins SET name=%s, email=%s WHERE admin_id=%s",
                (name, email, int(admin_id)),
            )
            return cur.rowcount >= 0
