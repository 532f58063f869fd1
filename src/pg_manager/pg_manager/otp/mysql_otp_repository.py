from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..core.enums import OtpType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Otp
from .repository import OtpRepository


def _to_otp(r: dict) -> Otp:
    return Otp(
        otp_id=int(r["otp_id"]),
        member_id=int(r["member_id"]),
        code_hash=r["code_hash"],
        otp_type=OtpType(r["otp_type"]),
        expires_at=r["expires_at"],
        attempts=int(r.get("attempts") or 0),
        used=bool(r.get("used")),
        used_at=r.get("used_at"),
        created_at=r.get("created_at"),
    )


class MySQLOtpRepository(OtpRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        member_id: int,
        code_hash: str,
        otp_type: OtpType,
        expires_at: datetime,
        tx: Any = None,
    ) -> int:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                "INSERT INTO otps (member_id, code_hash, otp_type, expires_at) VALUES (%s, %s, %s, %s)",
                (int(member_id), code_hash, otp_type.value, expires_at),
            )
            return int(cur.lastrowid)

    def discard_unused(self, *, member_id: int, otp_type: OtpType, tx: Any = None) -> int:
        with db_cursor(self._conn_factory, tx=tx) as (_, cur):
            cur.execute(
                "DELETE FROM otps WHERE member_id=%s AND otp_type=%s AND used=0",
                (int(member_id), otp_type.value),
            )
            return int(cur.rowcount or 0)

    def latest_unused(self, *, member_id: int, otp_type: OtpType) -> Optional[Otp]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT otp_id, member_id, code_hash, otp_type, expires_at, attempts, used, used_at, created_at
                FROM otps
                WHERE member_id=%s AND otp_type=%s AND used=0
                ORDER BY created_at DESC, otp_id DESC
                LIMIT 1
                """,
                (int(member_id), otp_type.value),
            )
            r = fetchone(cur)
            return _to_otp(r) if r else None

    def record_failure(self, otp_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE otps SET attempts=attempts+1 WHERE otp_id=%s", (int(otp_id),))

    def mark_used(self, otp_id: int, *, used_at: datetime) -> bool:
        # used=0 guard makes a code single-use under concurrent verifies
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE otps SET used=1, used_at=%s WHERE otp_id=%s AND used=0",
                (used_at, int(otp_id)),
            )
            return cur.rowcount > 0

    def purge_expired(self, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM otps WHERE expires_at < %s OR used=1", (now,))
            return int(cur.rowcount or 0)
