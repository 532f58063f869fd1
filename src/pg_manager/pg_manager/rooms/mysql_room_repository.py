from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_params, to_float
from .model import Room
from .repository import RoomRepository

_SELECT = """
    SELECT r.room_id, r.room_no, r.rent, r.electricity_charge, r.capacity, r.pg_id,
           (SELECT COUNT(*) FROM members m WHERE m.room_id = r.room_id AND m.is_active = 1) AS occupants
    FROM rooms r
"""


def _to_room(r: dict) -> Room:
    return Room(
        room_id=int(r["room_id"]),
        room_no=str(r["room_no"]),
        rent=to_float(r["rent"]),
        electricity_charge=to_float(r["electricity_charge"]),
        capacity=int(r["capacity"]),
        pg_id=int(r["pg_id"]),
        occupants=int(r.get("occupants") or 0),
    )


class MySQLRoomRepository(RoomRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, room_id: int) -> Optional[Room]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE r.room_id=%s", (int(room_id),))
            r = fetchone(cur)
            return _to_room(r) if r else None

    def list_for_pgs(self, pg_ids: Sequence[int]) -> Sequence[Room]:
        placeholders, params = in_params([int(p) for p in pg_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE r.pg_id IN {placeholders} ORDER BY r.pg_id, r.room_no", params)
            return [_to_room(r) for r in fetchall(cur)]

    def room_no_taken(self, *, pg_id: int, room_no: str, exclude_id: Optional[int] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT room_id FROM rooms WHERE pg_id=%s AND room_no=%s AND room_id<>%s",
                (int(pg_id), room_no, int(exclude_id or 0)),
            )
            return fetchone(cur) is not None

    def create(self, *, room_no: str, rent: float, electricity_charge: float, capacity: int, pg_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO rooms (room_no, rent, electricity_charge, capacity, pg_id)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (room_no, rent, electricity_charge, int(capacity), int(pg_id)),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        room_id: int,
        room_no: str,
        rent: float,
        electricity_charge: float,
        capacity: int,
        pg_id: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE rooms
                SET room_no=%s, rent=%s, electricity_charge=%s, capacity=%s, pg_id=%s
                WHERE room_id=%s
                """,
                (room_no, rent, electricity_charge, int(capacity), int(pg_id), int(room_id)),
            )
            return cur.rowcount >= 0

    def delete(self, room_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM rooms WHERE room_id=%s", (int(room_id),))
            return cur.rowcount > 0
