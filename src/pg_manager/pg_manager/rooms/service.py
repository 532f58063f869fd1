from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..auth.tokens import AdminIdentity
from ..common.validators import optional_amount, optional_int, require_amount, require_int, require_length
from ..core.constants import MAX_ROOM_CAPACITY
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..pgs.service import PgService
from .model import Room
from .repository import RoomRepository

logger = logging.getLogger(__name__)


class RoomService:
    def __init__(self, rooms: RoomRepository, pg_service: PgService):
        self._rooms = rooms
        self._pgs = pg_service

    def list_for_admin(self, admin: AdminIdentity, *, pg_id: Optional[int] = None) -> Sequence[Room]:
        if pg_id is not None:
            return self._rooms.list_for_pgs([self._pgs.get_scoped(admin, pg_id).pg_id])
        return self._rooms.list_for_pgs(self._pgs.scoped_ids(admin))

    def get_scoped(self, admin: AdminIdentity, room_id: int) -> Room:
        room = self._rooms.get_by_id(int(room_id))
        if not room or room.pg_id not in self._pgs.scoped_ids(admin):
            raise NotFoundError("Room not found")
        return room

    def create(self, admin: AdminIdentity, payload: dict) -> Room:
        pg = self._pgs.get_scoped(admin, require_int(payload.get("pgId"), "pgId"))
        room_no = require_length(payload.get("roomNo"), "roomNo", 1, 20)
        rent = require_amount(payload.get("rent"), "rent", allow_zero=True)
        electricity = optional_amount(payload.get("electricityCharge"), "electricityCharge") or 0.0
        capacity = require_int(payload.get("capacity"), "capacity", min_value=1, max_value=MAX_ROOM_CAPACITY)

        if self._rooms.room_no_taken(pg_id=pg.pg_id, room_no=room_no):
            raise ConflictError(f"Room {room_no} already exists in {pg.name}", field="roomNo")

        room_id = self._rooms.create(
            room_no=room_no, rent=rent, electricity_charge=electricity, capacity=capacity, pg_id=pg.pg_id
        )
        logger.info("Room %s (%s) created in PG %s", room_id, room_no, pg.pg_id)
        return self.get_scoped(admin, room_id)

    def update(self, admin: AdminIdentity, room_id: int, payload: dict) -> Room:
        room = self.get_scoped(admin, room_id)

        pg_id = optional_int(payload.get("pgId"), "pgId")
        if pg_id is not None and pg_id != room.pg_id:
            pg_id = self._pgs.get_scoped(admin, pg_id).pg_id
        else:
            pg_id = room.pg_id

        room_no = room.room_no
        if payload.get("roomNo") is not None:
            room_no = require_length(payload.get("roomNo"), "roomNo", 1, 20)
        rent = optional_amount(payload.get("rent"), "rent")
        electricity = optional_amount(payload.get("electricityCharge"), "electricityCharge")
        capacity = optional_int(payload.get("capacity"), "capacity", min_value=1, max_value=MAX_ROOM_CAPACITY)
        capacity = room.capacity if capacity is None else capacity

        if capacity < room.occupants:
            raise ValidationError(f"Capacity cannot be lower than current occupancy ({room.occupants})")
        if self._rooms.room_no_taken(pg_id=pg_id, room_no=room_no, exclude_id=room.room_id):
            raise ConflictError(f"Room {room_no} already exists in this PG", field="roomNo")

        self._rooms.update(
            room_id=room.room_id,
            room_no=room_no,
            rent=room.rent if rent is None else rent,
            electricity_charge=room.electricity_charge if electricity is None else electricity,
            capacity=capacity,
            pg_id=pg_id,
        )
        return self.get_scoped(admin, room.room_id)

    def delete(self, admin: AdminIdentity, room_id: int) -> None:
        room = self.get_scoped(admin, room_id)
        if room.occupants:
            raise ValidationError(f"Cannot delete room with {room.occupants} members")
        self._rooms.delete(room.room_id)

    def occupancy_stats(self, admin: AdminIdentity, *, pg_id: Optional[int] = None) -> dict:
        rooms = self.list_for_admin(admin, pg_id=pg_id)
        capacity = sum(r.capacity for r in rooms)
        occupied = sum(min(r.occupants, r.capacity) for r in rooms)
        return {
            "rooms": [r.to_dict() for r in rooms],
            "summary": {
                "totalRooms": len(rooms),
                "fullRooms": sum(1 for r in rooms if r.occupancy_status == "FULL"),
                "emptyRooms": sum(1 for r in rooms if r.occupancy_status == "EMPTY"),
                "totalCapacity": capacity,
                "occupied": occupied,
                "available": capacity - occupied,
                "occupancyRate": round(occupied / capacity * 100, 2) if capacity else 0.0,
            },
        }
