from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Room


class RoomRepository(Protocol):
    def get_by_id(self, room_id: int) -> Optional[Room]:
        """Room with its current active-member ``occupants``."""

        raise NotImplementedError

    def list_for_pgs(self, pg_ids: Sequence[int]) -> Sequence[Room]:
        raise NotImplementedError

    def room_no_taken(self, *, pg_id: int, room_no: str, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def create(self, *, room_no: str, rent: float, electricity_charge: float, capacity: int, pg_id: int) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete(self, room_id: int) -> bool:
        raise NotImplementedError
