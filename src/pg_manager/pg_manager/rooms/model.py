from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Room:
    room_id: int
    room_no: str
    rent: float
    electricity_charge: float
    capacity: int
    pg_id: int
    occupants: int = 0

    @property
    def available_slots(self) -> int:
        return max(self.capacity - self.occupants, 0)

    @property
    def occupancy_status(self) -> str:
        if self.occupants <= 0:
            return "EMPTY"
        if self.occupants >= self.capacity:
            return "FULL"
        return "PARTIAL"

    def to_dict(self) -> dict:
        return {
            "id": self.room_id,
            "roomNo": self.room_no,
            "rent": self.rent,
            "electricityCharge": self.electricity_charge,
            "capacity": self.capacity,
            "pgId": self.pg_id,
            "occupants": self.occupants,
            "availableSlots": self.available_slots,
            "status": self.occupancy_status,
        }
