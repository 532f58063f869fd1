from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PgType


@dataclass(frozen=True)
class PG:
    pg_id: int
    name: str
    pg_type: PgType
    location: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.pg_id,
            "name": self.name,
            "type": self.pg_type.value,
            "location": self.location,
            "createdAt": self.created_at,
        }
