from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PgType
from .model import PG


class PgRepository(Protocol):
    def get_by_id(self, pg_id: int) -> Optional[PG]:
        raise NotImplementedError

    def list_by_type(self, pg_type: PgType) -> Sequence[PG]:
        raise NotImplementedError

    def list_with_counts(self, pg_type: PgType) -> Sequence[dict]:
        """PG rows plus ``roomCount`` / ``memberCount``."""

        raise NotImplementedError

    def find_by_location(self, *, location: str, pg_type: PgType) -> Optional[PG]:
        raise NotImplementedError

    def name_location_taken(self, *, name: str, location: str, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def create(self, *, name: str, pg_type: PgType, location: str) -> int:
        raise NotImplementedError

    def update(self, *, pg_id: int, name: str, pg_type: PgType, location: str) -> bool:
        raise NotImplementedError

    def delete(self, pg_id: int) -> bool:
        raise NotImplementedError

    def dependent_counts(self, pg_id: int) -> tuple[int, int]:
        """(members, rooms) still attached to the PG."""

        raise NotImplementedError
