from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..auth.tokens import AdminIdentity
from ..common.validators import require_enum, require_length
from ..core.enums import PgType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import PG
from .repository import PgRepository

logger = logging.getLogger(__name__)


class PgService:
    def __init__(self, pgs: PgRepository):
        self._pgs = pgs

    def list_for_admin(self, admin: AdminIdentity) -> Sequence[dict]:
        return self._pgs.list_with_counts(admin.pg_type)

    def scoped_ids(self, admin: AdminIdentity) -> list[int]:
        return [p.pg_id for p in self._pgs.list_by_type(admin.pg_type)]

    def get_scoped(self, admin: AdminIdentity, pg_id: int) -> PG:
        pg = self._pgs.get_by_id(int(pg_id))
        if not pg or pg.pg_type != admin.pg_type:
            raise NotFoundError("PG not found")
        return pg

    def _validated(self, payload: dict) -> tuple[str, PgType, str]:
        name = require_length(payload.get("name"), "name", 2, 100)
        pg_type = require_enum(payload.get("type"), PgType, "type")
        location = require_length(payload.get("location"), "location", 2, 191)
        return name, pg_type, location

    def create(self, admin: AdminIdentity, payload: dict) -> PG:
        name, pg_type, location = self._validated(payload)
        if pg_type != admin.pg_type:
            raise ValidationError(f"You can only create {admin.pg_type.value} PGs")
        if self._pgs.name_location_taken(name=name, location=location):
            raise ConflictError("A PG with this name already exists at this location", field="name")
        pg_id = self._pgs.create(name=name, pg_type=pg_type, location=location)
        logger.info("PG %s created by admin %s", pg_id, admin.id)
        return self.get_scoped(admin, pg_id)

    def update(self, admin: AdminIdentity, pg_id: int, payload: dict) -> PG:
        current = self.get_scoped(admin, pg_id)
        merged = {"name": current.name, "type": current.pg_type.value, "location": current.location}
        merged.update({k: v for k, v in payload.items() if v is not None})
        name, pg_type, location = self._validated(merged)
        if pg_type != admin.pg_type:
            raise ValidationError(f"You can only manage {admin.pg_type.value} PGs")
        if self._pgs.name_location_taken(name=name, location=location, exclude_id=current.pg_id):
            raise ConflictError("A PG with this name already exists at this location", field="name")
        self._pgs.update(pg_id=current.pg_id, name=name, pg_type=pg_type, location=location)
        return self.get_scoped(admin, current.pg_id)

    def delete(self, admin: AdminIdentity, pg_id: int) -> None:
        pg = self.get_scoped(admin, pg_id)
        members, rooms = self._pgs.dependent_counts(pg.pg_id)
        if members or rooms:
            raise ValidationError(f"Cannot delete PG with {members} members and {rooms} rooms attached")
        self._pgs.delete(pg.pg_id)
        logger.info("PG %s deleted by admin %s", pg.pg_id, admin.id)

    def find_for_registration(self, *, location: str, pg_type: PgType) -> Optional[PG]:
        return self._pgs.find_by_location(location=location, pg_type=pg_type)
