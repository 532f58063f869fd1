from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..auth.tokens import AdminIdentity
from ..core.enums import PgType


@dataclass(frozen=True)
class Admin:
    admin_id: int
    name: str
    email: str
    password_hash: str
    pg_type: PgType
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def identity(self) -> AdminIdentity:
        return AdminIdentity(id=self.admin_id, email=self.email, name=self.name, pg_type=self.pg_type)

    def to_dict(self) -> dict:
        return {
            "id": self.admin_id,
            "name": self.name,
            "email": self.email,
            "pgType": self.pg_type.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
