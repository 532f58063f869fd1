from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import PgType
from .model import Admin


class AdminRepository(Protocol):
    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Admin]:
        raise NotImplementedError

    def create(self, *, name: str, email: str, password_hash: str, pg_type: PgType) -> int:
        raise NotImplementedError

    def update_profile(self, *, admin_id: int, name: str, email: str) -> bool:
        raise NotImplementedError
