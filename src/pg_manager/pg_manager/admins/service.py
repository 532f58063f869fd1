from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.tokens import AdminIdentity, TokenService
from ..common.validators import require_email, require_enum, require_length, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import PgType
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError
from .model import Admin
from .repository import AdminRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminSession:
    """What the login endpoint hands back to the client."""

    token: str
    admin: Admin


class AdminService:
    def __init__(self, admins: AdminRepository, tokens: TokenService):
        self._admins = admins
        self._tokens = tokens

    def login(self, email: str, password: str) -> AdminSession:
        email = require_email(email)
        password = require_non_empty(password, "password")

        admin = self._admins.get_by_email(email)
        if not admin or not check_password_hash(admin.password_hash, password):
            logger.info("Failed admin login for %s", email)
            raise AuthenticationError("Invalid email or password")
        return AdminSession(token=self._tokens.issue_admin(admin.identity()), admin=admin)

    def create_admin(self, payload: dict) -> Admin:
        name = require_length(payload.get("name"), "name", 2, 100)
        email = require_email(payload.get("email"))
        password = require_min_length(payload.get("password"), "password", MIN_PASSWORD_LENGTH)
        pg_type = require_enum(payload.get("pgType"), PgType, "pgType")

        if self._admins.get_by_email(email):
            raise ConflictError("Admin with this email already exists", field="email")

        admin_id = self._admins.create(
            name=name, email=email, password_hash=generate_password_hash(password), pg_type=pg_type
        )
        logger.info("Admin %s created for %s", admin_id, pg_type.value)
        return self.get_profile(admin_id)

    def get_profile(self, admin_id: int) -> Admin:
        admin = self._admins.get_by_id(int(admin_id))
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    def update_profile(self, identity: AdminIdentity, payload: dict) -> Admin:
        admin = self.get_profile(identity.id)

        name = admin.name
        if payload.get("name") is not None:
            name = require_length(payload.get("name"), "name", 2, 100)

        email = admin.email
        if payload.get("email") is not None:
            email = require_email(payload.get("email"))
            other: Optional[Admin] = self._admins.get_by_email(email)
            if other and other.admin_id != admin.admin_id:
                raise ConflictError("Email is already in use", field="email")

        self._admins.update_profile(admin_id=admin.admin_id, name=name, email=email)
        return self.get_profile(admin.admin_id)
