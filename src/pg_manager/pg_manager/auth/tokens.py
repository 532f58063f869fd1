from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.constants import SETUP_TOKEN_MINUTES, SETUP_TOKEN_SCOPE
from ..core.enums import PgType, Role
from ..core.exceptions import AuthenticationError

ALGORITHM = "HS256"


@dataclass(frozen=True)
class AdminIdentity:
    id: int
    email: str
    name: str
    pg_type: PgType


@dataclass(frozen=True)
class MemberIdentity:
    id: int
    member_id: str
    email: str
    name: str
    pg_id: int
    pg_type: PgType


class TokenService:
    """Issues and verifies the two bearer token kinds (admin, member)."""

    def __init__(self, secret: str, *, expires_hours: int = 24, setup_minutes: int = SETUP_TOKEN_MINUTES):
        self._secret = secret
        self._expires = timedelta(hours=expires_hours)
        self._setup_expires = timedelta(minutes=setup_minutes)

    def _encode(self, claims: dict, *, now: Optional[datetime] = None, lifetime: Optional[timedelta] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = dict(claims, iat=issued, exp=issued + (lifetime or self._expires))
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def issue_admin(self, admin: AdminIdentity, *, now: Optional[datetime] = None) -> str:
        return self._encode(
            {
                "id": admin.id,
                "email": admin.email,
                "name": admin.name,
                "pgType": admin.pg_type.value,
                "role": Role.ADMIN.value,
            },
            now=now,
        )

    @staticmethod
    def _member_claims(member: MemberIdentity) -> dict:
        return {
            "id": member.id,
            "memberId": member.member_id,
            "email": member.email,
            "name": member.name,
            "pgId": member.pg_id,
            "pgType": member.pg_type.value,
            "role": Role.MEMBER.value,
        }

    def issue_member(self, member: MemberIdentity, *, now: Optional[datetime] = None) -> str:
        return self._encode(self._member_claims(member), now=now)

    def issue_setup(self, member: MemberIdentity, *, now: Optional[datetime] = None) -> str:
        """Short-lived member token that only opens the password setup route."""
        claims = dict(self._member_claims(member), scope=SETUP_TOKEN_SCOPE)
        return self._encode(claims, now=now, lifetime=self._setup_expires)

    @property
    def setup_expires_seconds(self) -> int:
        return int(self._setup_expires.total_seconds())

    def decode(self, token: str) -> dict:
        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.PyJWTError:
            raise AuthenticationError("Invalid or expired token")
        if claims.get("role") not in {r.value for r in Role}:
            raise AuthenticationError("Invalid or expired token")
        return claims

    @staticmethod
    def admin_from_claims(claims: dict) -> AdminIdentity:
        return AdminIdentity(
            id=int(claims["id"]),
            email=str(claims["email"]),
            name=str(claims["name"]),
            pg_type=PgType(claims["pgType"]),
        )

    @staticmethod
    def member_from_claims(claims: dict) -> MemberIdentity:
        return MemberIdentity(
            id=int(claims["id"]),
            member_id=str(claims["memberId"]),
            email=str(claims["email"]),
            name=str(claims["name"]),
            pg_id=int(claims["pgId"]),
            pg_type=PgType(claims["pgType"]),
        )
