from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import g, request

from ..core.constants import SETUP_TOKEN_SCOPE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .tokens import AdminIdentity, MemberIdentity, TokenService


class Guards:
    """Route decorators that authenticate a bearer token and set ``g.admin`` / ``g.member``."""

    def __init__(self, tokens: TokenService):
        self._tokens = tokens

    def _claims(self) -> dict:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer ") or not header[7:].strip():
            raise AuthenticationError("Access token required")
        return self._tokens.decode(header[7:].strip())

    def admin_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            claims = self._claims()
            if claims.get("role") != Role.ADMIN.value:
                raise AuthorizationError("Admin access required")
            try:
                g.admin = self._tokens.admin_from_claims(claims)
            except (KeyError, ValueError):
                raise AuthenticationError("Invalid or expired token")
            return view(*args, **kwargs)

        return wrapper

    def _member_guard(self, view, *, scope: Optional[str]):
        @wraps(view)
        def wrapper(*args, **kwargs):
            claims = self._claims()
            if claims.get("role") != Role.MEMBER.value:
                raise AuthorizationError("Member access required")
            if claims.get("scope") != scope:
                if scope is None:
                    raise AuthorizationError("Please set up your password first")
                raise AuthorizationError("A password setup token is required")
            try:
                g.member = self._tokens.member_from_claims(claims)
            except (KeyError, ValueError):
                raise AuthenticationError("Invalid or expired token")
            return view(*args, **kwargs)

        return wrapper

    def member_required(self, view):
        return self._member_guard(view, scope=None)

    def setup_required(self, view):
        """Accepts only the short-lived token issued after OTP verification."""
        return self._member_guard(view, scope=SETUP_TOKEN_SCOPE)


def current_admin() -> AdminIdentity:
    return g.admin


def current_member() -> MemberIdentity:
    return g.member
