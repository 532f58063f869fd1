from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

E = TypeVar("E", bound=Enum)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\d{10}$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_length(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    v = require_non_empty(value, field_name)
    if len(v) < min_len or len(v) > max_len:
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return v


def require_email(value: Optional[str], field_name: str = "email") -> str:
    v = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(v):
        raise ValidationError(f"{field_name} must be a valid email")
    return v


def require_phone(value: Optional[str], field_name: str = "phone") -> str:
    v = require_non_empty(value, field_name)
    if not _PHONE_RE.match(v):
        raise ValidationError(f"{field_name} must be a 10 digit number")
    return v


def require_enum(value: Any, enum_cls: Type[E], field_name: str) -> E:
    try:
        return enum_cls(str(value).strip().upper())
    except (ValueError, AttributeError):
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def optional_enum(value: Any, enum_cls: Type[E], field_name: str) -> Optional[E]:
    if value is None or str(value).strip() == "":
        return None
    return require_enum(value, enum_cls, field_name)


def require_int(value: Any, field_name: str, *, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if min_value is not None and v < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")
    if max_value is not None and v > max_value:
        raise ValidationError(f"{field_name} must be at most {max_value}")
    return v


def optional_int(value: Any, field_name: str, **bounds: int) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    return require_int(value, field_name, **bounds)


def require_amount(value: Any, field_name: str, *, allow_zero: bool = False) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if v < 0 or (v == 0 and not allow_zero):
        raise ValidationError(f"{field_name} must be {'zero or more' if allow_zero else 'greater than 0'}")
    return round(v, 2)


def optional_amount(value: Any, field_name: str, *, allow_zero: bool = True) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    return require_amount(value, field_name, allow_zero=allow_zero)


def require_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    v = require_non_empty(value, field_name)
    try:
        return parse_iso_date(v[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or str(value).strip() == "":
        return None
    return require_date(value, field_name)


def optional_bool(value: Any) -> Optional[bool]:
    if value is None or str(value).strip() == "":
        return None
    return str(value).strip().lower() in {"1", "true", "yes"}
