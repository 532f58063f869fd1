from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

from ..core.constants import OVERDUE_GRACE_DAYS


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


DEFAULT_TIMEZONE = "Asia/Kolkata"

_app_zone = ZoneInfo(DEFAULT_TIMEZONE)


def set_app_timezone(name: str) -> None:
    """Set the zone business dates are computed in (due dates, overdue sweep, report periods)."""
    global _app_zone
    _app_zone = ZoneInfo(name)


def app_timezone() -> ZoneInfo:
    return _app_zone


def now_local() -> datetime:
    """Naive wall-clock time in the app timezone, independent of the server's own zone."""
    return datetime.now(_app_zone).replace(tzinfo=None)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Shift a (year, month) pair by ``delta`` months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def anchored_date(year: int, month: int, day: int) -> date:
    """Day-of-month anchored date, clamped to the month's length (Jan 31 -> Feb 28/29)."""
    return date(year, month, min(day, days_in_month(year, month)))


def overdue_after(due: date) -> date:
    return due + timedelta(days=OVERDUE_GRACE_DAYS)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    end = datetime(year, month, days_in_month(year, month), 23, 59, 59, 999999)
    return start, end


def as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def iso(value) -> str | None:
    if value is None:
        return None
    return value.isoformat()
