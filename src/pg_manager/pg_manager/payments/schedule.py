"""Rent calendar: due dates anchored to the member's joining day."""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Tuple

from ..common.datetime_utils import add_months, anchored_date, overdue_after


def due_date_for(year: int, month: int, joining: date) -> date:
    return anchored_date(year, month, joining.day)


def due_dates_for(year: int, month: int, joining: date) -> Tuple[date, date]:
    due = due_date_for(year, month, joining)
    return due, overdue_after(due)


def next_period(year: int, month: int) -> Tuple[int, int]:
    return add_months(year, month, 1)


def successor_due_dates(year: int, month: int, joining: date) -> Tuple[date, date]:
    """Due dates for the row that follows service month (year, month).

    The successor covers the next month and falls due on the joining day of
    the month after that.
    """
    due_year, due_month = add_months(year, month, 2)
    return due_dates_for(due_year, due_month, joining)


def stay_days(joining: date | datetime, relieving: date | datetime) -> int:
    seconds = (relieving - joining).total_seconds()
    return max(math.ceil(seconds / 86400), 0)


def short_term_amount(joining: date | datetime, relieving: date | datetime, price_per_day: float) -> float:
    return round(stay_days(joining, relieving) * float(price_per_day), 2)
