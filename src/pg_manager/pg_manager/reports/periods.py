from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from ..common.datetime_utils import add_months, days_in_month
from ..core.enums import ReportType
from ..core.exceptions import ValidationError
from ..core.constants import WEEKS_PER_YEAR

MAX_WEEK = WEEKS_PER_YEAR + 1


@dataclass(frozen=True)
class ReportPeriod:
    report_type: ReportType
    period: int
    year: int
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_dict(self) -> dict:
        return {
            "type": self.report_type.value,
            "period": self.period,
            "year": self.year,
            "startDate": self.start,
            "endDate": self.end,
        }


def week_one_start(year: int) -> date:
    """First Sunday on or after 1 January."""
    jan1 = date(year, 1, 1)
    # Monday=0 ... Sunday=6
    return jan1 + timedelta(days=(6 - jan1.weekday()) % 7)


def weekly_period(week: int, year: int) -> ReportPeriod:
    if week == 0:
        return weekly_period(WEEKS_PER_YEAR, year - 1)
    if not 1 <= week <= MAX_WEEK:
        raise ValidationError(f"week must be between 0 and {MAX_WEEK}")
    start = week_one_start(year) + timedelta(days=7 * (week - 1))
    return ReportPeriod(ReportType.WEEKLY, week, year, start, start + timedelta(days=6))


def monthly_period(month: int, year: int) -> ReportPeriod:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    return ReportPeriod(
        ReportType.MONTHLY,
        month,
        year,
        date(year, month, 1),
        date(year, month, days_in_month(year, month)),
    )


def resolve(report_type: ReportType, period: int, year: int) -> ReportPeriod:
    if report_type == ReportType.WEEKLY:
        return weekly_period(period, year)
    return monthly_period(period, year)


def current_period(report_type: ReportType, today: date) -> ReportPeriod:
    if report_type == ReportType.MONTHLY:
        return monthly_period(today.month, today.year)

    year = today.year
    if today < week_one_start(year):
        year -= 1
    week = (today - week_one_start(year)).days // 7 + 1
    return weekly_period(min(week, MAX_WEEK), year)


def previous_period(p: ReportPeriod) -> ReportPeriod:
    if p.report_type == ReportType.WEEKLY:
        return weekly_period(p.period - 1, p.year)
    year, month = add_months(p.year, p.period, -1)
    return monthly_period(month, year)


def is_completed(p: ReportPeriod, today: date) -> bool:
    return p.end < today
