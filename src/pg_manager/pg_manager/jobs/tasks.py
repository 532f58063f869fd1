"""Periodic maintenance jobs.

Each job takes the application container and returns a count of what it
touched, so the scheduler, the CLI and the admin maintenance routes share one
code path.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import add_months, now_local
from ..container import Container

logger = logging.getLogger(__name__)


def expense_stats(container: Container, *, now: Optional[datetime] = None) -> int:
    now = now or now_local()
    year, month = add_months(now.year, now.month, -1)
    return len(container.expense_service.recompute_month(month=month, year=year, now=now))


def member_cleanup(container: Container, *, now: Optional[datetime] = None) -> int:
    return container.member_service.cleanup_inactive()


def leaving_dues(container: Container, *, now: Optional[datetime] = None) -> int:
    return container.leaving_service.refresh_pending_dues()


def report_cache(container: Container, *, now: Optional[datetime] = None) -> int:
    return container.report_service.cache_completed_periods(now=now)


def overdue_sweep(container: Container, *, now: Optional[datetime] = None) -> int:
    return container.payment_service.sweep_overdue(now=now)


def otp_purge(container: Container, *, now: Optional[datetime] = None) -> int:
    return container.otp_service.purge_expired(now=now)


JOBS: dict[str, Callable[..., int]] = {
    "expense-stats": expense_stats,
    "member-cleanup": member_cleanup,
    "leaving-dues": leaving_dues,
    "report-cache": report_cache,
    "overdue-sweep": overdue_sweep,
    "otp-purge": otp_purge,
}


def run_job(name: str, container: Container, *, now: Optional[datetime] = None) -> int:
    job = JOBS[name]
    logger.info("Job %s started", name)
    try:
        count = job(container, now=now)
    except Exception:
        logger.exception("Job %s failed", name)
        raise
    logger.info("Job %s finished: %s", name, count)
    return count
