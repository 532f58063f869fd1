from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..container import Container
from .tasks import run_job

logger = logging.getLogger(__name__)

# job name -> cron triggers
SCHEDULE = {
    "expense-stats": [{"day": 1, "hour": 0, "minute": 0}],
    "member-cleanup": [{"day": "last", "hour": 2, "minute": 0}],
    "leaving-dues": [{"hour": 3, "minute": 0}],
    "otp-purge": [{"hour": 4, "minute": 0}],
    "report-cache": [
        {"day_of_week": "sun", "hour": 1, "minute": 0},
        {"day": 1, "hour": 1, "minute": 0},
    ],
}


def build_scheduler(container: Container, *, timezone: str = "Asia/Kolkata") -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=timezone)
    for name, triggers in SCHEDULE.items():
        for i, fields in enumerate(triggers):
            scheduler.add_job(
                run_job,
                CronTrigger(timezone=timezone, **fields),
                args=[name, container],
                id=f"{name}-{i}",
                name=name,
                replace_existing=True,
            )
    return scheduler


def start_scheduler(container: Container, *, timezone: str = "Asia/Kolkata") -> BackgroundScheduler:
    scheduler = build_scheduler(container, timezone=timezone)
    scheduler.start()
    logger.info("Scheduler started with %s jobs (%s)", len(scheduler.get_jobs()), timezone)
    return scheduler
