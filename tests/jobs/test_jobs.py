from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from src.pg_manager.pg_manager.jobs.scheduler import SCHEDULE, build_scheduler
from src.pg_manager.pg_manager.jobs.tasks import JOBS, run_job


NOW = datetime(2026, 3, 1, 0, 0, 0)


class Recorder:
    def __init__(self):
        self.calls = []

    def recompute_month(self, *, month, year, now=None):
        self.calls.append(("expense-stats", month, year))
        return [object(), object()]

    def cleanup_inactive(self):
        self.calls.append(("member-cleanup",))
        return 3

    def refresh_pending_dues(self):
        self.calls.append(("leaving-dues",))
        return 2

    def cache_completed_periods(self, *, now=None):
        self.calls.append(("report-cache",))
        return 4

    def sweep_overdue(self, *, now=None):
        self.calls.append(("overdue-sweep",))
        return 5

    def purge_expired(self, *, now=None):
        self.calls.append(("otp-purge", now))
        return 6


def _container(recorder):
    return SimpleNamespace(
        expense_service=recorder,
        member_service=recorder,
        leaving_service=recorder,
        report_service=recorder,
        payment_service=recorder,
        otp_service=recorder,
    )


def test_expense_stats_job_targets_previous_month():
    rec = Recorder()

    assert run_job("expense-stats", _container(rec), now=NOW) == 2
    assert rec.calls == [("expense-stats", 2, 2026)]

    rec.calls.clear()
    run_job("expense-stats", _container(rec), now=datetime(2026, 1, 1))
    assert rec.calls == [("expense-stats", 12, 2025)]


@pytest.mark.parametrize(
    "name, expected",
    [("member-cleanup", 3), ("leaving-dues", 2), ("report-cache", 4), ("otp-purge", 6)],
)
def test_jobs_return_counts(name, expected):
    assert run_job(name, _container(Recorder()), now=NOW) == expected


def test_failing_job_is_logged_and_reraised(caplog):
    class Broken(Recorder):
        def refresh_pending_dues(self):
            raise RuntimeError("db down")

    with pytest.raises(RuntimeError):
        run_job("leaving-dues", _container(Broken()), now=NOW)
    assert "Job leaving-dues failed" in caplog.text


def test_scheduler_registers_every_trigger():
    scheduler = build_scheduler(_container(Recorder()), timezone="Asia/Kolkata")

    jobs = scheduler.get_jobs()
    assert len(jobs) == sum(len(t) for t in SCHEDULE.values())
    assert {j.name for j in jobs} == set(SCHEDULE)
    assert set(SCHEDULE) <= set(JOBS)
