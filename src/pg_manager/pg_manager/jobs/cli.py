from __future__ import annotations

import click
from flask import Flask
from flask.cli import AppGroup

from ..container import Container
from .tasks import JOBS, run_job


def register(app: Flask, container: Container) -> None:
    jobs_cli = AppGroup("jobs", help="Run maintenance jobs on demand.")

    def _command(name: str):
        @jobs_cli.command(name)
        def command():
            count = run_job(name, container)
            click.echo(f"{name}: {count}")

        command.__doc__ = f"Run the {name} job once."
        return command

    for job_name in JOBS:
        _command(job_name)

    app.cli.add_command(jobs_cli)
