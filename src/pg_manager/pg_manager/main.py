from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.datetime_utils import DEFAULT_TIMEZONE, set_app_timezone
from .common.responses import ApiJSONProvider, register_error_handlers
from .container import build_container
from .database.bootstrap import apply_schema, ensure_demo_admins, list_tables
from .notifications.mailer import MailSettings

from .admins.controller import register as register_admins
from .common.controller import register as register_common
from .dashboard.controller import register as register_dashboard
from .enquiries.controller import register as register_enquiries
from .expenses.controller import register as register_expenses
from .jobs.cli import register as register_jobs_cli
from .jobs.scheduler import start_scheduler
from .leaving.controller import register as register_leaving
from .members.controller import register as register_members
from .payments.controller import register as register_payments
from .pgs.controller import register as register_pgs
from .reports.controller import register as register_reports
from .rooms.controller import register as register_rooms

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = getattr(settings, "MAX_CONTENT_LENGTH", None)

    logging.basicConfig(
        level=logging.DEBUG if app.config["DEBUG"] else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(
        "settings=%s tz=%s db=%s@%s:%s/%s",
        settings_module,
        getattr(settings, "APP_TIMEZONE", DEFAULT_TIMEZONE),
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    app_timezone = getattr(settings, "APP_TIMEZONE", DEFAULT_TIMEZONE)
    set_app_timezone(app_timezone)

    app.json = ApiJSONProvider(app)
    register_error_handlers(app)

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_admins(db_config)
        logger.info("Demo admins ready")

    container = build_container(
        db_config=db_config,
        jwt_secret=getattr(settings, "JWT_SECRET"),
        jwt_expires_hours=int(getattr(settings, "JWT_EXPIRES_HOURS", 24)),
        upload_root=getattr(settings, "UPLOAD_ROOT", "uploads"),
        mail_settings=MailSettings.from_settings(settings),
        company_name=getattr(settings, "COMPANY_NAME", "PG Manager"),
    )

    register_common(app, container)
    register_admins(app, container)
    register_pgs(app, container)
    register_rooms(app, container)
    register_members(app, container)
    register_payments(app, container)
    register_leaving(app, container)
    register_expenses(app, container)
    register_dashboard(app, container)
    register_reports(app, container)
    register_enquiries(app, container)
    register_jobs_cli(app, container)

    # the debug reloader imports the app twice; only the child runs jobs
    reloader_parent = app.config["DEBUG"] and os.environ.get("WERKZEUG_RUN_MAIN") != "true"
    if bool(getattr(settings, "ENABLE_SCHEDULER", False)) and not reloader_parent:
        app.extensions["scheduler"] = start_scheduler(
            container, timezone=getattr(settings, "SCHEDULER_TIMEZONE", app_timezone)
        )

    return app
