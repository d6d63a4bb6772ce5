from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .common.http import register_error_handlers
from .common.logging_utils import configure_logging
from .core.constants import (
    DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS,
    DEFAULT_SITE_TIMEZONE,
    DEFAULT_TIMESHEET_LIMIT,
)
from .database.bootstrap import apply_migrations, ensure_demo_workers, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .timesheets.controller import register as register_timesheets
from .workers.controller import register as register_workers

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """App factory. Pass ``container`` to run against prebuilt (e.g. in-memory) services."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_MIGRATE", False)):
            applied = apply_migrations(db_config)
            logger.info("schema ready (applied=%s tables=%s)", applied, len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_workers(db_config)
            logger.info("demo workers ready")

        container = build_container(
            db_config=db_config,
            site_timezone=getattr(settings, "SITE_TIMEZONE", DEFAULT_SITE_TIMEZONE),
            overtime_threshold_hours=getattr(
                settings, "OVERTIME_WEEKLY_THRESHOLD_HOURS", DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS
            ),
            timesheet_limit=int(getattr(settings, "TIMESHEET_LIST_LIMIT", DEFAULT_TIMESHEET_LIMIT)),
        )

    app.extensions["site_attendance"] = container

    register_error_handlers(app)
    register_workers(app, container)
    register_attendance(app, container)
    register_timesheets(app, container)

    return app
