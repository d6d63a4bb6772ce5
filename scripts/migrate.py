"""Apply pending schema migrations. Run at deploy time, before the app starts."""
from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from site_attendance.common.logging_utils import configure_logging
from site_attendance.config import get_settings_module
from site_attendance.database.bootstrap import apply_migrations, list_tables

logger = logging.getLogger("site_attendance.scripts.migrate")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    applied = apply_migrations(db_config)
    tables = list_tables(db_config)
    logger.info(
        "migrations applied=%s -> %s@%s:%s/%s (tables=%s)",
        applied or "none",
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
