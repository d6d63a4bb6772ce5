"""Create demo workers (supervisor, foreman, field workers) for local testing."""
from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from site_attendance.common.logging_utils import configure_logging
from site_attendance.config import get_settings_module
from site_attendance.database.bootstrap import apply_migrations, ensure_demo_workers

logger = logging.getLogger("site_attendance.scripts.seed_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_migrations(db_config)
    ensure_demo_workers(db_config)

    logger.info(
        "seeded demo workers -> %s@%s:%s/%s",
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )


if __name__ == "__main__":
    main()
