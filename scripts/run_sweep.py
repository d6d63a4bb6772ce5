"""Midnight sweep entry point for an external scheduler.

Example crontab line (site in Eastern time, server in UTC):

    5 4 * * * cd /srv/site-attendance && python scripts/run_sweep.py

Closes every sign-in session still open from an earlier business date.
Exits non-zero when any worker failed, so the scheduler can alert and the
next run picks the leftovers up again, whatever day they belong to.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys

from dotenv import load_dotenv

from site_attendance.common.datetime_utils import parse_iso_date
from site_attendance.common.logging_utils import configure_logging
from site_attendance.config import get_settings_module
from site_attendance.container import build_container

logger = logging.getLogger("site_attendance.scripts.run_sweep")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Close sign-in sessions left open from earlier days.")
    parser.add_argument("--as-of", help="Business date (YYYY-MM-DD) the sweep runs on; defaults to today.")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        site_timezone=settings.SITE_TIMEZONE,
        overtime_threshold_hours=settings.OVERTIME_WEEKLY_THRESHOLD_HOURS,
    )
    report = container.sweep_service.sweep(parse_iso_date(args.as_of) if args.as_of else None)

    if not report.ok:
        logger.error("sweep for %s finished with %s failure(s)", report.swept_date, len(report.failures))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
