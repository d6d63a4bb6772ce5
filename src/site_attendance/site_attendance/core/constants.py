"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_SITE_TIMEZONE = "America/New_York"
DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS = 44
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_TIMESHEET_LIMIT = 200

# Sessions left open past their business date are closed at this wall-clock time.
SWEEP_CLOSE_TIME = time(23, 59, 59)

# Longest vacation period accepted in one request, in days (inclusive).
MAX_VACATION_SPAN_DAYS = 366
