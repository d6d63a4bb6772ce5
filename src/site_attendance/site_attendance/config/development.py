import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

SITE_TIMEZONE = os.getenv("SITE_TIMEZONE", "America/New_York")
OVERTIME_WEEKLY_THRESHOLD_HOURS = float(os.getenv("OVERTIME_WEEKLY_THRESHOLD_HOURS", "44"))
TIMESHEET_LIST_LIMIT = int(os.getenv("TIMESHEET_LIST_LIMIT", "200"))

# Dev convenience only: apply pending migrations (and demo workers) on startup.
AUTO_MIGRATE = bool(int(os.getenv("AUTO_MIGRATE", "1")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
