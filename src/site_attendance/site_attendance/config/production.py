import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "site_attendance"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

SITE_TIMEZONE = os.getenv("SITE_TIMEZONE", "America/New_York")
OVERTIME_WEEKLY_THRESHOLD_HOURS = float(os.getenv("OVERTIME_WEEKLY_THRESHOLD_HOURS", "44"))
TIMESHEET_LIST_LIMIT = int(os.getenv("TIMESHEET_LIST_LIMIT", "200"))

# Migrations run at deploy time (scripts/migrate.py), never on startup.
AUTO_MIGRATE = False
AUTO_SEED_DB = False
