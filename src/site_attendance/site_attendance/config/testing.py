import os

SECRET_KEY = "test-secret-key"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance_test"),
    "connect_timeout": 2,
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

SITE_TIMEZONE = "America/New_York"
OVERTIME_WEEKLY_THRESHOLD_HOURS = 44
TIMESHEET_LIST_LIMIT = 200

AUTO_MIGRATE = False
AUTO_SEED_DB = False
