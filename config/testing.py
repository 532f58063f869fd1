import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "pg_manager_test"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
    "time_zone": os.getenv("DB_TIME_ZONE", "+05:30"),
}

JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_HOURS = 1

UPLOAD_ROOT = os.getenv("UPLOAD_ROOT", "uploads-test")
MAX_CONTENT_LENGTH = 10 * 1024 * 1024

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

ENABLE_SCHEDULER = False
APP_TIMEZONE = "Asia/Kolkata"
SCHEDULER_TIMEZONE = APP_TIMEZONE

COMPANY_NAME = "PG Manager"
MAIL_ENABLED = False
