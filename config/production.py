import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "pg_manager"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
    "time_zone": os.getenv("DB_TIME_ZONE", "+05:30"),
}

JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))

UPLOAD_ROOT = os.getenv("UPLOAD_ROOT", "uploads")
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

ENABLE_SCHEDULER = bool(int(os.getenv("ENABLE_SCHEDULER", "1")))
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Kolkata")
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", APP_TIMEZONE)

COMPANY_NAME = os.getenv("COMPANY_NAME", "PG Manager")
# SMTP; with MAIL_ENABLED=0 mails are only logged
MAIL_ENABLED = bool(int(os.getenv("MAIL_ENABLED", "1")))
MAIL_HOST = os.getenv("MAIL_HOST", "smtp.gmail.com")
MAIL_PORT = int(os.getenv("MAIL_PORT", "465"))
MAIL_USE_SSL = bool(int(os.getenv("MAIL_USE_SSL", "1")))
MAIL_USE_TLS = bool(int(os.getenv("MAIL_USE_TLS", "0")))
MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", MAIL_USERNAME)
MAIL_TIMEOUT = int(os.getenv("MAIL_TIMEOUT", "10"))
