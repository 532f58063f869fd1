"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

OVERDUE_GRACE_DAYS = 7
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
MEMBER_ID_PREFIX = "MRM"
MIN_PASSWORD_LENGTH = 6
DASHBOARD_CACHE_MINUTES = 5
MAX_EXPENSE_BILLS = 3
MAX_ROOM_CAPACITY = 20
WEEKS_PER_YEAR = 52
ALLOWED_UPLOAD_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "pdf"})
API_PREFIX = "/api/v1"
OTP_LENGTH = 6
OTP_MAX_ATTEMPTS = 5
OTP_SETUP_TTL_HOURS = 24
OTP_RESET_TTL_MINUTES = 15
SETUP_TOKEN_MINUTES = 15
SETUP_TOKEN_SCOPE = "password-setup"
