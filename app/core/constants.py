"""
Application constants that don't change between environments.
These are business logic constants, not configuration settings.
"""

from datetime import timedelta, timezone

# Calendar
FIRST_DAY = 1
LAST_DAY = 25

# Release window: pictures unlock after this time, fixed CET offset (no DST)
RELEASE_TIMEZONE = timezone(timedelta(hours=1), "CET")
RELEASE_HOUR = 6
RELEASE_MINUTE = 0

# Session
BEARER_COOKIE = "aot-bearer"
TOKEN_EXPIRY_MARGIN = timedelta(seconds=30)  # invalidate tokens early

# API Constants
USER_AGENT = "advent-of-time"
SECRETS_NAME = "aot-secrets"
