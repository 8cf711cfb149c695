"""
Core module exports.
"""

from .config import settings
from .constants import (
    BEARER_COOKIE,
    FIRST_DAY,
    LAST_DAY,
    RELEASE_TIMEZONE,
    TOKEN_EXPIRY_MARGIN,
)

__all__ = [
    "settings",
    "BEARER_COOKIE",
    "FIRST_DAY",
    "LAST_DAY",
    "RELEASE_TIMEZONE",
    "TOKEN_EXPIRY_MARGIN",
]
