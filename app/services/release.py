"""
Release window: when a day's picture becomes guessable.

Pure functions of ``(now, day)``, evaluated in the fixed CET reference zone.
"""

from datetime import datetime, timezone

from app.core.constants import (
    FIRST_DAY,
    LAST_DAY,
    RELEASE_HOUR,
    RELEASE_MINUTE,
    RELEASE_TIMEZONE,
)


def _reference_time(now: datetime) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(RELEASE_TIMEZONE)


def current_day(now: datetime) -> int:
    """Day of the month in the reference zone."""
    return _reference_time(now).day


def is_released(now: datetime, day: int) -> bool:
    """Past days are open, future days closed, today opens after 06:00 CET."""
    if not FIRST_DAY <= day <= LAST_DAY:
        return False

    local = _reference_time(now)
    if day < local.day:
        return True
    if day > local.day:
        return False

    opens_at = local.replace(hour=RELEASE_HOUR, minute=RELEASE_MINUTE, second=0, microsecond=0)
    return local > opens_at


def released_days(now: datetime) -> int:
    """Number of days open for guessing at ``now``."""
    return sum(1 for day in range(FIRST_DAY, LAST_DAY + 1) if is_released(now, day))
