"""
Error taxonomy for the game backend.

Provider and network failures are never retried. Guess validation errors
are local and recoverable by the caller. Store errors bubble up to the
request boundary.
"""

from typing import Optional


class AotError(Exception):
    """Base class for all application errors."""


class ConfigError(AotError):
    """Unknown or disabled identity provider."""

    def __init__(self, provider: str):
        super().__init__(f"unknown identity provider: {provider}")
        self.provider = provider


class TokenExchangeError(AotError):
    """Token endpoint call failed or answered with an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IdentityFetchError(AotError):
    """User-info endpoint call failed or answered with an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SessionExpired(AotError):
    """Access token expired and cannot be refreshed."""


class RefreshFailed(AotError):
    """Refresh-token grant failed; the session is treated as logged out."""


class GuessValidationError(AotError):
    """Base class for rejected guesses. Never carries a partial score."""

    reason = "invalid_guess"


class InvalidFormat(GuessValidationError):
    reason = "invalid_format"


class AlreadyGuessed(GuessValidationError):
    reason = "already_guessed"

    def __init__(self, day: int):
        super().__init__("You have already guessed this day!")
        self.day = day


class DayNotReleased(GuessValidationError):
    reason = "day_not_released"

    def __init__(self, day: int):
        super().__init__(f"day {day} is not released yet")
        self.day = day


class StoreError(AotError):
    """Reading or writing persisted records failed."""


class StoreConflictError(StoreError):
    """A record changed between read and write."""

    def __init__(self, record_id: str):
        super().__init__(f"record `{record_id}` was modified concurrently")
        self.record_id = record_id
