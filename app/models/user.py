"""
Player model and its guesses.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import FIRST_DAY, LAST_DAY, TOKEN_EXPIRY_MARGIN
from app.models.oauth import OAuth2Token, OAuthProvider


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class GuessEntry(BaseModel):
    """A single guess. Created once, never modified; points are derived."""

    model_config = ConfigDict(frozen=True)

    submitted_at: datetime
    guessed_hour: int = Field(ge=0, le=23)
    guessed_minute: int = Field(ge=0, le=59)

    @field_validator("submitted_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def hm(self) -> Tuple[int, int]:
        return self.guessed_hour, self.guessed_minute

    def time(self) -> str:
        return f"{self.guessed_hour:02}:{self.guessed_minute:02}"


class User(BaseModel):
    """Player account, keyed by the provider's stable user id."""

    id: str
    display_name: str
    provider_username: str
    oauth_provider: OAuthProvider
    access_token: str = ""
    refresh_token: Optional[str] = None
    access_token_expire_at: Optional[datetime] = None
    guesses: Dict[int, GuessEntry] = Field(default_factory=dict)
    hidden: bool = False
    version: int = 0

    @field_validator("access_token_expire_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return _as_utc(v)

    @field_validator("guesses", mode="after")
    @classmethod
    def check_days(cls, v: Dict[int, GuessEntry]) -> Dict[int, GuessEntry]:
        for day in v:
            if not FIRST_DAY <= day <= LAST_DAY:
                raise ValueError(f"guess recorded for invalid day {day}")
        return v

    def has_guessed(self, day: int) -> bool:
        return day in self.guesses

    def last_guess_at(self) -> Optional[datetime]:
        if not self.guesses:
            return None
        return max(entry.submitted_at for entry in self.guesses.values())

    def set_auth(self, token: OAuth2Token, now: datetime) -> None:
        """Stamp fresh token fields.

        The early-expiry margin is applied here and only here, once per
        issued token. A response without a refresh token keeps the
        previous one.
        """
        if token.expires_in is not None:
            lifetime = max(timedelta(seconds=token.expires_in) - TOKEN_EXPIRY_MARGIN, timedelta(0))
            self.access_token_expire_at = _as_utc(now) + lifetime
        else:
            self.access_token_expire_at = None

        self.access_token = token.access_token
        if token.refresh_token:
            self.refresh_token = token.refresh_token

    def clear_auth(self, now: datetime) -> None:
        self.access_token = ""
        self.refresh_token = None
        self.access_token_expire_at = _as_utc(now)

    def has_access_token_expired(self, now: datetime) -> bool:
        if self.access_token_expire_at is None:
            # No expiry is only trusted for accounts without a refresh token
            return self.refresh_token is not None
        return _as_utc(now) >= self.access_token_expire_at
