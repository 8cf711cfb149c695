"""
Authentication schemas for request/response models.
"""

from typing import List

from pydantic import BaseModel

from app.models.oauth import OAuthProvider
from app.models.user import User


class LoginOptions(BaseModel):
    """Providers a visitor can log in with."""

    authenticated: bool
    providers: List[OAuthProvider]


class UserPublic(BaseModel):
    """Account data safe to show to its owner (no tokens)."""

    id: str
    display_name: str
    provider_username: str
    oauth_provider: OAuthProvider
    guesses: int
    hidden: bool

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            display_name=user.display_name,
            provider_username=user.provider_username,
            oauth_provider=user.oauth_provider,
            guesses=len(user.guesses),
            hidden=user.hidden,
        )


class OAuthErrorResponse(BaseModel):
    error: str
    error_description: str = ""
