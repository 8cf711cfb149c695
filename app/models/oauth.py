"""
OAuth2 provider and token models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OAuthProvider(str, Enum):
    """Identity providers a player can log in with."""

    DISCORD = "discord"
    MICROSOFT = "microsoft"
    GITHUB = "github"


@dataclass(frozen=True)
class ProviderConfig:
    """Endpoints and credentials of one identity provider."""

    provider: OAuthProvider
    enabled: bool
    authorize_url: str
    token_url: str
    user_info_url: str
    client_id: str
    client_secret: str
    redirect_uri: str
    scope: str


class OAuth2Token(BaseModel):
    """Token endpoint response. Never persisted as-is."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: Optional[int] = Field(default=None, ge=0)
    refresh_token: Optional[str] = None
    scope: str = ""
