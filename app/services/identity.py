"""
Identity resolution: fetch the provider profile behind an access token and
map it to a player account.

Each provider is a closed variant with its own profile model and mapping;
dispatch goes through ``_HANDLERS`` keyed by ``OAuthProvider``.
"""

from datetime import datetime
from typing import Callable, Dict, NamedTuple, Optional, Type, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.aot_logger import AotLogger
from app.core.exceptions import IdentityFetchError
from app.models.oauth import OAuth2Token, OAuthProvider, ProviderConfig
from app.models.user import User
from app.services.usernames import generate_display_name

logger = AotLogger.get_logger(__name__)


class DiscordProfile(BaseModel):
    """Subset of ``GET /users/@me``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str


class MicrosoftProfile(BaseModel):
    """Subset of Microsoft Graph ``GET /me``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    user_principal_name: Optional[str] = Field(default=None, alias="userPrincipalName")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    mail: Optional[str] = None


class GitHubProfile(BaseModel):
    """Subset of ``GET /user``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    login: str


ProviderProfile = Union[DiscordProfile, MicrosoftProfile, GitHubProfile]


class ProfileIdentity(NamedTuple):
    stable_id: str
    account_name: str


def _discord_identity(profile: DiscordProfile) -> ProfileIdentity:
    return ProfileIdentity(profile.id, profile.username)


def _microsoft_identity(profile: MicrosoftProfile) -> ProfileIdentity:
    account = profile.user_principal_name or profile.mail or profile.display_name or profile.id
    return ProfileIdentity(profile.id, account)


def _github_identity(profile: GitHubProfile) -> ProfileIdentity:
    return ProfileIdentity(str(profile.id), profile.login)


class _ProviderHandler(NamedTuple):
    profile_model: Type[BaseModel]
    identity: Callable[..., ProfileIdentity]


_HANDLERS: Dict[OAuthProvider, _ProviderHandler] = {
    OAuthProvider.DISCORD: _ProviderHandler(DiscordProfile, _discord_identity),
    OAuthProvider.MICROSOFT: _ProviderHandler(MicrosoftProfile, _microsoft_identity),
    OAuthProvider.GITHUB: _ProviderHandler(GitHubProfile, _github_identity),
}

_PROVIDER_OF = {handler.profile_model: provider for provider, handler in _HANDLERS.items()}


class IdentityResolver:
    """Fetches provider profiles and turns them into ``User`` records."""

    def __init__(self, http_client: httpx.Client):
        self._http = http_client

    def fetch_profile(self, config: ProviderConfig, access_token: str) -> ProviderProfile:
        """Load the profile of the token owner. Failures are not retried."""
        provider = config.provider.value
        handler = _HANDLERS[config.provider]

        try:
            response = self._http.get(
                config.user_info_url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"{provider} user info endpoint unreachable: {e}")
            raise IdentityFetchError(f"{provider} user info endpoint unreachable: {e}") from e

        if not response.is_success:
            raise IdentityFetchError(
                f"failed to get {provider} user: status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return handler.profile_model.model_validate_json(response.content)
        except ValidationError as e:
            raise IdentityFetchError(f"malformed {provider} user info: {e}") from e

    def map_to_user(self, profile: ProviderProfile, token: OAuth2Token, now: datetime) -> User:
        """Build a fresh account for the profile, carrying the new tokens."""
        provider = _PROVIDER_OF[type(profile)]
        identity = _HANDLERS[provider].identity(profile)

        user = User(
            id=identity.stable_id,
            display_name=generate_display_name(identity.stable_id),
            provider_username=identity.account_name,
            oauth_provider=provider,
            hidden=False,
        )
        user.set_auth(token, now)
        return user

    def resolve(self, config: ProviderConfig, token: OAuth2Token, now: datetime) -> User:
        profile = self.fetch_profile(config, token.access_token)
        logger.debug(f"{config.provider.value} profile: {profile!r}")
        return self.map_to_user(profile, token, now)
