"""
OAuth2 provider registry for Discord, Microsoft and GitHub.
"""

from typing import Dict, List, Mapping

from authlib.oauth2.rfc6749.parameters import prepare_grant_uri

from app.core.config import Settings
from app.core.exceptions import ConfigError
from app.models.oauth import OAuthProvider, ProviderConfig


def _provider_from_settings(settings: Settings, provider: OAuthProvider) -> ProviderConfig:
    prefix = provider.value
    return ProviderConfig(
        provider=provider,
        enabled=getattr(settings, f"{prefix}_enabled"),
        authorize_url=getattr(settings, f"{prefix}_authorize_url"),
        token_url=getattr(settings, f"{prefix}_token_url"),
        user_info_url=getattr(settings, f"{prefix}_user_info_url"),
        client_id=getattr(settings, f"{prefix}_client_id"),
        client_secret=getattr(settings, f"{prefix}_client_secret"),
        redirect_uri=getattr(settings, f"{prefix}_redirect_uri"),
        scope=getattr(settings, f"{prefix}_scope"),
    )


class ProviderRegistry:
    """Static lookup from provider name to its configuration.

    A disabled provider is indistinguishable from an unknown one.
    """

    def __init__(self, configs: Mapping[OAuthProvider, ProviderConfig]):
        self._configs: Dict[OAuthProvider, ProviderConfig] = dict(configs)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        return cls({p: _provider_from_settings(settings, p) for p in OAuthProvider})

    def config_for(self, provider_name: str) -> ProviderConfig:
        try:
            provider = OAuthProvider(provider_name)
        except ValueError:
            raise ConfigError(provider_name)

        config = self._configs.get(provider)
        if config is None or not config.enabled:
            raise ConfigError(provider_name)
        return config

    def enabled_providers(self) -> List[OAuthProvider]:
        return [p for p, config in self._configs.items() if config.enabled]


def authorize_url(config: ProviderConfig) -> str:
    """URL the browser is sent to in order to start the code flow."""
    return prepare_grant_uri(
        config.authorize_url,
        client_id=config.client_id,
        response_type="code",
        redirect_uri=config.redirect_uri,
        scope=config.scope,
    )
