"""Domain models."""

from .oauth import OAuth2Token, OAuthProvider, ProviderConfig
from .picture import Picture
from .user import GuessEntry, User

__all__ = [
    "GuessEntry",
    "OAuth2Token",
    "OAuthProvider",
    "Picture",
    "ProviderConfig",
    "User",
]
