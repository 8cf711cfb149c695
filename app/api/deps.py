"""
Request dependencies: store and service wiring, and the current player.

Core services receive their configuration explicitly; this module is the
only place that reads the global settings to build them.
"""

from functools import lru_cache
from typing import Optional

import httpx
from fastapi import Depends, HTTPException, Request, status

from app.core.config import settings
from app.core.constants import BEARER_COOKIE
from app.core.oauth import ProviderRegistry
from app.db.base import UserStore
from app.db.init_db import build_picture_store, init_db
from app.db.picture_store import JsonPictureStore
from app.models.user import User
from app.services.identity import IdentityResolver
from app.services.scoring import ScoreConfig, ScoringEngine
from app.services.session import Clock, SessionManager, utc_now
from app.services.token_exchange import TokenExchangeClient, create_http_client


@lru_cache
def _default_user_store() -> UserStore:
    return init_db(settings)


@lru_cache
def _default_http_client() -> httpx.Client:
    return create_http_client(settings.http_timeout_seconds)


def close_http_client() -> None:
    if _default_http_client.cache_info().currsize:
        _default_http_client().close()
        _default_http_client.cache_clear()


def get_user_store() -> UserStore:
    return _default_user_store()


def get_picture_store() -> JsonPictureStore:
    return build_picture_store(settings)


def get_provider_registry() -> ProviderRegistry:
    return ProviderRegistry.from_settings(settings)


def get_score_config() -> ScoreConfig:
    return ScoreConfig.from_settings(settings)


def get_http_client() -> httpx.Client:
    return _default_http_client()


def get_clock() -> Clock:
    return utc_now


def get_session_manager(
    store: UserStore = Depends(get_user_store),
    registry: ProviderRegistry = Depends(get_provider_registry),
    http_client: httpx.Client = Depends(get_http_client),
    clock: Clock = Depends(get_clock),
) -> SessionManager:
    return SessionManager(
        store,
        registry,
        TokenExchangeClient(http_client),
        IdentityResolver(http_client),
        clock=clock,
    )


def get_scoring_engine(
    config: ScoreConfig = Depends(get_score_config),
    pictures: JsonPictureStore = Depends(get_picture_store),
) -> ScoringEngine:
    return ScoringEngine(config, pictures)


def get_current_user_optional(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
) -> Optional[User]:
    """
    Resolve the bearer cookie to a player, refreshing a stale token.
    A rotated token is left on ``request.state`` so the cookie can be re-issued.
    """
    session = manager.resolve_session(request.cookies.get(BEARER_COOKIE))
    if session.refreshed_token is not None:
        request.state.refreshed_token = session.refreshed_token
    return session.user if session.authenticated else None


def get_current_user_required(
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """
    Get the current player (required).
    Raises HTTPException if the session is missing, expired or could not be refreshed.
    """
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return current_user
