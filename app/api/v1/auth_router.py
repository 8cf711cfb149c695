"""
Authentication router: OAuth2 login, callback, logout and current account.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from starlette.responses import RedirectResponse

from app.api.deps import (
    get_current_user_optional,
    get_provider_registry,
    get_session_manager,
)
from app.core.aot_logger import AotLogger
from app.core.oauth import ProviderRegistry, authorize_url
from app.core.security import clear_bearer_cookie, set_bearer_cookie
from app.models.user import User
from app.schemas.auth import LoginOptions, OAuthErrorResponse, UserPublic
from app.services.session import SessionManager

logger = AotLogger.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _redirect(location: str) -> RedirectResponse:
    return RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)


@router.get("/login", response_model=LoginOptions)
def login(
    current_user: Optional[User] = Depends(get_current_user_optional),
    registry: ProviderRegistry = Depends(get_provider_registry),
):
    """List the providers a visitor can log in with."""
    if current_user is not None:
        return _redirect("/auth/me")
    return LoginOptions(authenticated=False, providers=registry.enabled_providers())


@router.get("/oauth2")
def oauth2_login(
    idp: str = Query(..., description="Identity provider name"),
    registry: ProviderRegistry = Depends(get_provider_registry),
):
    """Redirect to the provider's authorization page."""
    config = registry.config_for(idp)
    location = authorize_url(config)
    logger.debug(f"redirecting to {config.provider.value} authorization: {location}")
    return _redirect(location)


@router.get("/oauth2/{provider}/callback")
def oauth2_callback(
    provider: str,
    code: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    registry: ProviderRegistry = Depends(get_provider_registry),
    manager: SessionManager = Depends(get_session_manager),
):
    """Finish the code flow: exchange, resolve identity, store, set cookie."""
    registry.config_for(provider)

    if error:
        logger.warning(f"{provider} authorization failed: {error} {error_description or ''}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=OAuthErrorResponse(
                error=error, error_description=error_description or ""
            ).model_dump(),
        )
    if not code:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=OAuthErrorResponse(
                error="invalid_request", error_description="missing authorization code"
            ).model_dump(),
        )

    _, token = manager.login(provider, code)
    response = _redirect("/")
    set_bearer_cookie(response, token)
    return response


@router.get("/logout")
def logout(
    current_user: Optional[User] = Depends(get_current_user_optional),
    manager: SessionManager = Depends(get_session_manager),
):
    """End the session and expire the cookie."""
    if current_user is None:
        return _redirect("/auth/login")

    manager.logout(current_user)
    response = _redirect("/")
    clear_bearer_cookie(response)
    return response


@router.get("/me", response_model=UserPublic)
def me(current_user: Optional[User] = Depends(get_current_user_optional)):
    """Account of the logged-in player."""
    if current_user is None:
        return _redirect("/auth/login")
    return UserPublic.from_user(current_user)
