"""Bearer cookie utilities for authentication."""

from typing import Optional

from starlette.responses import Response

from app.core.constants import BEARER_COOKIE
from app.models.oauth import OAuth2Token

# Max-Age must fit in a signed 32-bit integer
MAX_COOKIE_AGE = 2**31 - 1


def set_bearer_cookie(response: Response, token: OAuth2Token) -> None:
    """Store the raw access token; lifetime follows the provider's ``expires_in``."""
    max_age: Optional[int] = token.expires_in
    if max_age is not None and max_age > MAX_COOKIE_AGE:
        max_age = None
    response.set_cookie(
        BEARER_COOKIE,
        token.access_token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
    )


def clear_bearer_cookie(response: Response) -> None:
    """Expire the bearer cookie immediately."""
    response.set_cookie(
        BEARER_COOKIE,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
    )


def sets_bearer_cookie(response: Response) -> bool:
    return any(
        value.startswith(f"{BEARER_COOKIE}=")
        for value in response.headers.getlist("set-cookie")
    )
