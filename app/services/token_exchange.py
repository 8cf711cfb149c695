"""
Token exchange client: the two OAuth2 token grants the game needs.
"""

from typing import Dict

import httpx
from pydantic import ValidationError

from app.core.aot_logger import AotLogger
from app.core.constants import USER_AGENT
from app.core.exceptions import TokenExchangeError
from app.models.oauth import OAuth2Token, ProviderConfig

logger = AotLogger.get_logger(__name__)


def create_http_client(timeout: float) -> httpx.Client:
    """Blocking HTTP client shared by token exchange and profile fetches."""
    return httpx.Client(timeout=timeout, headers={"User-Agent": USER_AGENT})


class TokenExchangeClient:
    """Authorization-code and refresh-token grants against a token endpoint.

    Both calls are single attempts: any transport error, non-2xx status or
    unusable body raises ``TokenExchangeError``.
    """

    def __init__(self, http_client: httpx.Client):
        self._http = http_client

    def exchange_code(self, code: str, config: ProviderConfig) -> OAuth2Token:
        """Trade an authorization code for tokens."""
        return self._request_token(
            config, {"grant_type": "authorization_code", "code": code}
        )

    def refresh(self, refresh_token: str, config: ProviderConfig) -> OAuth2Token:
        """Trade a refresh token for a new access token.

        The response may omit ``refresh_token``; keeping the previous one
        is up to the caller (see ``User.set_auth``).
        """
        return self._request_token(
            config, {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    def _request_token(self, config: ProviderConfig, grant: Dict[str, str]) -> OAuth2Token:
        provider = config.provider.value
        form = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            **grant,
            "redirect_uri": config.redirect_uri,
        }

        try:
            response = self._http.post(
                config.token_url,
                data=form,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(f"{provider} token endpoint unreachable: {e}")
            raise TokenExchangeError(f"{provider} token endpoint unreachable: {e}") from e

        logger.debug(f"{provider} {grant['grant_type']} response status: {response.status_code}")
        if not response.is_success:
            raise TokenExchangeError(
                f"{provider} token endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TokenExchangeError(f"{provider} token response is not JSON") from e

        if isinstance(body, dict) and "error" in body:
            description = body.get("error_description") or body["error"]
            raise TokenExchangeError(f"{provider} rejected the grant: {description}")

        try:
            return OAuth2Token.model_validate(body)
        except ValidationError as e:
            raise TokenExchangeError(f"malformed {provider} token response: {e}") from e
