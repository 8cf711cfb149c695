"""
Session manager: login, bearer resolution with silent refresh, logout.

States of a session::

    Anonymous --login / fresh bearer--> Authenticated(fresh)
    Authenticated(fresh) --expiry passes--> Authenticated(stale)
    Authenticated(stale) --refresh ok--> Authenticated(fresh)
    Authenticated(stale) --refresh error--> RefreshFailed (treated as Anonymous)
    Authenticated(*) --logout--> Anonymous
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from app.core.aot_logger import AotLogger
from app.core.exceptions import ConfigError, RefreshFailed, SessionExpired, TokenExchangeError
from app.core.oauth import ProviderRegistry
from app.db.base import UserStore
from app.models.oauth import OAuth2Token
from app.models.user import User
from app.services.identity import IdentityResolver
from app.services.token_exchange import TokenExchangeClient

logger = AotLogger.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    FRESH = "fresh"
    STALE = "stale"
    REFRESH_FAILED = "refresh_failed"


@dataclass
class ResolvedSession:
    """Outcome of resolving a bearer cookie.

    ``refreshed_token`` is set when the access token was rotated during
    resolution, so the caller can re-issue the cookie.
    """

    state: SessionState
    user: Optional[User] = None
    refreshed_token: Optional[OAuth2Token] = None

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.FRESH and self.user is not None


class KeyedLocks:
    """One lock per user id, shared by every request in the process."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]


_process_locks = KeyedLocks()


class SessionManager:
    """Owns the login / refresh / logout lifecycle of player sessions."""

    def __init__(
        self,
        store: UserStore,
        registry: ProviderRegistry,
        token_client: TokenExchangeClient,
        identity: IdentityResolver,
        clock: Clock = utc_now,
        locks: Optional[KeyedLocks] = None,
    ):
        self._store = store
        self._registry = registry
        self._token_client = token_client
        self._identity = identity
        self._clock = clock
        self._locks = locks or _process_locks

    def _user_lock(self, user_id: str) -> threading.Lock:
        return self._locks.get(user_id)

    def state_of(self, user: Optional[User], now: Optional[datetime] = None) -> SessionState:
        if user is None or not user.access_token:
            return SessionState.ANONYMOUS
        now = now or self._clock()
        if user.has_access_token_expired(now):
            return SessionState.STALE
        return SessionState.FRESH

    def login(self, provider_name: str, code: str) -> Tuple[User, OAuth2Token]:
        """Complete an authorization-code callback and store the account.

        A returning player keeps display name, guesses and hidden flag;
        only the provider account name and the tokens are refreshed.
        """
        config = self._registry.config_for(provider_name)
        token = self._token_client.exchange_code(code, config)
        now = self._clock()
        candidate = self._identity.resolve(config, token, now)

        with self._user_lock(candidate.id):
            existing = self._store.get(candidate.id)
            if existing is None:
                user = candidate
                logger.info(f"new {provider_name} user {user.id} as {user.display_name}")
            else:
                user = existing
                user.provider_username = candidate.provider_username
                user.set_auth(token, now)
                logger.info(f"existing {provider_name} user {user.id} logged in")
            self._store.upsert(user)

        return user, token

    def resolve(self, bearer: Optional[str]) -> Optional[User]:
        """Return the logged-in user or ``None``; refresh transparently."""
        session = self.resolve_session(bearer)
        return session.user if session.authenticated else None

    def resolve_session(self, bearer: Optional[str]) -> ResolvedSession:
        if not bearer:
            return ResolvedSession(SessionState.ANONYMOUS)

        user = self._store.get_by_access_token(bearer)
        if self.state_of(user) is SessionState.FRESH:
            return ResolvedSession(SessionState.FRESH, user)
        if user is None:
            return ResolvedSession(SessionState.ANONYMOUS)

        with self._user_lock(user.id):
            # Re-read under the lock: a concurrent request may have rotated the token.
            user = self._store.get_by_access_token(bearer)
            if user is None:
                return ResolvedSession(SessionState.ANONYMOUS)
            if self.state_of(user) is SessionState.FRESH:
                return ResolvedSession(SessionState.FRESH, user)

            try:
                token = self._refresh(user)
            except SessionExpired:
                logger.info(f"session of user {user.id} expired")
                return ResolvedSession(SessionState.ANONYMOUS)
            except RefreshFailed as e:
                logger.warning(f"token refresh failed for user {user.id}: {e}")
                return ResolvedSession(SessionState.REFRESH_FAILED)

            # Persist before handing the user back
            self._store.upsert(user)

        logger.info(f"refreshed access token of user {user.id}")
        return ResolvedSession(SessionState.FRESH, user, refreshed_token=token)

    def _refresh(self, user: User) -> OAuth2Token:
        """Rotate tokens on ``user`` in memory. The stored row is untouched."""
        if not user.refresh_token:
            raise SessionExpired(f"no refresh token for user {user.id}")

        try:
            config = self._registry.config_for(user.oauth_provider.value)
            token = self._token_client.refresh(user.refresh_token, config)
        except (ConfigError, TokenExchangeError) as e:
            raise RefreshFailed(str(e)) from e

        user.set_auth(token, self._clock())
        return token

    def logout(self, user: User) -> User:
        """Drop both tokens and mark the session expired as of now."""
        with self._user_lock(user.id):
            user.clear_auth(self._clock())
            self._store.upsert(user)
        logger.info(f"user {user.id} logged out")
        return user
