"""
Pytest configuration and shared fixtures for Advent of Time tests.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generator, List
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.deps import (
    get_clock,
    get_http_client,
    get_picture_store,
    get_provider_registry,
    get_score_config,
    get_user_store,
)
from app.core.constants import BEARER_COOKIE
from app.core.oauth import ProviderRegistry
from app.db.json_store import JsonUserStore
from app.db.picture_store import JsonPictureStore
from app.main import app
from app.models.oauth import OAuth2Token, OAuthProvider, ProviderConfig
from app.models.user import GuessEntry, User
from app.services.identity import IdentityResolver
from app.services.scoring import ScoreConfig, ScoringEngine
from app.services.session import KeyedLocks, SessionManager
from app.services.token_exchange import TokenExchangeClient

# 13:00 CET on December 10th: days 1-10 are open
FIXED_NOW = datetime(2025, 12, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock handed to services instead of ``utc_now``."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeProvider:
    """In-memory token and user-info endpoints for every provider host."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_status = 200
        self.token_body: Any = {
            "access_token": "access-1",
            "token_type": "Bearer",
            "expires_in": 3600,
            "refresh_token": "refresh-1",
            "scope": "identify",
        }
        self.profile_status = 200
        self.profiles: Dict[str, Any] = {
            "discord.test": {"id": "1001", "username": "alice", "discriminator": "0"},
            "github.test": {"id": 42, "login": "octocat"},
        }
        self.fail_transport = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)
        if request.method == "POST":
            return httpx.Response(self.token_status, json=self.token_body)
        return httpx.Response(self.profile_status, json=self.profiles[request.url.host])

    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @staticmethod
    def form_of(request: httpx.Request) -> Dict[str, str]:
        """Decode a form-encoded request body."""
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def _provider_config(provider: OAuthProvider, host: str, enabled: bool) -> ProviderConfig:
    return ProviderConfig(
        provider=provider,
        enabled=enabled,
        authorize_url=f"https://{host}/oauth2/authorize",
        token_url=f"https://{host}/oauth2/token",
        user_info_url=f"https://{host}/api/me",
        client_id=f"{provider.value}-client",
        client_secret=f"{provider.value}-secret",
        redirect_uri=f"http://testserver/auth/oauth2/{provider.value}/callback",
        scope="identify",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def registry() -> ProviderRegistry:
    """Discord and GitHub enabled, Microsoft disabled."""
    return ProviderRegistry(
        {
            OAuthProvider.DISCORD: _provider_config(OAuthProvider.DISCORD, "discord.test", True),
            OAuthProvider.MICROSOFT: _provider_config(OAuthProvider.MICROSOFT, "microsoft.test", False),
            OAuthProvider.GITHUB: _provider_config(OAuthProvider.GITHUB, "github.test", True),
        }
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def http_client(fake_provider: FakeProvider) -> Generator[httpx.Client, None, None]:
    client = httpx.Client(transport=httpx.MockTransport(fake_provider.handler))
    yield client
    client.close()


@pytest.fixture
def user_store(tmp_path) -> JsonUserStore:
    store = JsonUserStore(str(tmp_path / "users.json"))
    store.initialize()
    return store


@pytest.fixture
def picture_store(tmp_path) -> JsonPictureStore:
    """Pictures for every day at 12:00, day 3 at 08:30; only day 1 has a file."""
    pictures_dir = tmp_path / "pictures"
    pictures_dir.mkdir()
    (pictures_dir / "day01.jpg").write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")

    pictures = [
        {
            "day": day,
            "path": f"day{day:02}.jpg",
            "original_date": f"2024-07-{day:02}",
            "time_taken": "08:30" if day == 3 else "12:00",
            "location": "Lyon" if day == 1 else None,
        }
        for day in range(1, 26)
    ]
    pictures_file = tmp_path / "pictures.json"
    pictures_file.write_text(json.dumps(pictures))
    return JsonPictureStore(str(pictures_file), str(pictures_dir))


@pytest.fixture
def score_config() -> ScoreConfig:
    return ScoreConfig(max_reward=25, divider=720, exponent=0.5)


@pytest.fixture
def engine(score_config: ScoreConfig, picture_store: JsonPictureStore) -> ScoringEngine:
    return ScoringEngine(score_config, picture_store)


@pytest.fixture
def session_manager(user_store, registry, http_client, clock) -> SessionManager:
    return SessionManager(
        user_store,
        registry,
        TokenExchangeClient(http_client),
        IdentityResolver(http_client),
        clock=clock,
        locks=KeyedLocks(),
    )


@pytest.fixture
def make_user(user_store: JsonUserStore, clock: FakeClock):
    """Store a logged-in player and return it."""

    def _make_user(
        user_id: str = "1001",
        access_token: str = "access-1",
        refresh_token: str = "refresh-1",
        expires_in: int = 3600,
        guesses: Dict[int, str] = None,
        hidden: bool = False,
        provider: OAuthProvider = OAuthProvider.DISCORD,
    ) -> User:
        user = User(
            id=user_id,
            display_name=f"Player{user_id}",
            provider_username=f"account-{user_id}",
            oauth_provider=provider,
            hidden=hidden,
        )
        user.set_auth(
            OAuth2Token(
                access_token=access_token,
                expires_in=expires_in,
                refresh_token=refresh_token,
            ),
            clock(),
        )
        for day, value in (guesses or {}).items():
            hour, minute = value.split(":")
            user.guesses[day] = GuessEntry(
                submitted_at=clock(),
                guessed_hour=int(hour),
                guessed_minute=int(minute),
            )
        return user_store.upsert(user)

    return _make_user


@pytest.fixture
def client(
    user_store, picture_store, registry, http_client, clock, score_config
) -> Generator[TestClient, None, None]:
    """Create a test client with store, provider and clock overrides."""
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_picture_store] = lambda: picture_store
    app.dependency_overrides[get_provider_registry] = lambda: registry
    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_score_config] = lambda: score_config

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def logged_in(client: TestClient, make_user):
    """Log a stored player into the test client via the bearer cookie."""

    def _logged_in(**kwargs) -> User:
        user = make_user(**kwargs)
        client.cookies.set(BEARER_COOKIE, user.access_token)
        return user

    return _logged_in
