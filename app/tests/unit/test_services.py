"""
Unit tests for the OAuth2 token exchange, identity resolution and sessions.
"""

from datetime import timedelta

import pytest

from app.core.exceptions import ConfigError, IdentityFetchError, TokenExchangeError
from app.models.oauth import OAuth2Token, OAuthProvider
from app.services.identity import GitHubProfile, IdentityResolver, MicrosoftProfile
from app.services.session import SessionState
from app.services.token_exchange import TokenExchangeClient
from app.services.usernames import generate_display_name


class TestTokenExchange:
    """Authorization-code and refresh grants."""

    def test_exchange_code(self, registry, http_client, fake_provider):
        config = registry.config_for("discord")

        token = TokenExchangeClient(http_client).exchange_code("the-code", config)

        assert token.access_token == "access-1"
        assert token.refresh_token == "refresh-1"
        assert token.expires_in == 3600
        request = fake_provider.token_requests()[0]
        assert str(request.url) == config.token_url
        assert request.headers["accept"] == "application/json"
        assert fake_provider.form_of(request) == {
            "client_id": "discord-client",
            "client_secret": "discord-secret",
            "grant_type": "authorization_code",
            "code": "the-code",
            "redirect_uri": config.redirect_uri,
        }

    def test_refresh_grant(self, registry, http_client, fake_provider):
        fake_provider.token_body = {"access_token": "access-2", "expires_in": 60}

        token = TokenExchangeClient(http_client).refresh("refresh-1", registry.config_for("github"))

        assert token.access_token == "access-2"
        assert token.refresh_token is None
        form = fake_provider.form_of(fake_provider.token_requests()[0])
        assert form["grant_type"] == "refresh_token"
        assert form["refresh_token"] == "refresh-1"

    def test_non_2xx(self, registry, http_client, fake_provider):
        fake_provider.token_status = 401

        with pytest.raises(TokenExchangeError) as exc_info:
            TokenExchangeClient(http_client).exchange_code("c", registry.config_for("discord"))

        assert exc_info.value.status_code == 401
        assert len(fake_provider.requests) == 1

    def test_error_body_with_200(self, registry, http_client, fake_provider):
        # GitHub reports grant failures with a 200 status
        fake_provider.token_body = {"error": "bad_verification_code", "error_description": "expired"}

        with pytest.raises(TokenExchangeError, match="expired"):
            TokenExchangeClient(http_client).exchange_code("c", registry.config_for("github"))

    def test_malformed_body(self, registry, http_client, fake_provider):
        fake_provider.token_body = {"token_type": "Bearer"}

        with pytest.raises(TokenExchangeError):
            TokenExchangeClient(http_client).exchange_code("c", registry.config_for("discord"))

    def test_transport_error(self, registry, http_client, fake_provider):
        fake_provider.fail_transport = True

        with pytest.raises(TokenExchangeError, match="unreachable"):
            TokenExchangeClient(http_client).exchange_code("c", registry.config_for("discord"))


class TestIdentity:
    """Profile fetch and mapping to players."""

    def test_discord_profile(self, registry, http_client, fake_provider, clock):
        token = OAuth2Token(access_token="access-1", expires_in=3600, refresh_token="refresh-1")

        user = IdentityResolver(http_client).resolve(registry.config_for("discord"), token, clock())

        assert user.id == "1001"
        assert user.provider_username == "alice"
        assert user.oauth_provider is OAuthProvider.DISCORD
        assert user.display_name == generate_display_name("1001")
        assert user.hidden is False
        assert user.access_token == "access-1"
        assert user.access_token_expire_at == clock() + timedelta(seconds=3570)
        request = fake_provider.requests[0]
        assert request.headers["authorization"] == "Bearer access-1"

    def test_github_numeric_id(self, registry, http_client, clock):
        token = OAuth2Token(access_token="gh")

        user = IdentityResolver(http_client).resolve(registry.config_for("github"), token, clock())

        assert user.id == "42"
        assert user.provider_username == "octocat"
        assert user.oauth_provider is OAuthProvider.GITHUB

    def test_microsoft_mapping(self, http_client, clock):
        profile = MicrosoftProfile.model_validate(
            {"id": "ms-1", "userPrincipalName": "bob@contoso.test", "displayName": "Bob"}
        )

        user = IdentityResolver(http_client).map_to_user(profile, OAuth2Token(access_token="m"), clock())

        assert user.id == "ms-1"
        assert user.provider_username == "bob@contoso.test"
        assert user.oauth_provider is OAuthProvider.MICROSOFT

    def test_profile_failure(self, registry, http_client, fake_provider):
        fake_provider.profile_status = 500

        with pytest.raises(IdentityFetchError) as exc_info:
            IdentityResolver(http_client).fetch_profile(registry.config_for("discord"), "a")

        assert exc_info.value.status_code == 500
        assert len(fake_provider.requests) == 1

    def test_malformed_profile(self, registry, http_client, fake_provider):
        fake_provider.profiles["github.test"] = {"login": "no-id"}

        with pytest.raises(IdentityFetchError):
            IdentityResolver(http_client).fetch_profile(registry.config_for("github"), "a")

    def test_display_names_are_deterministic(self):
        assert generate_display_name("1001") == generate_display_name("1001")
        assert generate_display_name("1001") != generate_display_name("1002")
        assert generate_display_name("1001")[-4:].isdigit()

    def test_github_profile_model(self):
        assert GitHubProfile.model_validate({"id": 7, "login": "x", "extra": 1}).id == 7


class TestSessionManager:
    """Login, silent refresh and logout."""

    def test_login_creates_user(self, session_manager, user_store):
        user, token = session_manager.login("discord", "code")

        stored = user_store.get("1001")
        assert stored.access_token == token.access_token == "access-1"
        assert stored.refresh_token == "refresh-1"
        assert stored.version == 1
        assert user.display_name == generate_display_name("1001")

    def test_login_keeps_existing_progress(self, session_manager, user_store, make_user, fake_provider):
        make_user(guesses={1: "12:00"}, hidden=True, access_token="old")
        fake_provider.profiles["discord.test"]["username"] = "alice-renamed"

        user, _ = session_manager.login("discord", "code")

        stored = user_store.get("1001")
        assert stored.display_name == "Player1001"
        assert stored.provider_username == "alice-renamed"
        assert stored.hidden is True
        assert stored.has_guessed(1)
        assert stored.access_token == "access-1"
        assert user_store.get_by_access_token("old") is None

    def test_login_disabled_provider(self, session_manager, fake_provider):
        with pytest.raises(ConfigError):
            session_manager.login("microsoft", "code")
        assert fake_provider.requests == []

    def test_login_exchange_failure_stores_nothing(self, session_manager, user_store, fake_provider):
        fake_provider.token_status = 400

        with pytest.raises(TokenExchangeError):
            session_manager.login("discord", "code")

        assert user_store.list() == []

    def test_resolve_fresh_session(self, session_manager, make_user, fake_provider):
        make_user()

        session = session_manager.resolve_session("access-1")

        assert session.state is SessionState.FRESH
        assert session.user.id == "1001"
        assert session.refreshed_token is None
        assert fake_provider.requests == []

    def test_resolve_unknown_or_empty_bearer(self, session_manager, make_user):
        make_user()

        assert session_manager.resolve(None) is None
        assert session_manager.resolve("") is None
        assert session_manager.resolve("forged") is None

    def test_stale_session_refreshes_and_persists(
        self, session_manager, make_user, user_store, fake_provider, clock
    ):
        make_user(access_token="old-access", refresh_token="old-refresh", expires_in=600)
        clock.advance(minutes=20)
        fake_provider.token_body = {"access_token": "new-access", "expires_in": 3600}

        session = session_manager.resolve_session("old-access")

        assert session.state is SessionState.FRESH
        assert session.refreshed_token.access_token == "new-access"
        stored = user_store.get("1001")
        assert stored.access_token == "new-access"
        assert stored.refresh_token == "old-refresh"
        assert stored.access_token_expire_at == clock() + timedelta(seconds=3570)
        assert fake_provider.form_of(fake_provider.token_requests()[0])["refresh_token"] == "old-refresh"
        assert user_store.get_by_access_token("old-access") is None

    def test_refresh_failure_leaves_record_untouched(
        self, session_manager, make_user, user_store, fake_provider, clock
    ):
        before = make_user(expires_in=600)
        clock.advance(hours=1)
        fake_provider.token_status = 400

        session = session_manager.resolve_session("access-1")

        assert session.state is SessionState.REFRESH_FAILED
        assert session.authenticated is False
        assert user_store.get("1001") == before

    def test_stale_without_refresh_token_is_anonymous(
        self, session_manager, make_user, fake_provider, clock
    ):
        make_user(refresh_token=None, expires_in=600)
        clock.advance(hours=1)

        session = session_manager.resolve_session("access-1")

        assert session.state is SessionState.ANONYMOUS
        assert fake_provider.requests == []

    def test_old_bearer_after_refresh_is_rejected(self, session_manager, make_user, fake_provider, clock):
        make_user(expires_in=600)
        clock.advance(hours=1)
        fake_provider.token_body = {"access_token": "access-2", "expires_in": 3600}
        session_manager.resolve_session("access-1")

        assert session_manager.resolve("access-1") is None
        assert session_manager.resolve("access-2").id == "1001"
        assert len(fake_provider.token_requests()) == 1

    def test_logout(self, session_manager, make_user, user_store, clock):
        user = make_user()

        session_manager.logout(user)

        stored = user_store.get("1001")
        assert stored.access_token == ""
        assert stored.refresh_token is None
        assert stored.access_token_expire_at == clock()
        assert session_manager.resolve("access-1") is None

    def test_state_of(self, session_manager, make_user, clock):
        user = make_user(expires_in=600)

        assert session_manager.state_of(None) is SessionState.ANONYMOUS
        assert session_manager.state_of(user) is SessionState.FRESH
        clock.advance(hours=1)
        assert session_manager.state_of(user) is SessionState.STALE
