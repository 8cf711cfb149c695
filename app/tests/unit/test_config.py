"""
Unit tests for configuration.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import ConfigError
from app.core.oauth import ProviderRegistry, authorize_url
from app.models.oauth import OAuthProvider
from app.services.scoring import ScoreConfig


class TestSettings:
    """Test cases for Settings class."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        test_settings = Settings(_env_file=None)

        assert test_settings.app_name == "Advent of Time"
        assert test_settings.debug is False
        assert test_settings.user_store_backend == "json"
        assert test_settings.users_file == "data/users.json"
        assert test_settings.cors_origins == ["*"]
        assert test_settings.score_max_reward == 25
        assert test_settings.score_divider == 720
        assert test_settings.score_exponent == 0.5
        assert test_settings.discord_enabled is True
        assert test_settings.microsoft_enabled is False
        assert test_settings.github_enabled is False

    def test_environment_variable_override(self):
        """Test that environment variables can override default values."""
        with patch.dict(
            "os.environ",
            {
                "USER_STORE_BACKEND": "SQL",
                "DATABASE_URL": "sqlite:///./test.db",
                "GITHUB_ENABLED": "true",
                "SCORE_DIVIDER": "600",
            },
        ):
            test_settings = Settings(_env_file=None)

        assert test_settings.user_store_backend == "sql"
        assert test_settings.database_url == "sqlite:///./test.db"
        assert test_settings.github_enabled is True
        assert test_settings.score_divider == 600

    def test_unknown_backend_rejected(self):
        with patch.dict("os.environ", {"USER_STORE_BACKEND": "redis"}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_cors_origins_single_string(self):
        test_settings = Settings(_env_file=None, cors_origins="https://aot.example")
        assert test_settings.cors_origins == ["https://aot.example"]


class TestAwsSecrets:
    """Secrets Manager overlay."""

    def _client_returning(self, secret_string):
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretString": secret_string}
        return client

    @patch("app.core.config.boto3.client")
    def test_json_secret_overrides_fields(self, mock_client):
        mock_client.return_value = self._client_returning(
            json.dumps({"DISCORD_CLIENT_SECRET": "s3cret", "GITHUB_ENABLED": "true"})
        )
        test_settings = Settings(_env_file=None)

        applied = test_settings.load_aws_secrets("aot-secrets")

        assert sorted(applied) == ["discord_client_secret", "github_enabled"]
        assert test_settings.discord_client_secret == "s3cret"
        assert test_settings.github_enabled is True

    @patch("app.core.config.boto3.client")
    def test_env_format_secret(self, mock_client):
        mock_client.return_value = self._client_returning(
            "# comment\nDISCORD_CLIENT_ID=abc\n\nAOT_EXTRA_FLAG=1\n"
        )
        test_settings = Settings(_env_file=None)

        with patch.dict("os.environ", {}, clear=False) as environ:
            applied = test_settings.load_aws_secrets("aot-secrets")
            assert environ["AOT_EXTRA_FLAG"] == "1"

        assert applied == ["discord_client_id"]
        assert test_settings.discord_client_id == "abc"

    @patch("app.core.config.boto3.client")
    def test_client_error_keeps_settings(self, mock_client):
        client = MagicMock()
        client.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}},
            "GetSecretValue",
        )
        mock_client.return_value = client
        test_settings = Settings(_env_file=None, discord_client_id="local")

        assert test_settings.load_aws_secrets("aot-secrets") == []
        assert test_settings.discord_client_id == "local"


class TestProviderRegistry:
    """Provider lookup and authorization URLs."""

    def test_from_settings_enabled_providers(self):
        test_settings = Settings(_env_file=None, github_enabled=True)
        registry = ProviderRegistry.from_settings(test_settings)

        assert registry.enabled_providers() == [OAuthProvider.DISCORD, OAuthProvider.GITHUB]
        assert registry.config_for("github").token_url == "https://github.com/login/oauth/access_token"

    def test_disabled_provider_is_unknown(self, registry):
        with pytest.raises(ConfigError):
            registry.config_for("microsoft")

    def test_unknown_provider(self, registry):
        with pytest.raises(ConfigError) as exc_info:
            registry.config_for("myspace")
        assert exc_info.value.provider == "myspace"

    def test_authorize_url(self, registry):
        url = authorize_url(registry.config_for("discord"))

        assert url.startswith("https://discord.test/oauth2/authorize?")
        assert "response_type=code" in url
        assert "client_id=discord-client" in url
        assert "scope=identify" in url
        assert "redirect_uri=http%3A%2F%2Ftestserver%2Fauth%2Foauth2%2Fdiscord%2Fcallback" in url


class TestScoreConfig:
    def test_from_settings(self):
        config = ScoreConfig.from_settings(Settings(_env_file=None, score_max_reward=10))
        assert config == ScoreConfig(max_reward=10, divider=720, exponent=0.5)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_reward": -1, "divider": 720, "exponent": 0.5},
            {"max_reward": 25, "divider": 0, "exponent": 0.5},
            {"max_reward": 25, "divider": 720, "exponent": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ScoreConfig(**kwargs)
