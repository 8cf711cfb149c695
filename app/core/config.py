"""
Application configuration using Pydantic BaseSettings,
supports both local .env files and AWS Secrets Manager.
"""

import io
import json
import logging
import os
from typing import Dict, List, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_logger = logging.getLogger("aot.core.config")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Advent of Time"
    app_version: str = "2025.1.0"
    debug: bool = False
    hostname: str = Field(default="http://localhost:8000")

    # Persistence
    user_store_backend: str = Field(default="json")
    users_file: str = Field(default="data/users.json")
    database_url: str = Field(default="sqlite:///./data/users.db")
    pictures_file: str = Field(default="data/pictures.json")
    pictures_dir: str = Field(default="data")

    # AWS Configuration
    aws_region: str = Field(default="eu-west-3")

    # CORS
    cors_origins: Union[str, List[str]] = Field(default=["*"])

    @field_validator("cors_origins", mode="after")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("user_store_backend", mode="after")
    @classmethod
    def check_user_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "sql"):
            raise ValueError(f"unsupported user store backend: {v}")
        return v

    # Logging
    log_level: str = Field(default="INFO")

    # Outbound HTTP (token exchange and profile fetch)
    http_timeout_seconds: float = Field(default=10.0)

    # Scoring curve
    score_max_reward: int = Field(default=25)
    score_divider: int = Field(default=720)
    score_exponent: float = Field(default=0.5)

    # Discord OAuth2
    discord_enabled: bool = Field(default=True)
    discord_client_id: str = Field(default="")
    discord_client_secret: str = Field(default="")
    discord_redirect_uri: str = Field(default="http://localhost:8000/auth/oauth2/discord/callback")
    discord_scope: str = Field(default="identify")
    discord_authorize_url: str = Field(default="https://discord.com/oauth2/authorize")
    discord_token_url: str = Field(default="https://discord.com/api/oauth2/token")
    discord_user_info_url: str = Field(default="https://discord.com/api/v10/users/@me")

    # Microsoft OAuth2
    microsoft_enabled: bool = Field(default=False)
    microsoft_client_id: str = Field(default="")
    microsoft_client_secret: str = Field(default="")
    microsoft_redirect_uri: str = Field(default="http://localhost:8000/auth/oauth2/microsoft/callback")
    microsoft_scope: str = Field(default="User.Read offline_access")
    microsoft_authorize_url: str = Field(
        default="https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
    )
    microsoft_token_url: str = Field(
        default="https://login.microsoftonline.com/common/oauth2/v2.0/token"
    )
    microsoft_user_info_url: str = Field(default="https://graph.microsoft.com/v1.0/me")

    # GitHub OAuth2
    github_enabled: bool = Field(default=False)
    github_client_id: str = Field(default="")
    github_client_secret: str = Field(default="")
    github_redirect_uri: str = Field(default="http://localhost:8000/auth/oauth2/github/callback")
    github_scope: str = Field(default="read:user")
    github_authorize_url: str = Field(default="https://github.com/login/oauth/authorize")
    github_token_url: str = Field(default="https://github.com/login/oauth/access_token")
    github_user_info_url: str = Field(default="https://api.github.com/user")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        validate_assignment = True

    def load_aws_secrets(self, secret_name: str) -> List[str]:
        """Overlay settings with a Secrets Manager entry; return the keys applied.

        Unknown keys are exported to the environment. Failures leave the
        current settings in place.
        """
        try:
            client = boto3.client("secretsmanager", region_name=self.aws_region)
            secret_string = client.get_secret_value(SecretId=secret_name).get("SecretString")
        except (BotoCoreError, ClientError) as e:
            _logger.error(f"Error loading secrets from AWS: {e}")
            return []

        if not secret_string:
            _logger.warning(f"No secret string found for {secret_name}")
            return []

        applied = []
        for key, value in _parse_secret_string(secret_string).items():
            field = key.lower()
            if field in type(self).model_fields:
                setattr(self, field, value)
                applied.append(field)
            else:
                os.environ[key] = value

        _logger.info(f"AWS secrets loaded from {secret_name}: {', '.join(applied) or 'none'}")
        return applied


def _parse_secret_string(secret_string: str) -> Dict[str, str]:
    """Secrets are stored either as a JSON object or in ``.env`` format."""
    try:
        parsed = json.loads(secret_string)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return {k: str(v) for k, v in parsed.items()}

    data = {}
    for line in io.StringIO(secret_string):
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, value = line.split("=", 1)
            data[key.strip()] = value.strip()
    return data


# Global settings instance
settings = Settings()
