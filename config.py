"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

AppSettings is built once at startup and handed to the components that need
it; nothing below the app factory reads the environment directly.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "identity"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional: without Redis the ephemeral store falls back to process memory
    redis_uri: Optional[str] = None


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "identity"
    jwt_audience: str = "identity.api"

    # One secret per token class so a leaked secret cannot forge another class
    jwt_access_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_verification_secret: str = ""

    access_token_ttl_seconds: int = 900
    refresh_token_ttl_seconds: int = 604800
    verification_token_ttl_seconds: int = 86400


class RecoverySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    otp_ttl_seconds: int = 600
    otp_max_attempts: int = 3
    rate_limit_seconds: int = 120
    reset_token_ttl_seconds: int = 600

    @property
    def otp_ttl_minutes(self) -> int:
        return self.otp_ttl_seconds // 60


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    zepto_api_token: str = ""
    zepto_from_email: str = "noreply@example.com"
    zepto_from_name: str = "Identity"
    send_timeout_seconds: float = 5.0


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    # Unset: "json" in production, "console" elsewhere
    log_format: Optional[str] = None


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "identity"
    app_url: str = "http://localhost:8000"
    # Base URL for links embedded in emails (the frontend)
    client_url: str = "http://localhost:3000"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # False collapses "unknown email" answers from login and forgot-password
    reveal_account_existence: bool = True

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    jwt: Optional[JWTSettings] = None
    recovery: Optional[RecoverySettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.recovery is None:
            self.recovery = RecoverySettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
