"""
Unit test configuration.

pydantic-settings must not see the project's real .env file or the
developer's shell: dotenv loading is patched out and the service's own
variables are cleared. Tests control config exclusively through
monkeypatch.setenv().
"""

import pytest

_SERVICE_ENV_VARS = (
    "ENV",
    "MONGODB_URI",
    "DB_NAME",
    "REDIS_URI",
    "CLIENT_URL",
    "CORS_ORIGINS",
    "REVEAL_ACCOUNT_EXISTENCE",
    "JWT_ISSUER",
    "JWT_AUDIENCE",
    "JWT_ACCESS_SECRET",
    "JWT_REFRESH_SECRET",
    "JWT_VERIFICATION_SECRET",
    "OTP_TTL_SECONDS",
    "OTP_MAX_ATTEMPTS",
    "RATE_LIMIT_SECONDS",
    "RESET_TOKEN_TTL_SECONDS",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch):
    """Prevent pydantic-settings from loading .env files or stray env vars."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in _SERVICE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
