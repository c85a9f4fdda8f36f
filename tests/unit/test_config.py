"""
Unit tests for environment-based settings.
"""
import pytest

from battery_insights.config import Settings, get_settings

ENV_VARS = [
    "DATABASE_URL",
    "API_KEY",
    "RULES_CONFIG_PATH",
    "HISTORY_SNAPSHOT_LIMIT",
    "INSIGHT_HISTORY_LIMIT",
    "SIMULATION_DEFAULT_VEHICLE_ID",
    "REQUEST_ID_HEADER",
    "RATE_LIMIT",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    assert get_settings() == Settings()


def test_values_from_environment(clean_env):
    clean_env.setenv("DATABASE_URL", "sqlite+aiosqlite:///tmp/other.sqlite")
    clean_env.setenv("API_KEY", "secret")
    clean_env.setenv("HISTORY_SNAPSHOT_LIMIT", "50")
    clean_env.setenv("REQUEST_ID_HEADER", "X-Correlation-Id")
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("RATE_LIMIT", "30/minute")

    settings = get_settings()

    assert settings.rate_limit == "30/minute"
    assert settings.database_url == "sqlite+aiosqlite:///tmp/other.sqlite"
    assert settings.api_key == "secret"
    assert settings.history_snapshot_limit == 50
    assert settings.request_id_header == "x-correlation-id"
    assert settings.log_level == "DEBUG"


def test_unparseable_limits_fall_back(clean_env):
    """Test that bad integer values keep the defaults instead of failing startup."""
    clean_env.setenv("HISTORY_SNAPSHOT_LIMIT", "twenty")
    clean_env.setenv("INSIGHT_HISTORY_LIMIT", "")

    settings = get_settings()

    assert settings.history_snapshot_limit == 20
    assert settings.insight_history_limit == 10


def test_empty_api_key_is_unset(clean_env):
    clean_env.setenv("API_KEY", "")

    assert get_settings().api_key is None
