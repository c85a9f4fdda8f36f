"""
Configuration for the Battery Insights service.

Settings are read from environment variables (optionally via a .env file).
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/battery.sqlite"
DEFAULT_HISTORY_SNAPSHOT_LIMIT = 20
DEFAULT_INSIGHT_HISTORY_LIMIT = 10
DEFAULT_SIMULATION_VEHICLE_ID = "simulated-vehicle"
DEFAULT_REQUEST_ID_HEADER = "x-request-id"
DEFAULT_RATE_LIMIT = "120/minute"


def _parse_int(value: Optional[str], fallback: int) -> int:
    """Parse an integer environment value, falling back on empty or bad input."""
    if not value:
        return fallback
    try:
        return int(value, 10)
    except ValueError:
        return fallback


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API and its services."""
    database_url: str = DEFAULT_DATABASE_URL
    api_key: Optional[str] = None
    rules_config_path: Optional[str] = None
    history_snapshot_limit: int = DEFAULT_HISTORY_SNAPSHOT_LIMIT
    insight_history_limit: int = DEFAULT_INSIGHT_HISTORY_LIMIT
    simulation_default_vehicle_id: str = DEFAULT_SIMULATION_VEHICLE_ID
    request_id_header: str = DEFAULT_REQUEST_ID_HEADER
    rate_limit: str = DEFAULT_RATE_LIMIT
    log_level: str = "INFO"


def get_settings() -> Settings:
    """
    Build settings from the environment.

    Returns:
        Settings populated from environment variables, with defaults for
        anything missing.
    """
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL
    api_key = os.getenv("API_KEY") or None
    rules_config_path = os.getenv("RULES_CONFIG_PATH") or None

    return Settings(
        database_url=database_url,
        api_key=api_key,
        rules_config_path=rules_config_path,
        history_snapshot_limit=_parse_int(
            os.getenv("HISTORY_SNAPSHOT_LIMIT"), DEFAULT_HISTORY_SNAPSHOT_LIMIT
        ),
        insight_history_limit=_parse_int(
            os.getenv("INSIGHT_HISTORY_LIMIT"), DEFAULT_INSIGHT_HISTORY_LIMIT
        ),
        simulation_default_vehicle_id=(
            os.getenv("SIMULATION_DEFAULT_VEHICLE_ID") or DEFAULT_SIMULATION_VEHICLE_ID
        ),
        request_id_header=(
            os.getenv("REQUEST_ID_HEADER") or DEFAULT_REQUEST_ID_HEADER
        ).lower(),
        rate_limit=os.getenv("RATE_LIMIT", "").strip() or DEFAULT_RATE_LIMIT,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
