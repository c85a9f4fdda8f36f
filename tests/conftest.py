"""
Test configuration and fixtures for the Battery Insights service.

This module provides common test fixtures for both unit and integration tests.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from battery_insights.config import Settings
from battery_insights.models import SnapshotHistoryEntry, TelemetrySample
from battery_insights.services.db_operations import TelemetryStore
from battery_insights.services.rules_config import load_rules

TEST_API_KEY = "test-api-key"
T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    """Fixed instant that samples are built around."""
    return T0


@pytest.fixture(scope="session")
def rules():
    """Default rule parameters from the packaged rules.yaml."""
    return load_rules()


@pytest.fixture
def make_sample():
    """Factory for telemetry samples at a minute offset from T0."""
    def _make(
        minutes: float = 0,
        battery: float = 80,
        speed: float = 0,
        engine_on: bool = False,
        charging: bool = False,
        ambient_temperature=None,
        vehicle_id: str = "vehicle-1",
    ) -> TelemetrySample:
        return TelemetrySample(
            vehicle_id=vehicle_id,
            timestamp=T0 + timedelta(minutes=minutes),
            battery_percentage=battery,
            speed_kmph=speed,
            engine_on=engine_on,
            charging=charging,
            ambient_temperature=ambient_temperature,
        )
    return _make


@pytest.fixture
def make_entry():
    """Factory for snapshot history entries at a minute offset from T0."""
    def _make(
        minutes: float,
        battery: float = 80,
        speed: float = 0,
        engine_on: bool = False,
        charging: bool = False,
    ) -> SnapshotHistoryEntry:
        return SnapshotHistoryEntry(
            timestamp=T0 + timedelta(minutes=minutes),
            battery_percentage=battery,
            speed_kmph=speed,
            engine_on=engine_on,
            charging=charging,
        )
    return _make


@pytest.fixture
def database_url(tmp_path):
    """SQLite database file private to one test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'battery.sqlite'}"


@pytest.fixture
async def store(database_url):
    """Telemetry store with its tables created."""
    telemetry_store = TelemetryStore(database_url)
    await telemetry_store.create_tables()
    yield telemetry_store
    await telemetry_store.dispose()


@pytest.fixture
def test_settings(database_url):
    return Settings(database_url=database_url, api_key=TEST_API_KEY, log_level="WARNING")


@pytest.fixture
def client(test_settings):
    """Test client running the app lifespan against a temporary database."""
    from battery_insights.main import create_app

    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"x-api-key": TEST_API_KEY}
