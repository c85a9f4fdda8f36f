"""
Database setup script for the Battery Insights service.

Creates the vehicles, telemetry_snapshots and insights_log tables.

Database connection is configured with the DATABASE_URL environment variable
(default: sqlite+aiosqlite:///./data/battery.sqlite).
"""
import asyncio
import sys

from battery_insights.config import get_settings
from battery_insights.logging_config import setup_logging
from battery_insights.services.db_operations import TelemetryStore


async def init_db() -> None:
    settings = get_settings()
    store = TelemetryStore(settings.database_url)
    try:
        await store.create_tables()
    finally:
        await store.dispose()


if __name__ == "__main__":
    logger = setup_logging(get_settings().log_level)
    try:
        asyncio.run(init_db())
        logger.info("Tables created")
    except Exception as e:
        logger.error("Database setup failed: %s", e)
        sys.exit(1)
