"""
Database operations for the Battery Insights service.

This module provides:
1. The table definitions for vehicles, telemetry snapshots and the insight log
2. TelemetryStore, an async SQLAlchemy wrapper with the queries the services need
3. A lightweight health check for the /health endpoint
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from battery_insights.models import TelemetrySample

logger = logging.getLogger(__name__)

metadata = sa.MetaData()

vehicles_table = sa.Table(
    "vehicles",
    metadata,
    sa.Column("vehicle_id", sa.String(128), primary_key=True),
    sa.Column("last_seen_at", sa.DateTime, nullable=True),
    sa.Column("last_health_score", sa.Float, nullable=True),
    sa.Column("metadata_json", sa.Text, nullable=True),
    sa.Column("created_at", sa.DateTime, nullable=False),
    sa.Column("updated_at", sa.DateTime, nullable=False),
)

snapshots_table = sa.Table(
    "telemetry_snapshots",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("vehicle_id", sa.String(128), nullable=False),
    sa.Column("snapshot_timestamp", sa.DateTime, nullable=False),
    sa.Column("battery_percentage", sa.Float, nullable=False),
    sa.Column("speed_kmph", sa.Float, nullable=False),
    sa.Column("engine_on", sa.Boolean, nullable=False),
    sa.Column("charging", sa.Boolean, nullable=False),
    sa.Column("ambient_temperature", sa.Float, nullable=True),
    sa.Column("odometer_km", sa.Float, nullable=True),
    sa.Column("created_at", sa.DateTime, nullable=False),
    sa.Index("ix_telemetry_snapshots_vehicle_ts", "vehicle_id", "snapshot_timestamp"),
)

insights_table = sa.Table(
    "insights_log",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("vehicle_id", sa.String(128), nullable=False, index=True),
    sa.Column("health_score", sa.Float, nullable=False),
    sa.Column("status", sa.String(16), nullable=False),
    sa.Column("alerts_json", sa.Text, nullable=False),
    sa.Column("tips_json", sa.Text, nullable=False),
    sa.Column("created_at", sa.DateTime, nullable=False),
)


def _to_db_time(value: datetime) -> datetime:
    """Store instants as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return _to_db_time(datetime.now(timezone.utc))


@dataclass(frozen=True)
class VehicleRecord:
    vehicle_id: str
    last_seen_at: Optional[datetime]
    last_health_score: Optional[float]
    metadata: Optional[Dict[str, Any]]


@dataclass(frozen=True)
class InsightLogRecord:
    id: int
    vehicle_id: str
    created_at: datetime
    health_score: float
    status: str
    alerts: Any
    tips: Any


def _row_to_sample(row) -> TelemetrySample:
    mapping = row._mapping
    return TelemetrySample(
        vehicle_id=mapping["vehicle_id"],
        timestamp=_from_db_time(mapping["snapshot_timestamp"]),
        battery_percentage=mapping["battery_percentage"],
        speed_kmph=mapping["speed_kmph"],
        engine_on=bool(mapping["engine_on"]),
        charging=bool(mapping["charging"]),
        ambient_temperature=mapping["ambient_temperature"],
        odometer_km=mapping["odometer_km"],
    )


def ensure_database_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


class TelemetryStore:
    """
    Persistence for snapshots, vehicles and insight logs.

    Owns its async engine; create one per application and dispose it on shutdown.
    """

    def __init__(self, database_url: str, engine: Optional[AsyncEngine] = None):
        self.database_url = database_url
        if engine is None:
            ensure_database_directory(database_url)
            engine = create_async_engine(database_url)
        self.engine = engine

    @property
    def backend(self) -> str:
        return self.engine.url.get_backend_name()

    async def create_tables(self) -> None:
        """Create any missing tables and indexes."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database ready (%s)", self.backend)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection closed")

    async def check_health(self) -> Dict[str, Any]:
        """
        Check that the database answers a trivial query.

        Returns:
            Dict with 'connected', 'backend' and, on failure, 'error'
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(sa.text("SELECT 1"))
            return {"connected": True, "backend": self.backend}
        except Exception as e:
            logger.error("Database health check failed: %s", e)
            return {"connected": False, "backend": self.backend, "error": str(e)}

    async def insert_snapshot(self, sample: TelemetrySample) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(
                snapshots_table.insert().values(
                    vehicle_id=sample.vehicle_id,
                    snapshot_timestamp=_to_db_time(sample.timestamp),
                    battery_percentage=sample.battery_percentage,
                    speed_kmph=sample.speed_kmph,
                    engine_on=sample.engine_on,
                    charging=sample.charging,
                    ambient_temperature=sample.ambient_temperature,
                    odometer_km=sample.odometer_km,
                    created_at=_utcnow(),
                )
            )

    async def get_recent_snapshots(self, vehicle_id: str, limit: int) -> List[TelemetrySample]:
        """
        Most recent snapshots for a vehicle, newest first.

        Args:
            vehicle_id: Vehicle to look up
            limit: Maximum number of snapshots

        Returns:
            Up to `limit` snapshots ordered by timestamp descending
        """
        query = (
            sa.select(snapshots_table)
            .where(snapshots_table.c.vehicle_id == vehicle_id)
            .order_by(snapshots_table.c.snapshot_timestamp.desc(), snapshots_table.c.id.desc())
            .limit(limit)
        )
        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            return [_row_to_sample(row) for row in result.fetchall()]

    async def get_latest_snapshot(self, vehicle_id: str) -> Optional[TelemetrySample]:
        snapshots = await self.get_recent_snapshots(vehicle_id, 1)
        return snapshots[0] if snapshots else None

    async def upsert_vehicle(
        self,
        vehicle_id: str,
        last_seen_at: datetime,
        last_health_score: Optional[float],
        vehicle_metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Insert the vehicle or refresh its last-seen time, score and metadata.

        Runs as a single INSERT ... ON CONFLICT statement, so concurrent first
        posts for the same vehicle cannot collide on the primary key.
        """
        now = _utcnow()
        values = {
            "last_seen_at": _to_db_time(last_seen_at),
            "last_health_score": last_health_score,
            "metadata_json": json.dumps(vehicle_metadata) if vehicle_metadata else None,
            "updated_at": now,
        }
        statement = self._insert(vehicles_table).values(vehicle_id=vehicle_id, created_at=now, **values)
        statement = statement.on_conflict_do_update(
            index_elements=[vehicles_table.c.vehicle_id],
            set_={name: statement.excluded[name] for name in values},
        )
        async with self.engine.begin() as conn:
            await conn.execute(statement)

    def _insert(self, table: sa.Table):
        """Dialect-specific INSERT that supports ON CONFLICT."""
        if self.backend == "postgresql":
            return postgresql.insert(table)
        if self.backend == "sqlite":
            return sqlite.insert(table)
        raise NotImplementedError(f"Upserts are not supported for the {self.backend} backend")

    async def get_vehicle(self, vehicle_id: str) -> Optional[VehicleRecord]:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                sa.select(vehicles_table).where(vehicles_table.c.vehicle_id == vehicle_id)
            )
            row = result.first()
        if row is None:
            return None
        mapping = row._mapping
        return VehicleRecord(
            vehicle_id=mapping["vehicle_id"],
            last_seen_at=_from_db_time(mapping["last_seen_at"]),
            last_health_score=mapping["last_health_score"],
            metadata=json.loads(mapping["metadata_json"]) if mapping["metadata_json"] else None,
        )

    async def insert_insight_log(
        self,
        vehicle_id: str,
        health_score: float,
        status: str,
        alerts: Any,
        tips: Any,
    ) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(
                insights_table.insert().values(
                    vehicle_id=vehicle_id,
                    health_score=health_score,
                    status=status,
                    alerts_json=json.dumps(alerts),
                    tips_json=json.dumps(tips),
                    created_at=_utcnow(),
                )
            )

    async def get_recent_insights(self, vehicle_id: str, limit: int) -> List[InsightLogRecord]:
        """Insight log entries for a vehicle, newest first."""
        query = (
            sa.select(insights_table)
            .where(insights_table.c.vehicle_id == vehicle_id)
            .order_by(insights_table.c.created_at.desc(), insights_table.c.id.desc())
            .limit(limit)
        )
        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            rows = result.fetchall()

        return [
            InsightLogRecord(
                id=row._mapping["id"],
                vehicle_id=row._mapping["vehicle_id"],
                created_at=_from_db_time(row._mapping["created_at"]),
                health_score=row._mapping["health_score"],
                status=row._mapping["status"],
                alerts=json.loads(row._mapping["alerts_json"]),
                tips=json.loads(row._mapping["tips_json"]),
            )
            for row in rows
        ]
