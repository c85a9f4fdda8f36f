"""
Schemas for telemetry ingestion.

This module defines the Pydantic model for the POST /telemetry body and its
conversion into the domain TelemetrySample.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from battery_insights.models import TelemetrySample


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_timestamp(value: datetime) -> datetime:
    """Return the instant as a timezone-aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_vehicle_id(value: str) -> str:
    """Strip surrounding whitespace and reject blank vehicle ids."""
    value = value.strip()
    if not value:
        raise ValueError("vehicleId is required")
    return value


class TelemetryPayload(CamelModel):
    """Request body for a single telemetry reading."""
    vehicle_id: str = Field(..., min_length=1, description="Vehicle identifier")
    timestamp: datetime = Field(..., description="ISO-8601 instant of the reading")
    battery_percentage: float = Field(..., ge=0, le=100, description="State of charge in percent")
    speed_kmph: float = Field(..., ge=0, description="Vehicle speed in km/h")
    engine_on: bool
    charging: bool
    ambient_temperature: Optional[float] = Field(
        None, allow_inf_nan=False, description="Ambient temperature in °C"
    )
    odometer_km: Optional[float] = Field(None, ge=0, description="Odometer reading in km")

    @field_validator("vehicle_id")
    @classmethod
    def strip_vehicle_id(cls, value: str) -> str:
        return normalize_vehicle_id(value)

    @field_validator("timestamp")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return normalize_timestamp(value)

    def to_sample(self) -> TelemetrySample:
        return TelemetrySample(
            vehicle_id=self.vehicle_id,
            timestamp=self.timestamp,
            battery_percentage=self.battery_percentage,
            speed_kmph=self.speed_kmph,
            engine_on=self.engine_on,
            charging=self.charging,
            ambient_temperature=self.ambient_temperature,
            odometer_km=self.odometer_km,
        )
