"""
Schemas for simulated drives.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from battery_insights.schemas.telemetry import CamelModel, normalize_timestamp, normalize_vehicle_id

ScenarioName = Literal["urban", "highway", "mixed"]


class SimulationRequest(CamelModel):
    """Request body for POST /simulation/drive."""
    scenario: ScenarioName
    vehicle_id: Optional[str] = Field(None, min_length=1)
    persist: bool = False
    base_timestamp: Optional[datetime] = Field(
        None, description="ISO-8601 start of the drive; defaults to 2024-01-01T08:00:00Z"
    )

    @field_validator("vehicle_id")
    @classmethod
    def strip_vehicle_id(cls, value: Optional[str]) -> Optional[str]:
        return normalize_vehicle_id(value) if value is not None else None

    @field_validator("base_timestamp")
    @classmethod
    def to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return normalize_timestamp(value) if value is not None else None
