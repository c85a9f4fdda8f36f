"""
API response schemas for the Battery Insights service.

This module defines the Pydantic models for API responses. Field names are
snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from battery_insights.schemas.telemetry import CamelModel

Status = Literal["GOOD", "MODERATE", "POOR"]
Severity = Literal["info", "warning", "critical"]


class RuleImpactOut(CamelModel):
    id: str
    deduction: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AlertOut(CamelModel):
    id: str
    title: str
    message: str
    severity: Severity
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DriverTipOut(CamelModel):
    id: str
    message: str


class TelemetryOut(CamelModel):
    vehicle_id: str
    timestamp: datetime
    battery_percentage: float
    speed_kmph: float
    engine_on: bool
    charging: bool
    ambient_temperature: Optional[float] = None
    odometer_km: Optional[float] = None


class EvaluationOut(CamelModel):
    base_score: float
    score: float
    status: Status
    rule_impacts: List[RuleImpactOut]


class TelemetryIngestData(CamelModel):
    vehicle_id: str
    score: float
    status: Status
    base_score: float
    alerts: List[AlertOut]
    tips: List[DriverTipOut]
    rule_impacts: List[RuleImpactOut]
    telemetry: TelemetryOut


class TelemetryIngestResponse(CamelModel):
    """Response model for POST /telemetry."""
    data: TelemetryIngestData


class InsightHistoryEntryOut(CamelModel):
    id: int
    created_at: datetime
    health_score: float
    status: str
    alerts: Any = None
    tips: Any = None


class VehicleInsightsOut(CamelModel):
    vehicle_id: str
    score: float
    status: Status
    telemetry: TelemetryOut
    evaluation: EvaluationOut
    alerts: List[AlertOut]
    tips: List[DriverTipOut]
    history: List[InsightHistoryEntryOut]
    last_seen_at: datetime


class VehicleInsightsResponse(CamelModel):
    """Response model for GET /vehicles/{vehicle_id}/insights."""
    data: VehicleInsightsOut


class ScenarioSampleOut(CamelModel):
    minute_offset: float
    battery_percentage: float
    speed_kmph: float
    engine_on: bool
    charging: bool
    ambient_temperature: Optional[float] = None
    odometer_km: Optional[float] = None


class ScenarioOut(CamelModel):
    name: str
    description: str
    samples: List[ScenarioSampleOut]


class ScenarioListResponse(CamelModel):
    """Response model for GET /simulation/scenarios."""
    data: List[ScenarioOut]


class BatteryPointOut(CamelModel):
    battery_percentage: float
    timestamp: datetime


class SimulationOutcomeOut(BatteryPointOut):
    score: float
    status: Status


class SimulationResultOut(CamelModel):
    vehicle_id: str
    scenario: ScenarioOut
    persisted: bool
    samples: List[TelemetryOut]
    before: BatteryPointOut
    after: SimulationOutcomeOut
    alerts: List[AlertOut]
    tips: List[DriverTipOut]


class SimulationResponse(CamelModel):
    """Response model for POST /simulation/drive."""
    data: SimulationResultOut


class DatabaseHealthOut(CamelModel):
    connected: bool
    backend: str
    error: Optional[str] = None


class HealthResponse(CamelModel):
    status: Literal["ok", "degraded"]
    database: DatabaseHealthOut
