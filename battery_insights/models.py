"""
Domain models for battery health evaluation.

These are plain frozen dataclasses shared by the context builder, the rule
engine and the alert/tip projector. API payloads live in battery_insights.schemas.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from battery_insights.services.rules_config import HealthStatus, RuleId


@dataclass(frozen=True)
class TelemetrySample:
    """One telemetry reading for a vehicle at a (timezone-aware, UTC) instant."""
    vehicle_id: str
    timestamp: datetime
    battery_percentage: float
    speed_kmph: float
    engine_on: bool
    charging: bool
    ambient_temperature: Optional[float] = None
    odometer_km: Optional[float] = None

    @property
    def is_idle(self) -> bool:
        return self.engine_on and self.speed_kmph == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicleId": self.vehicle_id,
            "timestamp": self.timestamp,
            "batteryPercentage": self.battery_percentage,
            "speedKmph": self.speed_kmph,
            "engineOn": self.engine_on,
            "charging": self.charging,
            "ambientTemperature": self.ambient_temperature,
            "odometerKm": self.odometer_km,
        }

    def to_history_entry(self) -> "SnapshotHistoryEntry":
        return SnapshotHistoryEntry(
            timestamp=self.timestamp,
            battery_percentage=self.battery_percentage,
            speed_kmph=self.speed_kmph,
            engine_on=self.engine_on,
            charging=self.charging,
        )


@dataclass(frozen=True)
class SnapshotHistoryEntry:
    """Prior sample reduced to the fields needed for run reconstruction."""
    timestamp: datetime
    battery_percentage: float
    speed_kmph: float
    engine_on: bool
    charging: bool

    @property
    def is_idle(self) -> bool:
        return self.engine_on and self.speed_kmph == 0


@dataclass(frozen=True)
class RecentSnapshot:
    timestamp: datetime
    battery_percentage: float


@dataclass(frozen=True)
class EvaluationContext:
    """A sample plus the temporal context derived from its history."""
    sample: TelemetrySample
    idle_duration_minutes: float = 0.0
    charging_duration_minutes: float = 0.0
    charge_delta_during_charge: float = 0.0
    recent_snapshots: Tuple[RecentSnapshot, ...] = ()


@dataclass(frozen=True)
class RuleImpact:
    id: RuleId
    deduction: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id.value, "deduction": self.deduction, "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class BatteryHealthEvaluation:
    """
    Result of one evaluation.

    rule_impacts is in evaluation order, not severity order.
    """
    base_score: float
    score: float
    status: HealthStatus
    rule_impacts: Tuple[RuleImpact, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseScore": self.base_score,
            "score": self.score,
            "status": self.status.value,
            "ruleImpacts": [impact.to_dict() for impact in self.rule_impacts],
        }
