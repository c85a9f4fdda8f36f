"""
Simulated drives.

This module provides:
1. Loading of the canned drive scenarios from scenarios.yaml
2. Expansion of a scenario into timestamped telemetry samples
3. simulate_drive, which evaluates a scenario in memory or records it sample by sample
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from battery_insights.models import TelemetrySample
from battery_insights.services.alerts import build_alerts_from_impacts, build_driver_tips_from_impacts
from battery_insights.services.battery_health import evaluate_battery_health
from battery_insights.services.context_builder import build_evaluation_context
from battery_insights.services.db_operations import TelemetryStore
from battery_insights.services.error_handler import bad_request_error
from battery_insights.services.rules_config import RuleParameters
from battery_insights.services.telemetry_recorder import (
    HISTORY_SNAPSHOT_LIMIT,
    TelemetryRecordResult,
    record_telemetry,
)

logger = logging.getLogger(__name__)

DEFAULT_SCENARIOS_PATH = Path(__file__).parent / "scenarios.yaml"
DEFAULT_SIMULATION_TIMESTAMP = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
DEFAULT_SIMULATION_VEHICLE_ID = "simulated-vehicle"


@dataclass(frozen=True)
class ScenarioSample:
    minute_offset: float
    battery_percentage: float
    speed_kmph: float
    engine_on: bool
    charging: bool
    ambient_temperature: Optional[float] = None
    odometer_km: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minuteOffset": self.minute_offset,
            "batteryPercentage": self.battery_percentage,
            "speedKmph": self.speed_kmph,
            "engineOn": self.engine_on,
            "charging": self.charging,
            "ambientTemperature": self.ambient_temperature,
            "odometerKm": self.odometer_km,
        }


@dataclass(frozen=True)
class SimulationScenario:
    name: str
    description: str
    samples: Tuple[ScenarioSample, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "samples": [sample.to_dict() for sample in self.samples],
        }


def load_scenarios(path: Optional[Union[str, Path]] = None) -> Dict[str, SimulationScenario]:
    """
    Load simulation scenarios keyed by name, in file order.

    Raises:
        ValueError: If the file is missing, not valid YAML or lacks 'scenarios'
    """
    filepath = Path(path) if path else DEFAULT_SCENARIOS_PATH
    try:
        with open(filepath, "r", encoding="utf-8") as file:
            config = yaml.safe_load(file)
    except FileNotFoundError:
        raise ValueError(f"Configuration file not found: {filepath}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {filepath}: {str(e)}")

    if not config or "scenarios" not in config:
        raise ValueError(f"Missing required key 'scenarios' in {filepath}")

    scenarios = {}
    for raw in config["scenarios"]:
        try:
            samples = tuple(ScenarioSample(**sample) for sample in raw.get("samples", []))
            scenarios[raw["name"]] = SimulationScenario(
                name=raw["name"],
                description=raw.get("description", ""),
                samples=samples,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid scenario in {filepath}: {str(e)}")
    return scenarios


def build_telemetry_sequence(
    scenario: SimulationScenario,
    vehicle_id: str,
    base_timestamp: datetime,
) -> List[TelemetrySample]:
    """Turn a scenario's minute offsets into timestamped samples for one vehicle."""
    return [
        TelemetrySample(
            vehicle_id=vehicle_id,
            timestamp=base_timestamp + timedelta(minutes=sample.minute_offset),
            battery_percentage=sample.battery_percentage,
            speed_kmph=sample.speed_kmph,
            engine_on=sample.engine_on,
            charging=sample.charging,
            ambient_temperature=sample.ambient_temperature,
            odometer_km=sample.odometer_km,
        )
        for sample in scenario.samples
    ]


def _evaluate_in_memory(samples: List[TelemetrySample], rules: RuleParameters) -> TelemetryRecordResult:
    """Evaluate the last sample with the preceding ones as its history."""
    last = samples[-1]
    history = [sample.to_history_entry() for sample in samples[:-1]]
    context = build_evaluation_context(last, history)
    evaluation = evaluate_battery_health(context, rules)
    return TelemetryRecordResult(
        sample=last,
        evaluation=evaluation,
        alerts=build_alerts_from_impacts(evaluation.rule_impacts, rules),
        tips=build_driver_tips_from_impacts(evaluation.rule_impacts, rules),
    )


async def simulate_drive(
    scenarios: Dict[str, SimulationScenario],
    scenario_name: str,
    rules: RuleParameters,
    store: Optional[TelemetryStore] = None,
    vehicle_id: Optional[str] = None,
    persist: bool = False,
    base_timestamp: Optional[datetime] = None,
    default_vehicle_id: str = DEFAULT_SIMULATION_VEHICLE_ID,
    history_limit: int = HISTORY_SNAPSHOT_LIMIT,
) -> Dict[str, Any]:
    """
    Run a canned drive through the evaluation pipeline.

    Args:
        scenarios: Available scenarios keyed by name
        scenario_name: Scenario to run
        rules: Rule parameters to apply
        store: Telemetry store; required when persist is True
        vehicle_id: Vehicle to simulate; default_vehicle_id when omitted
        persist: Record every sample through the recorder instead of evaluating in memory
        base_timestamp: Instant of the first sample
        default_vehicle_id: Fallback vehicle id
        history_limit: Snapshot history size used when persisting

    Returns:
        Dict with vehicleId, scenario, persisted, samples, before, after, alerts and tips

    Raises:
        ApiError: 400 for an unknown or empty scenario
    """
    scenario = scenarios.get(scenario_name)
    if scenario is None:
        raise bad_request_error(
            f'Unknown scenario "{scenario_name}". Available: {", ".join(scenarios)}'
        )
    if not scenario.samples:
        raise bad_request_error(f"Scenario {scenario.name} does not contain any samples.")
    if persist and store is None:
        raise ValueError("A telemetry store is required to persist a simulation")

    vehicle_id = vehicle_id or default_vehicle_id
    samples = build_telemetry_sequence(scenario, vehicle_id, base_timestamp or DEFAULT_SIMULATION_TIMESTAMP)

    if persist:
        result = None
        for sample in samples:
            result = await record_telemetry(store, sample, rules, history_limit)
    else:
        result = _evaluate_in_memory(samples, rules)

    first, last = samples[0], samples[-1]
    logger.info(
        "Simulation executed: vehicle=%s scenario=%s persisted=%s score=%s",
        vehicle_id, scenario.name, persist, result.evaluation.score,
    )

    return {
        "vehicleId": vehicle_id,
        "scenario": scenario.to_dict(),
        "persisted": persist,
        "samples": [sample.to_dict() for sample in samples],
        "before": {
            "batteryPercentage": first.battery_percentage,
            "timestamp": first.timestamp,
        },
        "after": {
            "batteryPercentage": last.battery_percentage,
            "timestamp": last.timestamp,
            "score": result.evaluation.score,
            "status": result.evaluation.status.value,
        },
        "alerts": [alert.to_dict() for alert in result.alerts],
        "tips": [tip.to_dict() for tip in result.tips],
    }
