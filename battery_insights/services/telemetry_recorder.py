"""
Telemetry ingestion pipeline.

This module provides the end-to-end handling of one telemetry sample:
1. Loading the vehicle's recent snapshot history
2. Building the evaluation context and scoring the sample
3. Projecting alerts and driver tips
4. Persisting the snapshot, the vehicle's last-seen state and an insight log entry
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from battery_insights.models import BatteryHealthEvaluation, TelemetrySample
from battery_insights.services.alerts import (
    Alert,
    DriverTip,
    build_alerts_from_impacts,
    build_driver_tips_from_impacts,
)
from battery_insights.services.battery_health import evaluate_battery_health
from battery_insights.services.context_builder import build_evaluation_context
from battery_insights.services.db_operations import TelemetryStore
from battery_insights.services.rules_config import RuleParameters

logger = logging.getLogger(__name__)

HISTORY_SNAPSHOT_LIMIT = 20


@dataclass(frozen=True)
class TelemetryRecordResult:
    sample: TelemetrySample
    evaluation: BatteryHealthEvaluation
    alerts: List[Alert]
    tips: List[DriverTip]

    @property
    def vehicle_id(self) -> str:
        return self.sample.vehicle_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicleId": self.vehicle_id,
            "score": self.evaluation.score,
            "status": self.evaluation.status.value,
            "baseScore": self.evaluation.base_score,
            "alerts": [alert.to_dict() for alert in self.alerts],
            "tips": [tip.to_dict() for tip in self.tips],
            "ruleImpacts": [impact.to_dict() for impact in self.evaluation.rule_impacts],
            "telemetry": self.sample.to_dict(),
        }


async def evaluate_with_history(
    store: TelemetryStore,
    sample: TelemetrySample,
    rules: RuleParameters,
    history_limit: int = HISTORY_SNAPSHOT_LIMIT,
) -> TelemetryRecordResult:
    """
    Score a sample against the vehicle's stored history without writing anything.

    Args:
        store: Telemetry store to read history from
        sample: Sample to evaluate
        rules: Rule parameters to apply
        history_limit: Maximum number of prior snapshots to consider

    Returns:
        TelemetryRecordResult for the sample
    """
    snapshots = await store.get_recent_snapshots(sample.vehicle_id, history_limit)
    history = [snapshot.to_history_entry() for snapshot in snapshots]

    context = build_evaluation_context(sample, history)
    evaluation = evaluate_battery_health(context, rules)
    alerts = build_alerts_from_impacts(evaluation.rule_impacts, rules)
    tips = build_driver_tips_from_impacts(evaluation.rule_impacts, rules)
    return TelemetryRecordResult(sample=sample, evaluation=evaluation, alerts=alerts, tips=tips)


async def record_telemetry(
    store: TelemetryStore,
    sample: TelemetrySample,
    rules: RuleParameters,
    history_limit: int = HISTORY_SNAPSHOT_LIMIT,
) -> TelemetryRecordResult:
    """
    Evaluate a sample and persist it together with its outcome.

    The three writes are independent; a failure part-way leaves the earlier
    writes in place.

    Args:
        store: Telemetry store for history and persistence
        sample: Sample to record
        rules: Rule parameters to apply
        history_limit: Maximum number of prior snapshots to consider

    Returns:
        TelemetryRecordResult for the recorded sample
    """
    result = await evaluate_with_history(store, sample, rules, history_limit)

    await store.insert_snapshot(sample)
    await store.upsert_vehicle(
        vehicle_id=sample.vehicle_id,
        last_seen_at=sample.timestamp,
        last_health_score=result.evaluation.score,
    )
    await store.insert_insight_log(
        vehicle_id=sample.vehicle_id,
        health_score=result.evaluation.score,
        status=result.evaluation.status.value,
        alerts=[alert.to_dict() for alert in result.alerts],
        tips=[tip.to_dict() for tip in result.tips],
    )

    logger.info(
        "Telemetry ingested: vehicle=%s score=%s status=%s rules=%s",
        sample.vehicle_id,
        result.evaluation.score,
        result.evaluation.status.value,
        [impact.id.value for impact in result.evaluation.rule_impacts],
    )
    return result
