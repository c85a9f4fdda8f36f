"""
Vehicle insights.

Re-evaluates a vehicle's latest snapshot against its stored history and
attaches the recent insight log.
"""
import logging
from typing import Any, Dict

from battery_insights.services.db_operations import TelemetryStore
from battery_insights.services.error_handler import not_found_error
from battery_insights.services.rules_config import RuleParameters
from battery_insights.services.telemetry_recorder import (
    HISTORY_SNAPSHOT_LIMIT,
    evaluate_with_history,
)

logger = logging.getLogger(__name__)

INSIGHT_HISTORY_LIMIT = 10


async def get_vehicle_insights(
    store: TelemetryStore,
    vehicle_id: str,
    rules: RuleParameters,
    history_limit: int = HISTORY_SNAPSHOT_LIMIT,
    insight_limit: int = INSIGHT_HISTORY_LIMIT,
) -> Dict[str, Any]:
    """
    Current insights for a vehicle.

    Args:
        store: Telemetry store
        vehicle_id: Vehicle to look up
        rules: Rule parameters to apply
        history_limit: Snapshots used to rebuild the evaluation context
        insight_limit: Number of insight log entries to include

    Returns:
        Dict with score, status, telemetry, evaluation, alerts, tips,
        history and lastSeenAt

    Raises:
        ApiError: 404 if the vehicle is unknown or has no telemetry yet
    """
    vehicle = await store.get_vehicle(vehicle_id)
    if vehicle is None:
        raise not_found_error(f"Vehicle {vehicle_id} has not been registered yet.")

    latest = await store.get_latest_snapshot(vehicle_id)
    if latest is None:
        raise not_found_error(f"No telemetry available yet for vehicle {vehicle_id}.")

    result = await evaluate_with_history(store, latest, rules, history_limit)
    history_records = await store.get_recent_insights(vehicle_id, insight_limit)

    logger.info(
        "Vehicle insights retrieved: vehicle=%s score=%s status=%s",
        vehicle_id, result.evaluation.score, result.evaluation.status.value,
    )

    return {
        "vehicleId": vehicle_id,
        "score": result.evaluation.score,
        "status": result.evaluation.status.value,
        "telemetry": latest.to_dict(),
        "evaluation": result.evaluation.to_dict(),
        "alerts": [alert.to_dict() for alert in result.alerts],
        "tips": [tip.to_dict() for tip in result.tips],
        "history": [
            {
                "id": record.id,
                "createdAt": record.created_at,
                "healthScore": record.health_score,
                "status": record.status,
                "alerts": record.alerts,
                "tips": record.tips,
            }
            for record in history_records
        ],
        "lastSeenAt": vehicle.last_seen_at or latest.timestamp,
    }
