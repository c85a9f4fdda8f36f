"""
Run a simulated drive from the command line and print a JSON summary.

Examples:
    python scripts/simulate.py --scenario mixed
    python scripts/simulate.py --scenario urban --persist --vehicle-id demo-1
"""
import argparse
import asyncio
import json
import sys
from datetime import datetime

from battery_insights.config import get_settings
from battery_insights.logging_config import setup_logging
from battery_insights.schemas.telemetry import normalize_timestamp
from battery_insights.services.db_operations import TelemetryStore
from battery_insights.services.error_handler import ApiError
from battery_insights.services.rules_config import load_rules
from battery_insights.services.simulation import load_scenarios, simulate_drive


def parse_args():
    parser = argparse.ArgumentParser(description="Run a canned drive through the battery health pipeline")
    parser.add_argument("--scenario", default="urban", help="Scenario name (default: urban)")
    parser.add_argument("--persist", action="store_true", help="Record every sample in the database")
    parser.add_argument("--vehicle-id", default=None, help="Vehicle id to simulate")
    parser.add_argument("--base-timestamp", default=None, help="ISO-8601 start of the drive")
    return parser.parse_args()


async def run(args) -> dict:
    settings = get_settings()
    rules = load_rules(settings.rules_config_path)
    scenarios = load_scenarios()
    base_timestamp = normalize_timestamp(datetime.fromisoformat(args.base_timestamp)) if args.base_timestamp else None

    store = TelemetryStore(settings.database_url) if args.persist else None
    try:
        if store is not None:
            await store.create_tables()
        result = await simulate_drive(
            scenarios,
            args.scenario,
            rules,
            store=store,
            vehicle_id=args.vehicle_id,
            persist=args.persist,
            base_timestamp=base_timestamp,
            default_vehicle_id=settings.simulation_default_vehicle_id,
            history_limit=settings.history_snapshot_limit,
        )
    finally:
        if store is not None:
            await store.dispose()

    return {
        "vehicleId": result["vehicleId"],
        "scenario": result["scenario"]["name"],
        "persisted": result["persisted"],
        "samples": len(result["samples"]),
        "startingBattery": result["before"]["batteryPercentage"],
        "endingBattery": result["after"]["batteryPercentage"],
        "score": result["after"]["score"],
        "status": result["after"]["status"],
        "alerts": [{"id": alert["id"], "severity": alert["severity"]} for alert in result["alerts"]],
        "tips": [tip["message"] for tip in result["tips"]],
    }


if __name__ == "__main__":
    args = parse_args()
    setup_logging(get_settings().log_level)
    try:
        summary = asyncio.run(run(args))
    except ApiError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(summary, indent=2))
