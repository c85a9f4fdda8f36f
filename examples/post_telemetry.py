"""
Example Python client for the telemetry endpoint.

This script posts one telemetry reading with API key authentication and
prints the resulting score, alerts and tips.
"""
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

import httpx

# Configuration
API_URL = os.environ.get("API_URL", "http://localhost:8000")
API_KEY = os.environ.get("API_KEY", "")


class TelemetryClientError(Exception):
    """Raised when the API rejects a request."""
    pass


def post_telemetry(sample: Dict[str, Any], api_key: str) -> Dict[str, Any]:
    """
    Post a telemetry sample.

    Args:
        sample: Telemetry body in the API's camelCase format
        api_key: Value for the x-api-key header

    Returns:
        The 'data' object of the response
    """
    try:
        response = httpx.post(
            f"{API_URL}/telemetry",
            headers={"x-api-key": api_key},
            json=sample,
            timeout=10.0,
        )
    except httpx.HTTPError as e:
        raise TelemetryClientError(f"Request failed: {e}")

    if response.status_code != 201:
        error = response.json().get("error", {})
        raise TelemetryClientError(f"{response.status_code} {error.get('code')}: {error.get('message')}")

    return response.json()["data"]


def main():
    if not API_KEY:
        print("Error: API_KEY environment variable is required")
        sys.exit(1)

    sample = {
        "vehicleId": "demo-vehicle",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "batteryPercentage": 18.5,
        "speedKmph": 0,
        "engineOn": True,
        "charging": False,
        "ambientTemperature": 42,
    }

    try:
        data = post_telemetry(sample, API_KEY)
    except TelemetryClientError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Score: {data['score']} ({data['status']})")
    for alert in data["alerts"]:
        print(f"[{alert['severity']}] {alert['title']}: {alert['message']}")
    for tip in data["tips"]:
        print(f"Tip: {tip['message']}")


if __name__ == "__main__":
    main()
