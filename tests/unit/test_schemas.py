"""
Unit tests for the request schemas.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from battery_insights.schemas.simulation import SimulationRequest
from battery_insights.schemas.telemetry import TelemetryPayload


def _payload(**overrides):
    payload = {
        "vehicleId": "vehicle-1",
        "timestamp": "2024-01-01T08:00:00Z",
        "batteryPercentage": 64.5,
        "speedKmph": 42,
        "engineOn": True,
        "charging": False,
        "ambientTemperature": 21.5,
        "odometerKm": 10432.1,
    }
    payload.update(overrides)
    return payload


def test_camel_case_payload():
    """Test that camelCase wire names map onto the sample fields."""
    sample = TelemetryPayload.model_validate(_payload()).to_sample()

    assert sample.vehicle_id == "vehicle-1"
    assert sample.timestamp == datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
    assert sample.battery_percentage == 64.5
    assert sample.speed_kmph == 42
    assert sample.engine_on is True
    assert sample.charging is False
    assert sample.ambient_temperature == 21.5
    assert sample.odometer_km == 10432.1


def test_timestamps_are_normalized_to_utc():
    offset = TelemetryPayload.model_validate(_payload(timestamp="2024-01-01T10:00:00+02:00"))
    naive = TelemetryPayload.model_validate(_payload(timestamp="2024-01-01T08:00:00"))

    assert offset.timestamp == naive.timestamp
    assert offset.timestamp.utcoffset() == timedelta(0)
    assert naive.timestamp.tzinfo is not None


def test_optional_fields_may_be_omitted():
    payload = _payload()
    del payload["ambientTemperature"]
    del payload["odometerKm"]

    sample = TelemetryPayload.model_validate(payload).to_sample()

    assert sample.ambient_temperature is None
    assert sample.odometer_km is None


def test_vehicle_id_is_stripped():
    assert TelemetryPayload.model_validate(_payload(vehicleId="  car-7 ")).vehicle_id == "car-7"


@pytest.mark.parametrize("overrides", [
    {"vehicleId": "   "},
    {"vehicleId": ""},
    {"timestamp": "yesterday"},
    {"batteryPercentage": 101},
    {"batteryPercentage": -1},
    {"speedKmph": -5},
    {"engineOn": "sometimes"},
    {"odometerKm": -1},
])
def test_invalid_payloads(overrides):
    with pytest.raises(ValidationError):
        TelemetryPayload.model_validate(_payload(**overrides))


def test_missing_required_field():
    payload = _payload()
    del payload["charging"]

    with pytest.raises(ValidationError):
        TelemetryPayload.model_validate(payload)


def test_simulation_request_defaults():
    request = SimulationRequest.model_validate({"scenario": "urban"})

    assert request.scenario == "urban"
    assert request.vehicle_id is None
    assert request.persist is False
    assert request.base_timestamp is None


def test_simulation_request_rejects_unknown_scenario():
    with pytest.raises(ValidationError):
        SimulationRequest.model_validate({"scenario": "offroad"})


def test_simulation_request_base_timestamp():
    request = SimulationRequest.model_validate({
        "scenario": "mixed",
        "vehicleId": "sim-1",
        "persist": True,
        "baseTimestamp": "2024-03-01T12:00:00+01:00",
    })

    assert request.vehicle_id == "sim-1"
    assert request.persist is True
    assert request.base_timestamp == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)


def test_simulation_request_vehicle_id_is_stripped():
    request = SimulationRequest.model_validate({"scenario": "urban", "vehicleId": "  sim-2 "})

    assert request.vehicle_id == "sim-2"


@pytest.mark.parametrize("vehicle_id", [" ", "\t\n"])
def test_simulation_request_rejects_blank_vehicle_id(vehicle_id):
    with pytest.raises(ValidationError):
        SimulationRequest.model_validate({"scenario": "urban", "vehicleId": vehicle_id})
