"""
Unit tests for the canned drive scenarios and in-memory simulation.
"""
from datetime import datetime, timedelta, timezone

import pytest

from battery_insights.services.error_handler import ApiError
from battery_insights.services.simulation import (
    DEFAULT_SIMULATION_TIMESTAMP,
    build_telemetry_sequence,
    load_scenarios,
    simulate_drive,
)


@pytest.fixture(scope="module")
def scenarios():
    return load_scenarios()


def test_packaged_scenarios(scenarios):
    assert list(scenarios) == ["urban", "highway", "mixed"]
    assert [len(scenario.samples) for scenario in scenarios.values()] == [9, 6, 9]


def test_sequence_timestamps(scenarios):
    """Test that minute offsets are applied to the base timestamp."""
    base = datetime(2024, 5, 1, 6, 30, tzinfo=timezone.utc)

    samples = build_telemetry_sequence(scenarios["highway"], "car-9", base)

    assert [sample.timestamp for sample in samples] == [
        base + timedelta(minutes=minutes) for minutes in (0, 5, 10, 15, 20, 25)
    ]
    assert {sample.vehicle_id for sample in samples} == {"car-9"}


async def test_mixed_drive_reports_slow_charge(scenarios, rules):
    """Test that the charging tail of the mixed drive is flagged without a deduction."""
    result = await simulate_drive(scenarios, "mixed", rules)

    assert result["vehicleId"] == "simulated-vehicle"
    assert result["persisted"] is False
    assert result["before"]["batteryPercentage"] == 65
    assert result["before"]["timestamp"] == DEFAULT_SIMULATION_TIMESTAMP
    assert result["after"]["batteryPercentage"] == 60
    assert result["after"]["timestamp"] == DEFAULT_SIMULATION_TIMESTAMP + timedelta(minutes=55)
    assert result["after"]["score"] == 100
    assert result["after"]["status"] == "GOOD"
    assert [alert["id"] for alert in result["alerts"]] == ["slow_charge"]
    assert result["alerts"][0]["metadata"]["durationMinutes"] == 30
    assert result["alerts"][0]["metadata"]["progressDelta"] == pytest.approx(2.8)
    assert [tip["id"] for tip in result["tips"]] == ["slow_charge"]


@pytest.mark.parametrize("name", ["urban", "highway"])
async def test_calm_drives_have_no_alerts(scenarios, rules, name):
    result = await simulate_drive(scenarios, name, rules, vehicle_id="sim-1")

    assert result["vehicleId"] == "sim-1"
    assert result["after"]["score"] == 100
    assert result["alerts"] == []
    assert result["tips"] == []
    assert len(result["samples"]) == len(scenarios[name].samples)


async def test_unknown_scenario(scenarios, rules):
    with pytest.raises(ApiError) as exc_info:
        await simulate_drive(scenarios, "offroad", rules)

    assert exc_info.value.status_code == 400
    assert "offroad" in exc_info.value.message


async def test_persist_requires_store(scenarios, rules):
    with pytest.raises(ValueError):
        await simulate_drive(scenarios, "urban", rules, persist=True)


def test_invalid_scenario_file(tmp_path):
    path = tmp_path / "scenarios.yaml"
    path.write_text("scenarios:\n  - description: no name\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid scenario"):
        load_scenarios(path)
