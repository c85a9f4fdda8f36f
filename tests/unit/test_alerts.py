"""
Unit tests for alert and driver tip projection.
"""
from battery_insights.models import RuleImpact
from battery_insights.services.alerts import build_alerts_from_impacts, build_driver_tips_from_impacts
from battery_insights.services.rules_config import AlertSeverity, RuleId


def test_alerts_follow_impact_order(rules):
    """Test that one alert is produced per impact, in impact order, with its metadata."""
    impacts = [
        RuleImpact(id=RuleId.DEEP_DISCHARGE_CRITICAL, deduction=10, metadata={"batteryPercentage": 8}),
        RuleImpact(id=RuleId.TEMPERATURE_HIGH, deduction=2, metadata={"ambientTemperature": 45}),
    ]

    alerts = build_alerts_from_impacts(impacts, rules)

    assert [alert.id for alert in alerts] == [RuleId.DEEP_DISCHARGE_CRITICAL, RuleId.TEMPERATURE_HIGH]
    assert alerts[0].severity == AlertSeverity.CRITICAL
    assert alerts[0].title == "Battery critically low"
    assert alerts[0].metadata == {"batteryPercentage": 8}
    assert alerts[1].severity == AlertSeverity.WARNING
    assert alerts[1].metadata == {"ambientTemperature": 45}


def test_tips_follow_impact_order(rules):
    impacts = [
        RuleImpact(id=RuleId.IDLE_DRAIN, deduction=3, metadata={}),
        RuleImpact(id=RuleId.SLOW_CHARGE, deduction=0, metadata={}),
    ]

    tips = build_driver_tips_from_impacts(impacts, rules)

    assert [tip.id for tip in tips] == [RuleId.IDLE_DRAIN, RuleId.SLOW_CHARGE]
    assert tips[0].message.startswith("Switch off the vehicle")


def test_informational_alerts(rules):
    """Test that slow charging and cold weather are reported as info."""
    impacts = [
        RuleImpact(id=RuleId.SLOW_CHARGE, deduction=0, metadata={}),
        RuleImpact(id=RuleId.TEMPERATURE_LOW, deduction=1, metadata={}),
    ]

    alerts = build_alerts_from_impacts(impacts, rules)

    assert [alert.severity for alert in alerts] == [AlertSeverity.INFO, AlertSeverity.INFO]


def test_plain_string_ids_are_accepted(rules):
    impacts = [RuleImpact(id="rapid_drop", deduction=4, metadata={"drop": 20})]

    alerts = build_alerts_from_impacts(impacts, rules)
    tips = build_driver_tips_from_impacts(impacts, rules)

    assert alerts[0].to_dict()["id"] == "rapid_drop"
    assert tips[0].to_dict()["id"] == "rapid_drop"


def test_unknown_rule_ids_are_dropped(rules):
    impacts = [
        RuleImpact(id="tyre_pressure", deduction=1, metadata={}),
        RuleImpact(id=RuleId.RAPID_DROP, deduction=4, metadata={}),
    ]

    assert [alert.id for alert in build_alerts_from_impacts(impacts, rules)] == [RuleId.RAPID_DROP]
    assert [tip.id for tip in build_driver_tips_from_impacts(impacts, rules)] == [RuleId.RAPID_DROP]


def test_no_impacts_no_output(rules):
    assert build_alerts_from_impacts([], rules) == []
    assert build_driver_tips_from_impacts([], rules) == []


def test_alert_serialization(rules):
    impacts = [RuleImpact(id=RuleId.DEEP_DISCHARGE_WARNING, deduction=5, metadata={"batteryPercentage": 15})]

    payload = build_alerts_from_impacts(impacts, rules)[0].to_dict()

    assert payload == {
        "id": "deep_discharge_warning",
        "title": "Battery charge low",
        "message": "Battery level fell below 20%. Sustained deep discharge accelerates degradation.",
        "severity": "warning",
        "metadata": {"batteryPercentage": 15},
    }
