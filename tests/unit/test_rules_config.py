"""
Unit tests for rule parameter loading.

Tests the packaged defaults and how malformed rule files are rejected.
"""
import copy

import pytest
import yaml

from battery_insights.services.rules_config import (
    DEFAULT_RULES_PATH,
    HealthStatus,
    RuleId,
    load_rules,
    parse_rules,
)


@pytest.fixture
def raw_rules():
    with open(DEFAULT_RULES_PATH, "r", encoding="utf-8") as file:
        return yaml.safe_load(file)


def test_default_rule_values(rules):
    """Test the packaged thresholds and deductions."""
    assert rules.base_score == 100
    assert [(band.threshold, band.status) for band in rules.status_bands] == [
        (80, HealthStatus.GOOD),
        (60, HealthStatus.MODERATE),
        (0, HealthStatus.POOR),
    ]
    assert rules.deep_discharge.warning_threshold == 20
    assert rules.deep_discharge.critical_threshold == 10
    assert rules.deep_discharge.warning_deduction == 5
    assert rules.deep_discharge.critical_deduction == 10
    assert rules.idle_drain.interval_minutes == 10
    assert rules.idle_drain.per_interval_deduction == 3
    assert rules.rapid_drop.window_minutes == 15
    assert rules.rapid_drop.drop_threshold == 15
    assert rules.rapid_drop.deduction == 4
    assert rules.temperature.high_threshold == 40
    assert rules.temperature.low_threshold == 0
    assert rules.temperature.high_deduction == 2
    assert rules.temperature.low_deduction == 1
    assert rules.slow_charge.min_duration_minutes == 20
    assert rules.slow_charge.min_rate_percentage == 5


def test_every_rule_has_templates(rules):
    assert set(rules.alert_templates()) == set(RuleId)
    assert set(rules.tip_templates()) == set(RuleId)


def test_status_bands_are_sorted_descending(raw_rules):
    raw_rules["status_bands"] = list(reversed(raw_rules["status_bands"]))

    parsed = parse_rules(raw_rules)

    assert [band.threshold for band in parsed.status_bands] == [80, 60, 0]


def test_missing_section_is_rejected(raw_rules):
    broken = copy.deepcopy(raw_rules)
    del broken["rapid_drop"]

    with pytest.raises(ValueError, match="rapid_drop"):
        parse_rules(broken)


def test_missing_key_is_rejected(raw_rules):
    broken = copy.deepcopy(raw_rules)
    del broken["idle_drain"]["interval_minutes"]

    with pytest.raises(ValueError, match="interval_minutes"):
        parse_rules(broken)


def test_invalid_status_is_rejected(raw_rules):
    broken = copy.deepcopy(raw_rules)
    broken["status_bands"][0]["status"] = "EXCELLENT"

    with pytest.raises(ValueError, match="Invalid value"):
        parse_rules(broken)


def test_custom_rules_file(tmp_path, raw_rules):
    """Test that a rule file elsewhere on disk can override the defaults."""
    raw_rules["version"] = 2
    raw_rules["temperature"]["high_threshold"] = 35
    path = tmp_path / "rules.yaml"
    path.write_text(yaml.safe_dump(raw_rules), encoding="utf-8")

    parsed = load_rules(path)

    assert parsed.version == 2
    assert parsed.temperature.high_threshold == 35


def test_missing_file(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        load_rules(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("base_score: [100\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_rules(path)


def test_empty_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ValueError, match="Empty"):
        load_rules(path)
