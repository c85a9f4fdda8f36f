"""
Rule parameters for battery health evaluation.

This module provides:
1. The fixed rule identifiers and health statuses
2. Frozen dataclasses for every rule's thresholds, deductions and templates
3. Loading of the versioned YAML rule file into those dataclasses
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

SERVICES_DIR = Path(__file__).parent
DEFAULT_RULES_PATH = SERVICES_DIR / "rules.yaml"


class RuleId(str, Enum):
    """Identifiers of the scoring rules, in no particular order."""
    DEEP_DISCHARGE_WARNING = "deep_discharge_warning"
    DEEP_DISCHARGE_CRITICAL = "deep_discharge_critical"
    IDLE_DRAIN = "idle_drain"
    RAPID_DROP = "rapid_drop"
    SLOW_CHARGE = "slow_charge"
    TEMPERATURE_HIGH = "temperature_high"
    TEMPERATURE_LOW = "temperature_low"


class HealthStatus(str, Enum):
    """Coarse battery health categories."""
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    POOR = "POOR"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AlertTemplate:
    title: str
    message: str
    severity: AlertSeverity


@dataclass(frozen=True)
class TipTemplate:
    message: str


@dataclass(frozen=True)
class StatusBand:
    threshold: float
    status: HealthStatus


@dataclass(frozen=True)
class DeepDischargeRule:
    warning_threshold: float
    critical_threshold: float
    warning_deduction: float
    critical_deduction: float
    warning_alert: AlertTemplate
    critical_alert: AlertTemplate
    warning_tip: TipTemplate
    critical_tip: TipTemplate


@dataclass(frozen=True)
class IdleDrainRule:
    interval_minutes: float
    per_interval_deduction: float
    alert: AlertTemplate
    tip: TipTemplate


@dataclass(frozen=True)
class RapidDropRule:
    window_minutes: float
    drop_threshold: float
    deduction: float
    alert: AlertTemplate
    tip: TipTemplate


@dataclass(frozen=True)
class TemperatureRule:
    high_threshold: float
    low_threshold: float
    high_deduction: float
    low_deduction: float
    high_alert: AlertTemplate
    low_alert: AlertTemplate
    high_tip: TipTemplate
    low_tip: TipTemplate


@dataclass(frozen=True)
class SlowChargeRule:
    min_duration_minutes: float
    min_rate_percentage: float
    alert: AlertTemplate
    tip: TipTemplate


@dataclass(frozen=True)
class RuleParameters:
    """
    Complete, versioned set of rule parameters.

    Status bands are always held in descending threshold order.
    """
    version: int
    base_score: float
    status_bands: Tuple[StatusBand, ...]
    deep_discharge: DeepDischargeRule
    idle_drain: IdleDrainRule
    rapid_drop: RapidDropRule
    temperature: TemperatureRule
    slow_charge: SlowChargeRule

    def __post_init__(self):
        ordered = tuple(sorted(self.status_bands, key=lambda band: band.threshold, reverse=True))
        object.__setattr__(self, "status_bands", ordered)

    def alert_templates(self) -> Dict[RuleId, AlertTemplate]:
        """Alert template for every rule identifier."""
        return {
            RuleId.DEEP_DISCHARGE_WARNING: self.deep_discharge.warning_alert,
            RuleId.DEEP_DISCHARGE_CRITICAL: self.deep_discharge.critical_alert,
            RuleId.IDLE_DRAIN: self.idle_drain.alert,
            RuleId.RAPID_DROP: self.rapid_drop.alert,
            RuleId.SLOW_CHARGE: self.slow_charge.alert,
            RuleId.TEMPERATURE_HIGH: self.temperature.high_alert,
            RuleId.TEMPERATURE_LOW: self.temperature.low_alert,
        }

    def tip_templates(self) -> Dict[RuleId, TipTemplate]:
        """Driver tip template for every rule identifier."""
        return {
            RuleId.DEEP_DISCHARGE_WARNING: self.deep_discharge.warning_tip,
            RuleId.DEEP_DISCHARGE_CRITICAL: self.deep_discharge.critical_tip,
            RuleId.IDLE_DRAIN: self.idle_drain.tip,
            RuleId.RAPID_DROP: self.rapid_drop.tip,
            RuleId.SLOW_CHARGE: self.slow_charge.tip,
            RuleId.TEMPERATURE_HIGH: self.temperature.high_tip,
            RuleId.TEMPERATURE_LOW: self.temperature.low_tip,
        }


def _section(config: Dict[str, Any], key: str, source: str) -> Dict[str, Any]:
    value = config.get(key)
    if not isinstance(value, dict):
        raise ValueError(f"Missing required section '{key}' in {source}")
    return value


def _alert(raw: Dict[str, Any]) -> AlertTemplate:
    return AlertTemplate(
        title=str(raw["title"]),
        message=str(raw["message"]),
        severity=AlertSeverity(raw["severity"]),
    )


def _tip(raw: Dict[str, Any]) -> TipTemplate:
    return TipTemplate(message=str(raw["message"]))


def parse_rules(config: Dict[str, Any], source: str = "<rules>") -> RuleParameters:
    """
    Convert a raw rule document into RuleParameters.

    Args:
        config: Parsed YAML mapping
        source: Name used in error messages

    Returns:
        RuleParameters built from the document

    Raises:
        ValueError: If a section or field is missing or has a bad value
    """
    bands = config.get("status_bands") or []
    if not bands:
        raise ValueError(f"Missing required key 'status_bands' in {source}")

    deep = _section(config, "deep_discharge", source)
    idle = _section(config, "idle_drain", source)
    rapid = _section(config, "rapid_drop", source)
    temperature = _section(config, "temperature", source)
    slow = _section(config, "slow_charge", source)

    try:
        return RuleParameters(
            version=int(config.get("version", 1)),
            base_score=float(config["base_score"]),
            status_bands=tuple(
                StatusBand(threshold=float(band["threshold"]), status=HealthStatus(band["status"]))
                for band in bands
            ),
            deep_discharge=DeepDischargeRule(
                warning_threshold=float(deep["warning_threshold"]),
                critical_threshold=float(deep["critical_threshold"]),
                warning_deduction=float(deep["warning"]["deduction"]),
                critical_deduction=float(deep["critical"]["deduction"]),
                warning_alert=_alert(deep["warning"]["alert"]),
                critical_alert=_alert(deep["critical"]["alert"]),
                warning_tip=_tip(deep["warning"]["tip"]),
                critical_tip=_tip(deep["critical"]["tip"]),
            ),
            idle_drain=IdleDrainRule(
                interval_minutes=float(idle["interval_minutes"]),
                per_interval_deduction=float(idle["per_interval_deduction"]),
                alert=_alert(idle["alert"]),
                tip=_tip(idle["tip"]),
            ),
            rapid_drop=RapidDropRule(
                window_minutes=float(rapid["window_minutes"]),
                drop_threshold=float(rapid["drop_threshold"]),
                deduction=float(rapid["deduction"]),
                alert=_alert(rapid["alert"]),
                tip=_tip(rapid["tip"]),
            ),
            temperature=TemperatureRule(
                high_threshold=float(temperature["high_threshold"]),
                low_threshold=float(temperature["low_threshold"]),
                high_deduction=float(temperature["high_deduction"]),
                low_deduction=float(temperature["low_deduction"]),
                high_alert=_alert(temperature["high_alert"]),
                low_alert=_alert(temperature["low_alert"]),
                high_tip=_tip(temperature["high_tip"]),
                low_tip=_tip(temperature["low_tip"]),
            ),
            slow_charge=SlowChargeRule(
                min_duration_minutes=float(slow["min_duration_minutes"]),
                min_rate_percentage=float(slow["min_rate_percentage"]),
                alert=_alert(slow["alert"]),
                tip=_tip(slow["tip"]),
            ),
        )
    except KeyError as e:
        raise ValueError(f"Missing required key {e} in {source}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in {source}: {str(e)}")


def load_rules(path: Optional[Union[str, Path]] = None) -> RuleParameters:
    """
    Load rule parameters from a YAML file.

    Args:
        path: Rule file to read; the packaged rules.yaml when omitted

    Returns:
        Parsed RuleParameters

    Raises:
        ValueError: If the file is missing, empty or not valid YAML
    """
    filepath = Path(path) if path else DEFAULT_RULES_PATH
    try:
        with open(filepath, "r", encoding="utf-8") as file:
            config = yaml.safe_load(file)
    except FileNotFoundError:
        raise ValueError(f"Configuration file not found: {filepath}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {filepath}: {str(e)}")

    if not config:
        raise ValueError(f"Empty configuration file: {filepath}")
    if not isinstance(config, dict):
        raise ValueError(f"Expected a mapping at the top of {filepath}")

    return parse_rules(config, source=str(filepath))
