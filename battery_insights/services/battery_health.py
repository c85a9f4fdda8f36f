"""
Battery health rule engine.

evaluate_battery_health is a pure function of its context and rule parameters:
it performs no I/O, reads no clock and keeps no state between calls. Rules run
in a fixed order and each one appends at most one RuleImpact.
"""
import math
from typing import List, Sequence

from battery_insights.models import (
    BatteryHealthEvaluation,
    EvaluationContext,
    RuleImpact,
    TelemetrySample,
)
from battery_insights.services.rules_config import (
    HealthStatus,
    RuleId,
    RuleParameters,
    StatusBand,
)


def determine_status(score: float, status_bands: Sequence[StatusBand]) -> HealthStatus:
    """
    Map a score to a status.

    Bands are checked from the highest threshold down; the first band the
    score reaches wins and the lowest band is the fallback.
    """
    ordered = sorted(status_bands, key=lambda band: band.threshold, reverse=True)
    for band in ordered:
        if score >= band.threshold:
            return band.status

    if ordered:
        return ordered[-1].status
    return HealthStatus.POOR


def evaluate_deep_discharge(
    sample: TelemetrySample,
    rules: RuleParameters,
    impacts: List[RuleImpact],
) -> float:
    """Critical and warning are exclusive; the more severe one wins."""
    deep = rules.deep_discharge
    battery = sample.battery_percentage

    if battery < deep.critical_threshold:
        impacts.append(RuleImpact(
            id=RuleId.DEEP_DISCHARGE_CRITICAL,
            deduction=deep.critical_deduction,
            metadata={"batteryPercentage": battery},
        ))
        return deep.critical_deduction

    if battery < deep.warning_threshold:
        impacts.append(RuleImpact(
            id=RuleId.DEEP_DISCHARGE_WARNING,
            deduction=deep.warning_deduction,
            metadata={"batteryPercentage": battery},
        ))
        return deep.warning_deduction

    return 0


def evaluate_idle_drain(
    context: EvaluationContext,
    rules: RuleParameters,
    impacts: List[RuleImpact],
) -> float:
    """Deduct per full idle interval while the engine runs at standstill."""
    idle = rules.idle_drain
    sample = context.sample
    if not sample.is_idle:
        return 0

    duration = context.idle_duration_minutes
    intervals = int(math.floor(duration / idle.interval_minutes)) if idle.interval_minutes > 0 else 0
    if intervals <= 0:
        return 0

    deduction = intervals * idle.per_interval_deduction
    impacts.append(RuleImpact(
        id=RuleId.IDLE_DRAIN,
        deduction=deduction,
        metadata={"idleDurationMinutes": duration, "intervals": intervals},
    ))
    return deduction


def evaluate_rapid_drop(
    context: EvaluationContext,
    rules: RuleParameters,
    impacts: List[RuleImpact],
) -> float:
    """Deduct when the battery fell sharply relative to the recent window."""
    rapid = rules.rapid_drop
    sample = context.sample
    if not context.recent_snapshots:
        return 0

    window_seconds = rapid.window_minutes * 60
    relevant = [
        snapshot.battery_percentage
        for snapshot in context.recent_snapshots
        if abs((sample.timestamp - snapshot.timestamp).total_seconds()) <= window_seconds
    ]
    if not relevant:
        return 0

    drop = max(sample.battery_percentage, *relevant) - sample.battery_percentage
    if drop < rapid.drop_threshold:
        return 0

    impacts.append(RuleImpact(
        id=RuleId.RAPID_DROP,
        deduction=rapid.deduction,
        metadata={"drop": drop, "windowMinutes": rapid.window_minutes},
    ))
    return rapid.deduction


def evaluate_temperature(
    sample: TelemetrySample,
    rules: RuleParameters,
    impacts: List[RuleImpact],
) -> float:
    """High and low temperature are exclusive; high is checked first."""
    temperature = rules.temperature
    ambient = sample.ambient_temperature
    if ambient is None:
        return 0

    if ambient > temperature.high_threshold:
        impacts.append(RuleImpact(
            id=RuleId.TEMPERATURE_HIGH,
            deduction=temperature.high_deduction,
            metadata={"ambientTemperature": ambient},
        ))
        return temperature.high_deduction

    if ambient < temperature.low_threshold:
        impacts.append(RuleImpact(
            id=RuleId.TEMPERATURE_LOW,
            deduction=temperature.low_deduction,
            metadata={"ambientTemperature": ambient},
        ))
        return temperature.low_deduction

    return 0


def evaluate_slow_charge(
    context: EvaluationContext,
    rules: RuleParameters,
    impacts: List[RuleImpact],
) -> float:
    """
    Flag a long charging run that gained too little charge.

    The impact is informational only: it carries a zero deduction and exists
    so the alert and tip are surfaced.
    """
    slow = rules.slow_charge
    if not context.sample.charging:
        return 0

    duration = context.charging_duration_minutes
    delta = context.charge_delta_during_charge
    if duration < slow.min_duration_minutes:
        return 0
    if delta >= slow.min_rate_percentage:
        return 0

    impacts.append(RuleImpact(
        id=RuleId.SLOW_CHARGE,
        deduction=0,
        metadata={"durationMinutes": duration, "progressDelta": delta},
    ))
    return 0


def evaluate_battery_health(
    context: EvaluationContext,
    rules: RuleParameters,
) -> BatteryHealthEvaluation:
    """
    Score a sample against the battery health rules.

    Args:
        context: Sample plus its temporal context
        rules: Rule parameters to apply

    Returns:
        BatteryHealthEvaluation with the score clamped to [0, base_score]
    """
    impacts: List[RuleImpact] = []
    sample = context.sample

    total_deduction = 0
    total_deduction += evaluate_deep_discharge(sample, rules, impacts)
    total_deduction += evaluate_idle_drain(context, rules, impacts)
    total_deduction += evaluate_rapid_drop(context, rules, impacts)
    total_deduction += evaluate_temperature(sample, rules, impacts)
    total_deduction += evaluate_slow_charge(context, rules, impacts)

    score = max(0, rules.base_score - total_deduction)
    return BatteryHealthEvaluation(
        base_score=rules.base_score,
        score=score,
        status=determine_status(score, rules.status_bands),
        rule_impacts=tuple(impacts),
    )
