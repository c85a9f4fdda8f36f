"""
Temporal context builder for battery health evaluation.

This module reconstructs, from a flat and unordered snapshot history:
1. The continuous idle run ending at the new sample
2. The continuous charging run ending at the new sample, and the charge gained during it
3. A small window of the most recent snapshots for rapid-drop detection
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from battery_insights.models import (
    EvaluationContext,
    RecentSnapshot,
    SnapshotHistoryEntry,
    TelemetrySample,
)

logger = logging.getLogger(__name__)

RECENT_WINDOW_SIZE = 5


def _minutes_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / 60


def to_chronological_snapshots(
    history: Iterable[SnapshotHistoryEntry],
    current_timestamp: datetime,
) -> List[SnapshotHistoryEntry]:
    """
    Keep entries strictly earlier than the current sample, oldest first.

    Duplicates of the current sample and out-of-order submissions are dropped.
    """
    earlier = [entry for entry in history if entry.timestamp < current_timestamp]
    return sorted(earlier, key=lambda entry: entry.timestamp)


def compute_idle_duration(
    sample: TelemetrySample,
    chronological: Sequence[SnapshotHistoryEntry],
) -> float:
    """
    Length in minutes of the idle run (engine on, speed 0) ending at the sample.

    Args:
        sample: The new telemetry sample
        chronological: Earlier snapshots, oldest first

    Returns:
        Idle minutes, 0 when the sample itself is not idle
    """
    if not sample.is_idle:
        return 0.0

    cursor = sample.timestamp
    duration = 0.0
    for entry in reversed(chronological):
        if not entry.is_idle:
            break
        duration += _minutes_between(cursor, entry.timestamp)
        cursor = entry.timestamp

    return max(duration, 0.0)


def compute_charging_stats(
    sample: TelemetrySample,
    chronological: Sequence[SnapshotHistoryEntry],
) -> Tuple[float, float]:
    """
    Duration and charge gained for the charging run ending at the sample.

    Args:
        sample: The new telemetry sample
        chronological: Earlier snapshots, oldest first

    Returns:
        (duration_minutes, delta_percentage), both clamped to >= 0
    """
    if not sample.charging:
        return 0.0, 0.0

    cursor = sample.timestamp
    duration = 0.0
    start_battery = sample.battery_percentage
    for entry in reversed(chronological):
        if not entry.charging:
            break
        duration += _minutes_between(cursor, entry.timestamp)
        cursor = entry.timestamp
        start_battery = entry.battery_percentage

    delta = sample.battery_percentage - start_battery
    return max(duration, 0.0), max(delta, 0.0)


def build_recent_window(
    chronological: Sequence[SnapshotHistoryEntry],
    size: int = RECENT_WINDOW_SIZE,
) -> Tuple[RecentSnapshot, ...]:
    """The last `size` snapshots, still in ascending time order."""
    if size <= 0:
        return ()
    return tuple(
        RecentSnapshot(timestamp=entry.timestamp, battery_percentage=entry.battery_percentage)
        for entry in chronological[-size:]
    )


def build_evaluation_context(
    sample: TelemetrySample,
    history: Optional[Iterable[SnapshotHistoryEntry]] = None,
) -> EvaluationContext:
    """
    Build the evaluation context for a sample from its prior snapshots.

    Args:
        sample: The new telemetry sample
        history: Prior snapshots for the same vehicle in any order; None or
            empty means there is no temporal context

    Returns:
        EvaluationContext with idle/charging runs and the recent window
    """
    chronological = to_chronological_snapshots(history or (), sample.timestamp)

    idle_minutes = compute_idle_duration(sample, chronological)
    charging_minutes, charge_delta = compute_charging_stats(sample, chronological)
    recent = build_recent_window(chronological)

    logger.debug(
        "Context for %s: %d prior snapshots, idle=%.1fmin, charging=%.1fmin, delta=%.1f%%",
        sample.vehicle_id, len(chronological), idle_minutes, charging_minutes, charge_delta,
    )

    return EvaluationContext(
        sample=sample,
        idle_duration_minutes=idle_minutes,
        charging_duration_minutes=charging_minutes,
        charge_delta_during_charge=charge_delta,
        recent_snapshots=recent,
    )
