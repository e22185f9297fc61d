"""Slow pool heating detection over a case's snapshot window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from models.records import Snapshot

MIN_SNAPSHOTS = 6
MIN_ELAPSED_HOURS = 3.0
MIN_TEMPERATURE_GAP_F = 10.0
MAX_HEATING_RATE_F_PER_HOUR = 0.5
MAX_AVERAGE_AIR_TEMPERATURE_F = 55.0

POOL_BODY_TYPE = "pool"


@dataclass(frozen=True)
class SlowHeatingThresholds:
    """Policy cutoffs separating "slow because it is cold" from other heating."""

    min_snapshots: int = MIN_SNAPSHOTS
    min_elapsed_hours: float = MIN_ELAPSED_HOURS
    min_temperature_gap: float = MIN_TEMPERATURE_GAP_F
    max_heating_rate: float = MAX_HEATING_RATE_F_PER_HOUR
    max_average_air_temperature: float = MAX_AVERAGE_AIR_TEMPERATURE_F


DEFAULT_THRESHOLDS = SlowHeatingThresholds()


@dataclass(frozen=True)
class SlowHeatingAssessment:
    """Verdict plus the metrics it was derived from.

    Metrics stay ``None`` when evaluation stopped before computing them.
    """

    detected: bool = False
    snapshot_count: int = 0
    elapsed_hours: Optional[float] = None
    heating_rate: Optional[float] = None
    average_air_temperature: Optional[float] = None
    temperature_gap: Optional[float] = None
    heater_always_on: Optional[bool] = None
    pump_always_on: Optional[bool] = None


class SlowHeatingDetector:
    """Pure classifier; safe to re-run on every refetch of a snapshot series."""

    def __init__(self, thresholds: SlowHeatingThresholds = DEFAULT_THRESHOLDS) -> None:
        self.thresholds = thresholds

    def detect(self, snapshots: Iterable[Snapshot], body_type: Optional[str]) -> bool:
        return self.assess(snapshots, body_type).detected

    def assess(
        self, snapshots: Iterable[Snapshot], body_type: Optional[str]
    ) -> SlowHeatingAssessment:
        limits = self.thresholds
        series = list(snapshots)
        count = len(series)

        if body_type != POOL_BODY_TYPE or count < limits.min_snapshots:
            return SlowHeatingAssessment(snapshot_count=count)

        ordered = sorted(series, key=lambda snapshot: snapshot.timestamp)
        first, last = ordered[0], ordered[-1]
        if first.pool_temperature is None or last.pool_temperature is None:
            return SlowHeatingAssessment(snapshot_count=count)

        elapsed_hours = (last.timestamp - first.timestamp).total_seconds() / 3600
        if elapsed_hours < limits.min_elapsed_hours:
            return SlowHeatingAssessment(snapshot_count=count, elapsed_hours=elapsed_hours)

        heating_rate = (last.pool_temperature - first.pool_temperature) / elapsed_hours
        # Missing readings count as 0, which drags the mean down.
        average_air = sum(s.air_temperature or 0 for s in ordered) / count
        heater_always_on = all(s.pool_heater_on for s in ordered)
        pump_always_on = all(s.filter_pump_on for s in ordered)
        temperature_gap = (last.set_point_pool or 0) - last.pool_temperature

        detected = (
            heater_always_on
            and pump_always_on
            and temperature_gap >= limits.min_temperature_gap
            and heating_rate < limits.max_heating_rate
            and average_air <= limits.max_average_air_temperature
        )
        return SlowHeatingAssessment(
            detected=detected,
            snapshot_count=count,
            elapsed_hours=elapsed_hours,
            heating_rate=heating_rate,
            average_air_temperature=average_air,
            temperature_gap=temperature_gap,
            heater_always_on=heater_always_on,
            pump_always_on=pump_always_on,
        )


def detect_slow_heating(
    snapshots: Iterable[Snapshot],
    body_type: Optional[str],
    thresholds: SlowHeatingThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    return SlowHeatingDetector(thresholds).detect(snapshots, body_type)
