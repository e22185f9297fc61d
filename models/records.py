"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional


class HeaterState(IntEnum):
    """Heater codes reported by the equipment telemetry feed."""

    OFF = 0
    ON = 1
    STANDBY = 3


class PumpState(IntEnum):
    OFF = 0
    ON = 1


HEATING_STATES = frozenset({HeaterState.ON, HeaterState.STANDBY})


@dataclass(slots=True, frozen=True)
class Snapshot:
    """A single equipment reading with timestamps normalized to naive UTC."""

    timestamp: datetime
    pool_temperature: Optional[float] = None
    air_temperature: Optional[float] = None
    set_point_pool: Optional[float] = None
    pool_heater_state: Optional[int] = None
    filter_pump_state: Optional[int] = None
    spa_temperature: Optional[float] = None
    set_point_spa: Optional[float] = None
    spa_heater_state: Optional[int] = None
    spa_pump_state: Optional[int] = None
    service_mode: Optional[bool] = None

    @property
    def pool_heater_on(self) -> bool:
        return self.pool_heater_state in HEATING_STATES

    @property
    def filter_pump_on(self) -> bool:
        return self.filter_pump_state == PumpState.ON
