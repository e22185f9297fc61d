"""Display helpers shared by the HTML views and the CLI."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from models.records import HeaterState, PumpState

PLACEHOLDER = "—"


def format_local_time(value: Optional[datetime], tz_name: str) -> str:
    """Render a naive-UTC warehouse timestamp in the display timezone."""
    if value is None:
        return PLACEHOLDER
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone(ZoneInfo(tz_name))
    hour = local.hour % 12 or 12
    return f"{local.month}/{local.day}/{local:%y}, {hour}:{local:%M:%S %p}"


def heater_label(state: Optional[int]) -> str:
    if state == HeaterState.ON:
        return "On"
    if state == HeaterState.STANDBY:
        return "On (Standby)"
    return "Off"


def pump_label(state: Optional[int]) -> str:
    return "On" if state == PumpState.ON else "Off"


def reading(value: Any) -> str:
    return PLACEHOLDER if value is None else str(value)
