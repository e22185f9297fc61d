from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from settings import read_timezone

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0
DEFAULT_DISPLAY_TIMEZONE = "America/Los_Angeles"

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_REQUEST_TIMEOUT"
_DISPLAY_TIMEZONE_ENV = "DISPLAY_TIMEZONE"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config(
    base_url: Optional[str] = None,
    request_timeout: Optional[float] = None,
    display_timezone: Optional[str] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if request_timeout is None:
        request_timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    tz_name = read_timezone(
        display_timezone or os.getenv(_DISPLAY_TIMEZONE_ENV), DEFAULT_DISPLAY_TIMEZONE
    )
    return CLIConfig(
        base_url=url.rstrip("/"),
        request_timeout=request_timeout,
        display_timezone=tz_name,
    )
