from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_PROJECT_ID_ENV = "WAREHOUSE_PROJECT_ID"
_DATASET_ENV = "WAREHOUSE_DATASET"
_WAREHOUSE_PATH_ENV = "WAREHOUSE_PERSISTENCE_PATH"
_CASE_LIMIT_ENV = "CASE_LIST_LIMIT"
_PADDING_HOURS_ENV = "SNAPSHOT_WINDOW_PADDING_HOURS"
_DISPLAY_TIMEZONE_ENV = "DISPLAY_TIMEZONE"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_API_HOST_ENV = "API_HOST"
_API_PORT_ENV = "PORT"

DEFAULT_DISPLAY_TIMEZONE = "America/Los_Angeles"


@dataclass(frozen=True)
class Settings:
    project_id: str
    dataset: str
    warehouse_persistence_path: Optional[str]
    case_list_limit: int
    snapshot_padding_hours: int
    display_timezone: str
    log_level: str
    api_host: str
    api_port: int


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_int_env(name: str, default: int, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def read_timezone(value: Optional[str], default: str) -> str:
    """Return ``value`` when it names a known IANA zone, else ``default``."""
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return default
    return candidate


@lru_cache
def get_settings() -> Settings:
    return Settings(
        project_id=_read_str_env(_PROJECT_ID_ENV, "poolpilot-analytics"),
        dataset=_read_str_env(_DATASET_ENV, "pool_analytics"),
        warehouse_persistence_path=_read_optional_env(
            _WAREHOUSE_PATH_ENV, "./tmp/warehouse.json"
        ),
        case_list_limit=_read_int_env(_CASE_LIMIT_ENV, 500),
        snapshot_padding_hours=_read_int_env(_PADDING_HOURS_ENV, 2, minimum=0),
        display_timezone=read_timezone(
            os.getenv(_DISPLAY_TIMEZONE_ENV), DEFAULT_DISPLAY_TIMEZONE
        ),
        log_level=_read_log_level("INFO"),
        api_host=_read_str_env(_API_HOST_ENV, "0.0.0.0"),
        api_port=_read_int_env(_API_PORT_ENV, 8000),
    )
