from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "case_id",
    "system_id",
    "agency_id",
    "status",
    "reason",
    "note_type",
    "snapshot_count",
    "row_count",
    "slow_heating",
)

_configured = False


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    # Free-text fields such as resolution reasons need quoting to stay parseable.
    if not text or any(ch.isspace() or ch in "=\"" for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


class ContextualFormatter(logging.Formatter):
    """Append whitelisted ``extra`` fields as ``key=value`` pairs."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts = [
            f"{key}={_format_value(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        ]
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
