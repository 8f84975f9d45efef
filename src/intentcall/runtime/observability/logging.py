"""Logging setup for the ``intentcall`` logger hierarchy.

All modules log through ``logging.getLogger("intentcall.<area>")``; this
module attaches a single handler to the ``intentcall`` root with either a
human-readable or a JSON-lines format.

Example:
    >>> configure_logging(level="DEBUG")          # development
    >>> configure_logging(format="json")          # log aggregation
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TextIO

from intentcall.foundation.config import get_settings

if TYPE_CHECKING:
    from intentcall.foundation.config import LoggingSettings

ROOT_LOGGER = "intentcall"
_HANDLER_NAME = "intentcall-default"
_TEXT_FORMAT = "%(levelname)-7s %(name)s: %(message)s"
_TEXT_FORMAT_TS = "%(asctime)s " + _TEXT_FORMAT


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, include_timestamps: bool = True) -> None:
        super().__init__()
        self.include_timestamps = include_timestamps

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_timestamps:
            entry["timestamp"] = datetime.fromtimestamp(record.created, UTC).isoformat()
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    level: str | None = None,
    format: str | None = None,  # noqa: A002 - matches LoggingSettings.format
    *,
    output: TextIO | None = None,
    settings: LoggingSettings | None = None,
) -> logging.Logger:
    """Configure the ``intentcall`` logger.

    Unset arguments come from ``LoggingSettings``. Calling again replaces
    the handler installed by the previous call.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format: "text" or "json"
        output: Stream for the handler (default stderr)
        settings: Logging settings to use instead of the global ones
    """
    cfg = settings or get_settings().logging
    fmt = format or cfg.format
    if fmt not in ("text", "json"):
        raise ValueError(f"Unknown format: {fmt}. Use 'text' or 'json'")

    handler = logging.StreamHandler(output or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JsonFormatter(include_timestamps=cfg.include_timestamps))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT_TS if cfg.include_timestamps else _TEXT_FORMAT))

    root = logging.getLogger(ROOT_LOGGER)
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel((level or cfg.level).upper())
    return root
