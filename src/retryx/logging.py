"""Logging setup for the retryx logger hierarchy.

retryx logs through stdlib ``logging`` under the ``retryx`` namespace and
installs no handlers by default. Applications either route those records
through their own configuration or call configure_logging() once at startup.

Example:
    >>> from retryx.logging import configure_logging
    >>> configure_logging(level="DEBUG", fmt="json")
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import orjson

from .settings import get_settings

LOGGER_NAME = "retryx"
_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Attributes present on every LogRecord; anything else came from `extra=`
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """JSON Lines output for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            **{k: v for k, v in vars(record).items() if k not in _RESERVED},
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install a single stream handler on the retryx logger.

    Args:
        level: Log level name; defaults to RETRYX_LOG_LEVEL
        fmt: "text" or "json"; defaults to RETRYX_LOG_FORMAT
        stream: Output stream (default: stderr)

    Returns:
        The configured ``retryx`` logger
    """
    settings = get_settings().logging
    level = (level or settings.level).upper()
    fmt = fmt or settings.format

    match fmt:
        case "text": formatter: logging.Formatter = logging.Formatter(_TEXT_FORMAT)
        case "json": formatter = JsonFormatter()
        case _: raise ValueError(f"Unknown format: {fmt}. Use 'text' or 'json'")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.handlers.clear()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
