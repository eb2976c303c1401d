"""
Notifilter Logging

Every module logs through get_logger(__name__). Loggers write to one shared
stderr handler, at the level configured by NOTIFILTER_LOG_LEVEL (or DEBUG when
NOTIFILTER_DEBUG is set), in one of two shapes:

    text:  [NOTIFILTER WARNING] [policy] Cancel-only suppression  key=0|com.tencent.mm|1
    json:  {"timestamp": "...", "level": "WARNING", "logger": "...", "message": "...", "key": "..."}

Fields passed through ``extra=`` are appended to both shapes.

Usage:
    from notifilter.core.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Suppressing notification", extra={"identity": identity})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import get_settings

# Attributes every LogRecord carries; anything else came from extra=
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}

_loggers: dict[str, logging.Logger] = {}
_handler: Optional[logging.Handler] = None


class FilterFormatter(logging.Formatter):
    """Text or JSON-lines formatter for notifilter records."""

    def __init__(self, json_output: bool = False) -> None:
        super().__init__()
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS
        }
        exception = self.formatException(record.exc_info) if record.exc_info else None

        if self.json_output:
            payload: dict[str, Any] = {
                "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                    timespec="seconds"
                ),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                **extras,
            }
            if exception:
                payload["exception"] = exception
            # Titles and identities are frequently non-ASCII
            return json.dumps(payload, ensure_ascii=False, default=str)

        module = record.name.rpartition(".")[2]
        line = f"[NOTIFILTER {record.levelname}] [{module}] {record.getMessage()}"
        if extras:
            line += "  " + " ".join(f"{key}={value}" for key, value in extras.items())
        if exception:
            line += "\n" + exception
        return line


def _shared_handler() -> logging.Handler:
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(FilterFormatter(json_output=get_settings().log_json))
    return _handler


def get_logger(name: str) -> logging.Logger:
    """
    Get the configured logger for a module.

    Loggers are created once per name; later calls return the cached
    instance unchanged.
    """
    logger = _loggers.get(name)
    if logger is None:
        logger = logging.getLogger(name)
        logger.setLevel(get_settings().log_level_int)
        logger.addHandler(_shared_handler())
        logger.propagate = False
        _loggers[name] = logger
    return logger


def set_log_level(level: int) -> None:
    """Change the level of every logger handed out by get_logger."""
    for logger in _loggers.values():
        logger.setLevel(level)


def debug_enabled() -> bool:
    return get_settings().log_level_int <= logging.DEBUG


def reset_logging() -> None:
    """
    Detach the shared handler and hand records back to the root logger.

    Test fixtures call this so caplog sees notifilter records. Cached
    loggers stay cached; get_logger will not reconfigure them.
    """
    global _handler

    for name, existing in logging.Logger.manager.loggerDict.items():
        # PlaceHolder entries have no level or handlers
        if not isinstance(existing, logging.Logger):
            continue
        if name != "notifilter" and not name.startswith("notifilter."):
            continue
        if _handler is not None:
            existing.removeHandler(_handler)
        existing.propagate = True
        existing.setLevel(logging.NOTSET)

    _handler = None
