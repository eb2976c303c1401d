"""
Notifilter Core Module

Shared infrastructure: configuration, logging, constants, formatters.
"""

from .config import FilterSettings, get_settings, reset_settings
from .constants import (
    ACTION_ALLOW_LIST_CHANGED,
    ALLOW_LIST_KEY,
    DEFAULT_SOURCE_APP,
    RESTORE_DELAY_SECONDS,
)
from .formatters import format_datetime, format_duration_ms, get_utc_now, get_utc_timestamp
from .logging import get_logger

__all__ = [
    # Config
    "FilterSettings",
    "get_settings",
    "reset_settings",
    # Constants
    "ACTION_ALLOW_LIST_CHANGED",
    "ALLOW_LIST_KEY",
    "DEFAULT_SOURCE_APP",
    "RESTORE_DELAY_SECONDS",
    # Formatters
    "format_datetime",
    "format_duration_ms",
    "get_utc_now",
    "get_utc_timestamp",
    # Logging
    "get_logger",
]
