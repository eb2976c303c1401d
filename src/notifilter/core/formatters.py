"""
Notifilter Formatters

Timestamp and duration strings for CLI output, status reports, and logs.
"""

from datetime import datetime, timezone


def get_utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_datetime(dt: datetime) -> str:
    """
    Render a datetime as a second-precision UTC string.

    Naive datetimes are taken to be UTC already.

    Examples:
        >>> format_datetime(datetime(2026, 1, 15, 12, 30, tzinfo=timezone.utc))
        '2026-01-15T12:30:00Z'
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def get_utc_timestamp() -> str:
    """Current UTC time, formatted by format_datetime."""
    return format_datetime(get_utc_now())


def format_duration_ms(seconds: float) -> str:
    """
    Render a short delay in whole milliseconds.

    Examples:
        >>> format_duration_ms(0.5)
        '500ms'
    """
    return f"{round(seconds * 1000)}ms"
