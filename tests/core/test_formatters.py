"""
Tests for notifilter formatters.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from notifilter.core.formatters import (
    format_datetime,
    format_duration_ms,
    get_utc_now,
    get_utc_timestamp,
)


class TestFormatters:
    def test_format_datetime(self):
        dt = datetime(2026, 1, 15, 12, 30, 0, tzinfo=timezone.utc)
        assert format_datetime(dt) == "2026-01-15T12:30:00Z"

    def test_format_datetime_converts_offsets(self):
        dt = datetime(2026, 1, 15, 20, 30, 0, tzinfo=timezone(timedelta(hours=8)))
        assert format_datetime(dt) == "2026-01-15T12:30:00Z"

    def test_get_utc_now_is_aware(self):
        assert get_utc_now().tzinfo is timezone.utc

    def test_get_utc_timestamp_shape(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", get_utc_timestamp())

    def test_format_duration_ms(self):
        assert format_duration_ms(0.5) == "500ms"
        assert format_duration_ms(0.0504) == "50ms"
