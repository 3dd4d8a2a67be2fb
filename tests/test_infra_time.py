"""Tests for time utilities."""

from datetime import datetime, timedelta, timezone

import pytest


class TestUtcNow:
    def test_returns_utc_datetime(self):
        from roomhold.infra.time import utc_now

        assert utc_now().tzinfo == timezone.utc

    def test_returns_current_time(self):
        from roomhold.infra.time import utc_now

        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)
        assert before <= now <= after


class TestFixedClock:
    def test_always_returns_instant(self):
        from roomhold.infra.time import fixed_clock

        at = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
        clock = fixed_clock(at)
        assert clock() == at
        assert clock() == at

    def test_rejects_naive(self):
        from roomhold.infra.time import fixed_clock

        with pytest.raises(ValueError):
            fixed_clock(datetime(2026, 2, 1, 12, 0))


class TestFormatTimestamp:
    def test_utc_gets_z_suffix(self):
        from roomhold.infra.time import format_timestamp

        value = datetime(2026, 2, 1, 12, 15, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2026-02-01T12:15:00Z"

    def test_offset_normalized_to_utc(self):
        from roomhold.infra.time import format_timestamp

        value = datetime(2026, 2, 1, 15, 15, tzinfo=timezone(timedelta(hours=3)))
        assert format_timestamp(value) == "2026-02-01T12:15:00Z"
