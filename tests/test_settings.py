"""Tests for hold settings loading and validation."""

from datetime import timedelta

import pytest

from roomhold.infra.settings import HoldSettings, load_settings


class TestDefaults:
    def test_defaults_when_env_empty(self):
        s = load_settings({})
        assert s.ttl_minutes == 15
        assert s.expire_interval_ms == 60_000
        assert s.sweeper_enabled is True

    def test_ttl_property(self):
        assert HoldSettings(ttl_minutes=20).ttl == timedelta(minutes=20)

    def test_interval_seconds(self):
        assert HoldSettings(expire_interval_ms=2500).expire_interval_seconds == 2.5


class TestFromEnv:
    def test_reads_values(self):
        s = load_settings(
            {
                "HOLD_TTL_MINUTES": "5",
                "HOLD_EXPIRE_INTERVAL_MS": "1000",
                "HOLD_SWEEPER_ENABLED": "false",
            }
        )
        assert s.ttl_minutes == 5
        assert s.expire_interval_ms == 1000
        assert s.sweeper_enabled is False

    def test_blank_value_uses_default(self):
        assert load_settings({"HOLD_TTL_MINUTES": "  "}).ttl_minutes == 15

    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
    def test_sweeper_truthy(self, raw):
        assert load_settings({"HOLD_SWEEPER_ENABLED": raw}).sweeper_enabled is True

    def test_non_integer_rejected(self):
        with pytest.raises(ValueError, match="HOLD_TTL_MINUTES"):
            load_settings({"HOLD_TTL_MINUTES": "fifteen"})


class TestMinimums:
    def test_ttl_below_minimum(self):
        with pytest.raises(ValueError, match="ttl_minutes"):
            HoldSettings(ttl_minutes=0)

    def test_interval_below_minimum(self):
        with pytest.raises(ValueError, match="expire_interval_ms"):
            load_settings({"HOLD_EXPIRE_INTERVAL_MS": "999"})

    def test_minimums_accepted(self):
        s = HoldSettings(ttl_minutes=1, expire_interval_ms=1000)
        assert s.ttl_minutes == 1
