"""Shared pytest fixtures for hold engine tests."""
import sys
sys.dont_write_bytecode = True

from datetime import datetime, timezone  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from roomhold.infra.settings import HoldSettings  # noqa: E402

NOW = datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    """Settings with the background sweeper off (no threads in unit tests)."""
    return HoldSettings(ttl_minutes=15, expire_interval_ms=60_000, sweeper_enabled=False)


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()
