"""Hold engine settings.

Loaded from environment variables:
- HOLD_TTL_MINUTES: hold lifetime before expiry (default 15, minimum 1)
- HOLD_EXPIRE_INTERVAL_MS: background sweep delay (default 60000, minimum 1000)
- HOLD_SWEEPER_ENABLED: start the background sweeper with the app (default true)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

DEFAULT_TTL_MINUTES = 15
MIN_TTL_MINUTES = 1
DEFAULT_EXPIRE_INTERVAL_MS = 60_000
MIN_EXPIRE_INTERVAL_MS = 1_000

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class HoldSettings:
    """Hold lifecycle configuration.

    Attributes:
        ttl_minutes: Minutes a new hold stays HOLD_CREATED before it expires.
        expire_interval_ms: Fixed delay between background expiry sweeps.
        sweeper_enabled: Whether the app lifespan runs the background sweeper.
    """

    ttl_minutes: int = DEFAULT_TTL_MINUTES
    expire_interval_ms: int = DEFAULT_EXPIRE_INTERVAL_MS
    sweeper_enabled: bool = True

    def __post_init__(self) -> None:
        if self.ttl_minutes < MIN_TTL_MINUTES:
            raise ValueError(
                f"ttl_minutes must be >= {MIN_TTL_MINUTES}, got {self.ttl_minutes}"
            )
        if self.expire_interval_ms < MIN_EXPIRE_INTERVAL_MS:
            raise ValueError(
                f"expire_interval_ms must be >= {MIN_EXPIRE_INTERVAL_MS}, "
                f"got {self.expire_interval_ms}"
            )

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.ttl_minutes)

    @property
    def expire_interval_seconds(self) -> float:
        return self.expire_interval_ms / 1000


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(env: Mapping[str, str] | None = None) -> HoldSettings:
    """Build HoldSettings from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ).

    Raises:
        ValueError: If a value is not an integer or is below its minimum.
    """
    if env is None:
        env = os.environ

    return HoldSettings(
        ttl_minutes=_int_env(env, "HOLD_TTL_MINUTES", DEFAULT_TTL_MINUTES),
        expire_interval_ms=_int_env(
            env, "HOLD_EXPIRE_INTERVAL_MS", DEFAULT_EXPIRE_INTERVAL_MS
        ),
        sweeper_enabled=env.get("HOLD_SWEEPER_ENABLED", "true").strip().lower()
        in _TRUTHY,
    )
