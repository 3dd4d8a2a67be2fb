"""Time utilities for consistent timestamp handling."""

from datetime import datetime, timezone
from typing import Callable

# Injectable clock: any zero-arg callable returning an aware UTC datetime.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def fixed_clock(at: datetime) -> Clock:
    """Return a clock frozen at the given instant (tests, replays)."""
    if at.tzinfo is None:
        raise ValueError("fixed_clock requires a timezone-aware datetime")
    return lambda: at


def format_timestamp(value: datetime) -> str:
    """Render an aware timestamp as ISO-8601 UTC with a trailing Z."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
