"""Expire holds domain logic - bulk expiry sweep.

Flips every HOLD_CREATED hold whose expires_at has passed to EXPIRED.
Idempotent: a second run with the same or a later `now` touches only holds
that became overdue in between. CONFIRMED and terminal holds are never
touched.
"""

from datetime import datetime

from psycopg2.extensions import cursor as PgCursor

from roomhold.infra.db import txn
from roomhold.infra.repositories.holds_repository import expire_overdue_holds
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

logger = get_logger(__name__)


def expire_holds(*, now: datetime, cur: PgCursor | None = None) -> int:
    """Expire overdue holds.

    Args:
        now: Reference time; holds with expires_at <= now are expired.
        cur: Optional cursor of an enclosing transaction (the create-hold
            path sweeps inline). If None, runs in its own transaction.

    Returns:
        Number of holds moved to EXPIRED.
    """
    if cur is not None:
        count = expire_overdue_holds(cur, now=now)
    else:
        with txn() as c:
            count = expire_overdue_holds(c, now=now)

    if count:
        logger.info(
            "holds expired",
            extra={
                "extra_fields": safe_log_context(
                    expired=count,
                    now=now.isoformat(),
                )
            },
        )
    return count
