"""Availability allocator - pick a free room and hold it atomically.

Overlap formula (half-open ranges):  existing && [check_in, check_out)
which is (existing.check_in < new.check_out) AND (new.check_in < existing.check_out).
Touching ranges (check-out A == check-in B) do not conflict.

Blocking holds: CONFIRMED, or HOLD_CREATED with expires_at > now. Expired
HOLD_CREATED rows never block, whether or not the sweep has reached them.

Two layers of protection:
1. Candidate rooms are selected FOR UPDATE OF r SKIP LOCKED, so two
   allocators never pick the same room concurrently; an allocator facing
   a locked room moves on to the next candidate instead of waiting.
2. The no_active_hold_overlap exclusion constraint. A violation here means
   the selection raced a just-committed hold; the selection is retried once
   with a fresh snapshot and a second violation counts as no availability.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from roomhold.domain.models import HoldStatus
from roomhold.infra.db import for_update, savepoint
from roomhold.infra.repositories.holds_repository import insert_hold
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

logger = get_logger(__name__)

# One retry after a constraint race, then give up.
MAX_ATTEMPTS = 2

_CANDIDATE_QUERY = """
    SELECT r.id
    FROM rooms r
    WHERE r.hotel_id = %s
      AND r.is_active = true
      AND NOT EXISTS (
        SELECT 1
        FROM reservation_holds h
        WHERE h.room_id = r.id
          AND (
            h.status = %s
            OR (h.status = %s AND h.expires_at > %s)
          )
          AND h.stay_range && tstzrange(%s, %s, '[)')
      )
    ORDER BY r.id
    LIMIT 1
"""


@dataclass(frozen=True)
class Allocation:
    hold_id: str
    room_id: str


def find_available_room(
    cur: PgCursor,
    *,
    hotel_id: str,
    check_in: datetime,
    check_out: datetime,
    now: datetime,
) -> str | None:
    """Select and lock one free, active room of the hotel.

    Rooms locked by another in-flight allocation are skipped rather than
    waited on.

    Returns:
        Room UUID string (row locked until the transaction ends) or None.
    """
    row = for_update(
        cur,
        _CANDIDATE_QUERY,
        (
            hotel_id,
            HoldStatus.CONFIRMED.value,
            HoldStatus.HOLD_CREATED.value,
            now,
            check_in,
            check_out,
        ),
        of="r",
        skip_locked=True,
    )
    if row is None:
        return None
    return str(row[0])


def allocate_room(
    cur: PgCursor,
    *,
    hotel_id: str,
    check_in: datetime,
    check_out: datetime,
    guest_name: str,
    guest_phone: str,
    expires_at: datetime,
    now: datetime,
) -> Allocation | None:
    """Reserve one free room of a hotel by inserting a HOLD_CREATED hold.

    Must run inside the caller's transaction: the room row lock and the new
    hold commit or roll back together.

    Args:
        cur: Database cursor (within transaction).
        hotel_id: Hotel UUID.
        check_in: Stay start (inclusive).
        check_out: Stay end (exclusive).
        guest_name: Guest full name.
        guest_phone: Guest phone number.
        expires_at: Expiry stamped on the new hold.
        now: Reference time for deciding whether a HOLD_CREATED hold still blocks.

    Returns:
        Allocation(hold_id, room_id), or None when no room qualifies.
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        room_id = find_available_room(
            cur,
            hotel_id=hotel_id,
            check_in=check_in,
            check_out=check_out,
            now=now,
        )
        if room_id is None:
            return None

        try:
            with savepoint(cur):
                hold_id = insert_hold(
                    cur,
                    hotel_id=hotel_id,
                    room_id=room_id,
                    guest_name=guest_name,
                    guest_phone=guest_phone,
                    check_in=check_in,
                    check_out=check_out,
                    expires_at=expires_at,
                    now=now,
                )
        except (pg_errors.ExclusionViolation, pg_errors.UniqueViolation):
            logger.warning(
                "hold insert lost overlap race",
                extra={
                    "extra_fields": safe_log_context(
                        hotel_id=hotel_id,
                        room_id=room_id,
                        attempt=attempt,
                    )
                },
            )
            continue

        return Allocation(hold_id=hold_id, room_id=room_id)

    return None
