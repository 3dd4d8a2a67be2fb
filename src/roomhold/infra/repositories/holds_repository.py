"""Holds repository - persistence for reservation_holds.

Uses raw SQL with psycopg2 (no ORM). Rows are never deleted: terminal
holds stay for audit and idempotent replay.
"""

from datetime import datetime

from psycopg2.extensions import cursor as PgCursor

from roomhold.domain.models import HoldStatus
from roomhold.infra.db import fetchone, for_update

_HOLD_COLUMNS = """
    id, hotel_id, room_id, status, check_in, check_out, expires_at,
    confirmed_at, cancelled_at, expired_at, created_at, updated_at
"""

# Column that records the moment a hold entered each terminal/confirmed status.
_STATUS_MARKERS = {
    HoldStatus.CONFIRMED: "confirmed_at",
    HoldStatus.CANCELLED: "cancelled_at",
    HoldStatus.EXPIRED: "expired_at",
}


def _row_to_hold(row: tuple) -> dict:
    return {
        "id": str(row[0]),
        "hotel_id": str(row[1]),
        "room_id": str(row[2]),
        "status": HoldStatus(row[3]),
        "check_in": row[4],
        "check_out": row[5],
        "expires_at": row[6],
        "confirmed_at": row[7],
        "cancelled_at": row[8],
        "expired_at": row[9],
        "created_at": row[10],
        "updated_at": row[11],
    }


def insert_hold(
    cur: PgCursor,
    *,
    hotel_id: str,
    room_id: str,
    guest_name: str,
    guest_phone: str,
    check_in: datetime,
    check_out: datetime,
    expires_at: datetime,
    now: datetime,
) -> str:
    """Insert a HOLD_CREATED hold for an allocated room.

    The no_active_hold_overlap exclusion constraint rejects the row if an
    active hold on the same room overlaps [check_in, check_out).

    Args:
        cur: Database cursor (within transaction).
        hotel_id: Hotel UUID.
        room_id: Room UUID (already locked by the allocator).
        guest_name: Guest full name.
        guest_phone: Guest phone number.
        check_in: Stay start (inclusive).
        check_out: Stay end (exclusive).
        expires_at: Moment the hold lapses unless confirmed.
        now: Creation timestamp.

    Returns:
        UUID string of the new hold.

    Raises:
        psycopg2.errors.ExclusionViolation: If an overlapping active hold exists.
    """
    cur.execute(
        """
        INSERT INTO reservation_holds (
            hotel_id, room_id, guest_name, guest_phone,
            check_in, check_out, status, expires_at,
            created_at, updated_at
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
        """,
        (
            hotel_id,
            room_id,
            guest_name,
            guest_phone,
            check_in,
            check_out,
            HoldStatus.HOLD_CREATED.value,
            expires_at,
            now,
            now,
        ),
    )
    row = cur.fetchone()
    return str(row[0])


def get_hold(cur: PgCursor, hold_id: str, *, lock: bool = False) -> dict | None:
    """Retrieve a hold by ID.

    Args:
        cur: Database cursor.
        hold_id: Hold UUID.
        lock: If True, takes a row lock (FOR UPDATE) until the transaction ends.

    Returns:
        Dict with hold data (guest PII excluded) or None if not found.
    """
    query = f"SELECT {_HOLD_COLUMNS} FROM reservation_holds WHERE id = %s"
    if lock:
        row = for_update(cur, query, (hold_id,))
    else:
        row = fetchone(cur, query, (hold_id,))
    if row is None:
        return None
    return _row_to_hold(row)


def update_hold_status(
    cur: PgCursor,
    *,
    hold_id: str,
    status: HoldStatus,
    now: datetime,
) -> None:
    """Set a hold's status and stamp the matching *_at marker.

    Callers must hold the row lock and have validated the transition.
    """
    marker = _STATUS_MARKERS.get(status)
    assignments = "status = %s, updated_at = %s"
    params: list = [status.value, now]
    if marker:
        assignments += f", {marker} = %s"
        params.append(now)
    params.append(hold_id)

    cur.execute(
        f"""
        UPDATE reservation_holds
        SET {assignments}
        WHERE id = %s
        """,
        params,
    )


def expire_overdue_holds(cur: PgCursor, *, now: datetime) -> int:
    """Flip every HOLD_CREATED hold with expires_at <= now to EXPIRED.

    Rows are locked in id order and a row locked by another transaction
    (a concurrent sweep, a confirm/cancel in flight) is waited on, then
    re-checked. When this returns no overdue hold is left HOLD_CREATED for
    the allocator to trip over on the exclusion constraint.
    Two sweeps queue behind each other instead of splitting the rows.

    Returns:
        Number of holds expired by this call.
    """
    cur.execute(
        """
        UPDATE reservation_holds
        SET status = %s, expired_at = %s, updated_at = %s
        WHERE status = %s
          AND id IN (
            SELECT id
            FROM reservation_holds
            WHERE status = %s
              AND expires_at <= %s
            ORDER BY id
            FOR UPDATE
          )
        """,
        (
            HoldStatus.EXPIRED.value,
            now,
            now,
            HoldStatus.HOLD_CREATED.value,
            HoldStatus.HOLD_CREATED.value,
            now,
        ),
    )
    return cur.rowcount
