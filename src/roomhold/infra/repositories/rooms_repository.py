"""Rooms repository - read-only access to the room catalog.

Rooms are created and (de)activated elsewhere; this module never writes.
"""

from psycopg2.extensions import cursor as PgCursor

from roomhold.infra.db import fetchall


def list_rooms(cur: PgCursor, hotel_id: str) -> list[dict]:
    """List every room of a hotel, active or not, ordered by id.

    Args:
        cur: Database cursor.
        hotel_id: Hotel UUID.

    Returns:
        List of dicts with id, hotel_id, room_type, is_active.
    """
    rows = fetchall(
        cur,
        """
        SELECT id, hotel_id, room_type, is_active
        FROM rooms
        WHERE hotel_id = %s
        ORDER BY id
        """,
        (hotel_id,),
    )
    return [
        {
            "id": str(row[0]),
            "hotel_id": str(row[1]),
            "room_type": row[2],
            "is_active": bool(row[3]),
        }
        for row in rows
    ]
