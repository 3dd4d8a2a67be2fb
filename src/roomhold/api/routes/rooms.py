"""Rooms endpoint (read-only catalog view).

GET /api/v1/rooms?hotelId=... → list rooms of a hotel
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from roomhold.domain.holds import parse_uuid
from roomhold.domain.models import RoomSummary
from roomhold.infra.db import txn
from roomhold.infra.repositories.rooms_repository import list_rooms as _list_rooms

router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])


@router.get("", response_model=list[RoomSummary], response_model_by_alias=True)
def list_rooms(
    hotel_id: str = Query(..., alias="hotelId", description="Hotel UUID"),
) -> list[RoomSummary]:
    """List rooms of a hotel, active and inactive."""
    hotel_uuid = parse_uuid(hotel_id, "hotelId")
    with txn() as cur:
        rooms = _list_rooms(cur, hotel_uuid)
    return [
        RoomSummary(
            room_id=room["id"],
            hotel_id=room["hotel_id"],
            room_type=room["room_type"],
            is_active=room["is_active"],
        )
        for room in rooms
    ]
