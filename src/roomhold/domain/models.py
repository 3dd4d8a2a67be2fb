"""Hold domain - status enum and request/response schemas.

Wire names are camelCase (hotelId, checkIn, ...); Python code may use
either the field names or the aliases.
"""

from __future__ import annotations

from enum import Enum

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ── Enums ─────────────────────────────────────────────────


class HoldStatus(str, Enum):
    HOLD_CREATED = "HOLD_CREATED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


ALLOWED_TRANSITIONS: dict[HoldStatus, frozenset[HoldStatus]] = {
    HoldStatus.HOLD_CREATED: frozenset(
        {HoldStatus.CONFIRMED, HoldStatus.CANCELLED, HoldStatus.EXPIRED}
    ),
    HoldStatus.CONFIRMED: frozenset({HoldStatus.CANCELLED}),
    HoldStatus.CANCELLED: frozenset(),
    HoldStatus.EXPIRED: frozenset(),
}


def can_transition(current: HoldStatus, target: HoldStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


# ── Pydantic Schemas ─────────────────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class CreateHoldRequest(_CamelModel):
    """Create-hold payload.

    hotel_id stays a string here: a malformed id is reported by the
    hold service as INVALID_REQUEST rather than as a schema error.
    """

    hotel_id: str = Field(min_length=1)
    guest_name: str = Field(min_length=1)
    guest_phone: str = Field(min_length=1)
    check_in: AwareDatetime
    check_out: AwareDatetime

    @model_validator(mode="after")
    def _stay_range_valid(self) -> "CreateHoldRequest":
        for name in ("hotel_id", "guest_name", "guest_phone"):
            if not getattr(self, name).strip():
                raise ValueError(f"{to_camel(name)} must not be blank")
        if self.check_out <= self.check_in:
            raise ValueError("checkOut must be after checkIn")
        return self


class HoldResponse(_CamelModel):
    hold_id: str
    room_id: str
    status: HoldStatus
    expires_at: str

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class RoomSummary(_CamelModel):
    room_id: str
    hotel_id: str
    room_type: str
    is_active: bool
