"""Reservation hold endpoints.

POST /api/v1/reservations/holds                  → create (201, Idempotency-Key required)
POST /api/v1/reservations/holds/{hold_id}/confirm → confirm (200)
POST /api/v1/reservations/holds/{hold_id}/cancel  → cancel  (200)

Domain errors are translated to {"code", "message"} bodies by the app's
HoldError handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Path, Request

from roomhold.domain.holds import HoldService, key_prefix
from roomhold.domain.models import CreateHoldRequest, HoldResponse
from roomhold.observability.correlation import get_correlation_id
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/reservations/holds", tags=["holds"])


def get_hold_service(request: Request) -> HoldService:
    """HoldService configured by create_app (overridable in tests)."""
    return request.app.state.hold_service


@router.post("", status_code=201, response_model=HoldResponse, response_model_by_alias=True)
def create_hold(
    body: CreateHoldRequest,
    idempotency_key: str = Header(..., alias="Idempotency-Key"),
    service: HoldService = Depends(get_hold_service),
) -> HoldResponse:
    """Create a temporary hold on one free room of the hotel.

    Same key + same payload returns the recorded response; same key with a
    different payload is rejected with IDEMPOTENCY_KEY_CONFLICT.
    """
    logger.info(
        "create hold requested",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                hotel_id=body.hotel_id,
                idempotency_key_prefix=key_prefix(idempotency_key),
            )
        },
    )
    return service.create_hold(idempotency_key, body)


@router.post("/{hold_id}/confirm", response_model=HoldResponse, response_model_by_alias=True)
def confirm_hold(
    hold_id: str = Path(..., description="Hold UUID"),
    service: HoldService = Depends(get_hold_service),
) -> HoldResponse:
    """Confirm a hold before it expires."""
    return service.confirm_hold(hold_id)


@router.post("/{hold_id}/cancel", response_model=HoldResponse, response_model_by_alias=True)
def cancel_hold(
    hold_id: str = Path(..., description="Hold UUID"),
    service: HoldService = Depends(get_hold_service),
) -> HoldResponse:
    """Cancel a hold or a confirmed reservation."""
    return service.cancel_hold(hold_id)
