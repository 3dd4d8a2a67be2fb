"""HTTP tests for the hold endpoints.

The HoldService is replaced through dependency_overrides, so these cover
request parsing, status codes and the {"code", "message"} error mapping.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from roomhold.api.factory import create_app
from roomhold.api.routes.holds import get_hold_service
from roomhold.domain.errors import (
    HoldExpiredError,
    HoldNotFoundError,
    HoldStatusConflictError,
    IdempotencyKeyConflictError,
    InvalidRequestError,
    NoAvailabilityError,
)
from roomhold.domain.models import CreateHoldRequest, HoldResponse, HoldStatus

HOTEL = "22222222-2222-2222-2222-222222222222"
HOLD = "bbbbbbbb-0000-0000-0000-000000000001"
ROOM = "aaaaaaaa-0000-0000-0000-000000000001"

BODY = {
    "hotelId": HOTEL,
    "guestName": "Mwombeki Lubere",
    "guestPhone": "+255748051333",
    "checkIn": "2026-02-01T12:00:00Z",
    "checkOut": "2026-02-03T10:00:00Z",
}


def _response(status=HoldStatus.HOLD_CREATED):
    return HoldResponse(
        hold_id=HOLD,
        room_id=ROOM,
        status=status,
        expires_at="2026-01-31T09:15:00Z",
    )


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service, settings):
    app = create_app(role="public", settings=settings)
    app.dependency_overrides[get_hold_service] = lambda: service
    return TestClient(app, raise_server_exceptions=False)


class TestCreateHold:
    def test_created(self, client, service):
        service.create_hold.return_value = _response()

        response = client.post(
            "/api/v1/reservations/holds", json=BODY, headers={"Idempotency-Key": "k1"}
        )

        assert response.status_code == 201
        assert response.json() == {
            "holdId": HOLD,
            "roomId": ROOM,
            "status": "HOLD_CREATED",
            "expiresAt": "2026-01-31T09:15:00Z",
        }
        key, request = service.create_hold.call_args[0]
        assert key == "k1"
        assert isinstance(request, CreateHoldRequest)
        assert request.hotel_id == HOTEL
        assert request.guest_phone == "+255748051333"

    def test_logs_key_prefix_only(self, client, service):
        service.create_hold.return_value = _response()

        with patch("roomhold.api.routes.holds.logger") as logger:
            client.post(
                "/api/v1/reservations/holds",
                json=BODY,
                headers={"Idempotency-Key": "abcdefgh-secret-tail"},
            )

        fields = logger.info.call_args.kwargs["extra"]["extra_fields"]
        assert fields["idempotency_key_prefix"] == "abcdefgh"
        assert "secret-tail" not in str(logger.info.call_args)

    def test_missing_idempotency_key(self, client, service):
        response = client.post("/api/v1/reservations/holds", json=BODY)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"
        service.create_hold.assert_not_called()

    def test_check_out_not_after_check_in(self, client, service):
        body = {**BODY, "checkOut": BODY["checkIn"]}
        response = client.post(
            "/api/v1/reservations/holds", json=body, headers={"Idempotency-Key": "k1"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"
        service.create_hold.assert_not_called()

    @pytest.mark.parametrize("field", ["guestName", "guestPhone", "hotelId", "checkIn"])
    def test_missing_field(self, client, service, field):
        body = {k: v for k, v in BODY.items() if k != field}
        response = client.post(
            "/api/v1/reservations/holds", json=body, headers={"Idempotency-Key": "k1"}
        )
        assert response.status_code == 400
        assert field in response.json()["message"]

    def test_naive_timestamp_rejected(self, client):
        body = {**BODY, "checkIn": "2026-02-01T12:00:00"}
        response = client.post(
            "/api/v1/reservations/holds", json=body, headers={"Idempotency-Key": "k1"}
        )
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "error, status, code",
        [
            (NoAvailabilityError(), 409, "NO_AVAILABILITY"),
            (IdempotencyKeyConflictError(), 409, "IDEMPOTENCY_KEY_CONFLICT"),
            (InvalidRequestError("hotelId must be a valid UUID"), 400, "INVALID_REQUEST"),
        ],
    )
    def test_domain_errors(self, client, service, error, status, code):
        service.create_hold.side_effect = error

        response = client.post(
            "/api/v1/reservations/holds", json=BODY, headers={"Idempotency-Key": "k1"}
        )

        assert response.status_code == status
        assert response.json() == {"code": code, "message": error.message}

    def test_unexpected_error_is_500(self, client, service):
        service.create_hold.side_effect = RuntimeError("boom")

        response = client.post(
            "/api/v1/reservations/holds", json=BODY, headers={"Idempotency-Key": "k1"}
        )

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        assert "boom" not in response.text


class TestTransitions:
    def test_confirm(self, client, service):
        service.confirm_hold.return_value = _response(HoldStatus.CONFIRMED)

        response = client.post(f"/api/v1/reservations/holds/{HOLD}/confirm")

        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"
        service.confirm_hold.assert_called_once_with(HOLD)

    def test_cancel(self, client, service):
        service.cancel_hold.return_value = _response(HoldStatus.CANCELLED)

        response = client.post(f"/api/v1/reservations/holds/{HOLD}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

    @pytest.mark.parametrize(
        "error, status, code",
        [
            (HoldNotFoundError(), 404, "HOLD_NOT_FOUND"),
            (HoldExpiredError(), 409, "HOLD_EXPIRED"),
            (HoldStatusConflictError(), 409, "HOLD_STATUS_CONFLICT"),
        ],
    )
    def test_confirm_errors(self, client, service, error, status, code):
        service.confirm_hold.side_effect = error
        response = client.post(f"/api/v1/reservations/holds/{HOLD}/confirm")
        assert response.status_code == status
        assert response.json()["code"] == code


def test_correlation_id_echoed(client, service):
    service.confirm_hold.return_value = _response(HoldStatus.CONFIRMED)
    response = client.post(
        f"/api/v1/reservations/holds/{HOLD}/confirm",
        headers={"X-Correlation-ID": "corr-123"},
    )
    assert response.headers["X-Correlation-ID"] == "corr-123"
