"""Hold domain logic - transactional hold lifecycle.

Creation (single transaction, in this order):
    lock idempotency key → check record → validate → sweep → allocate → record

Transitions (single transaction):
    lock hold row → reconcile expiry → apply state machine

    | status                 | confirm            | cancel             |
    |------------------------|--------------------|--------------------|
    | HOLD_CREATED, live     | → CONFIRMED        | → CANCELLED        |
    | HOLD_CREATED, overdue  | → EXPIRED, raise   | → EXPIRED, raise   |
    | CONFIRMED              | no-op              | → CANCELLED        |
    | CANCELLED              | status conflict    | no-op              |
    | EXPIRED                | expired            | expired            |

Lock order is always advisory key lock → overdue hold rows (sweep, id
order, waits on locked rows) → room rows (skip locked) → hold row.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Iterator

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from roomhold.domain.availability import allocate_room
from roomhold.domain.errors import (
    HoldExpiredError,
    HoldNotFoundError,
    HoldStatusConflictError,
    IdempotencyKeyConflictError,
    InvalidRequestError,
    NoAvailabilityError,
)
from roomhold.domain.expire_holds import expire_holds
from roomhold.domain.models import (
    CreateHoldRequest,
    HoldResponse,
    HoldStatus,
    can_transition,
)
from roomhold.infra.db import advisory_xact_lock, savepoint, txn
from roomhold.infra.hashing import advisory_lock_key, hash_hold_request
from roomhold.infra.repositories.holds_repository import get_hold, update_hold_status
from roomhold.infra.repositories.idempotency_repository import find_record, insert_record
from roomhold.infra.settings import HoldSettings, load_settings
from roomhold.infra.time import Clock, format_timestamp, utc_now
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

logger = get_logger(__name__)

IDEMPOTENCY_SCOPE = "reservation-hold:create"


def parse_uuid(value: str, field: str) -> str:
    """Validate a UUID string and return its canonical form.

    Raises:
        InvalidRequestError: If value is not a valid UUID.
    """
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, AttributeError, TypeError):
        raise InvalidRequestError(f"{field} must be a valid UUID") from None


def key_prefix(idempotency_key: str) -> str:
    """Loggable form of an idempotency key: its first 8 characters."""
    return idempotency_key[:8] if len(idempotency_key) >= 8 else idempotency_key


def _to_response(hold: dict) -> HoldResponse:
    return HoldResponse(
        hold_id=hold["id"],
        room_id=hold["room_id"],
        status=hold["status"],
        expires_at=format_timestamp(hold["expires_at"]),
    )


class HoldService:
    """Hold lifecycle orchestration.

    Clock and settings are explicit so the state machine can be driven with
    injected time in tests. Every public method runs in its own transaction
    unless a cursor of an enclosing transaction is passed in.
    """

    def __init__(
        self,
        settings: HoldSettings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.settings = settings or load_settings()
        self.clock = clock

    @contextmanager
    def _transaction(self, cur: PgCursor | None) -> Iterator[PgCursor]:
        if cur is not None:
            yield cur
        else:
            with txn() as c:
                yield c

    # ── creation ─────────────────────────────────────────

    def create_hold(
        self,
        idempotency_key: str,
        request: CreateHoldRequest,
        *,
        cur: PgCursor | None = None,
    ) -> HoldResponse:
        """Create a hold, or replay the response recorded for the key.

        Args:
            idempotency_key: Client-supplied key scoping retries.
            request: Validated create-hold payload.
            cur: Optional cursor of an enclosing transaction.

        Returns:
            HoldResponse (status HOLD_CREATED, or the recorded response on replay).

        Raises:
            InvalidRequestError: Blank key or malformed hotel id.
            IdempotencyKeyConflictError: Key already used for a different request.
            NoAvailabilityError: No active room is free for the stay range.
        """
        if not idempotency_key or not idempotency_key.strip():
            raise InvalidRequestError("Idempotency-Key must not be blank")

        request_hash = hash_hold_request(
            request.hotel_id,
            request.guest_name,
            request.guest_phone,
            request.check_in,
            request.check_out,
        )

        with self._transaction(cur) as c:
            # Step 1: Serialize concurrent requests carrying the same key
            advisory_xact_lock(c, advisory_lock_key(IDEMPOTENCY_SCOPE, idempotency_key))

            # Step 2: Replay or reject on a recorded key
            existing = find_record(c, scope=IDEMPOTENCY_SCOPE, idem_key=idempotency_key)
            if existing is not None:
                if existing.request_hash != request_hash:
                    logger.warning(
                        "idempotency key reused with different payload",
                        extra={
                            "extra_fields": safe_log_context(
                                idempotency_key_prefix=key_prefix(idempotency_key),
                            )
                        },
                    )
                    raise IdempotencyKeyConflictError()
                logger.info(
                    "idempotent replay for create hold",
                    extra={
                        "extra_fields": safe_log_context(
                            idempotency_key_prefix=key_prefix(idempotency_key),
                            hold_id=existing.response.get("holdId"),
                        )
                    },
                )
                return HoldResponse.model_validate(existing.response)

            # Step 3: Validate
            hotel_id = parse_uuid(request.hotel_id, "hotelId")

            # Step 4: Sweep so stale holds never block this allocation
            now = self.clock()
            expire_holds(now=now, cur=c)

            # Steps 5-6: Allocate, then record the outcome for future retries.
            # Both sit in one savepoint so a lost recording race discards
            # this attempt's hold while keeping the sweep.
            expires_at = now + self.settings.ttl
            try:
                with savepoint(c):
                    allocation = allocate_room(
                        c,
                        hotel_id=hotel_id,
                        check_in=request.check_in,
                        check_out=request.check_out,
                        guest_name=request.guest_name,
                        guest_phone=request.guest_phone,
                        expires_at=expires_at,
                        now=now,
                    )
                    if allocation is None:
                        logger.info(
                            "no availability for hold",
                            extra={
                                "extra_fields": safe_log_context(
                                    hotel_id=hotel_id,
                                    check_in=request.check_in.isoformat(),
                                    check_out=request.check_out.isoformat(),
                                )
                            },
                        )
                        raise NoAvailabilityError()

                    response = HoldResponse(
                        hold_id=allocation.hold_id,
                        room_id=allocation.room_id,
                        status=HoldStatus.HOLD_CREATED,
                        expires_at=format_timestamp(expires_at),
                    )
                    insert_record(
                        c,
                        scope=IDEMPOTENCY_SCOPE,
                        idem_key=idempotency_key,
                        request_hash=request_hash,
                        response=response.to_wire(),
                    )
            except pg_errors.UniqueViolation:
                recorded = find_record(c, scope=IDEMPOTENCY_SCOPE, idem_key=idempotency_key)
                if recorded is not None and recorded.request_hash == request_hash:
                    logger.info(
                        "idempotency key recorded concurrently, replaying",
                        extra={
                            "extra_fields": safe_log_context(
                                idempotency_key_prefix=key_prefix(idempotency_key),
                            )
                        },
                    )
                    return HoldResponse.model_validate(recorded.response)
                raise IdempotencyKeyConflictError() from None

            logger.info(
                "hold created",
                extra={
                    "extra_fields": safe_log_context(
                        hold_id=allocation.hold_id,
                        room_id=allocation.room_id,
                        hotel_id=hotel_id,
                        expires_at=response.expires_at,
                    )
                },
            )
            return response

    # ── transitions ──────────────────────────────────────

    def confirm_hold(self, hold_id: str, *, cur: PgCursor | None = None) -> HoldResponse:
        """Confirm a live hold.

        Raises:
            InvalidRequestError: Malformed hold id.
            HoldNotFoundError: No such hold.
            HoldExpiredError: Hold is EXPIRED or overdue (marked EXPIRED first).
            HoldStatusConflictError: Hold is CANCELLED.
        """
        return self._transition(hold_id, HoldStatus.CONFIRMED, cur=cur)

    def cancel_hold(self, hold_id: str, *, cur: PgCursor | None = None) -> HoldResponse:
        """Cancel a live or confirmed hold.

        Raises:
            InvalidRequestError: Malformed hold id.
            HoldNotFoundError: No such hold.
            HoldExpiredError: Hold is EXPIRED or overdue (marked EXPIRED first).
        """
        return self._transition(hold_id, HoldStatus.CANCELLED, cur=cur)

    def _transition(
        self,
        hold_id: str,
        target: HoldStatus,
        *,
        cur: PgCursor | None,
    ) -> HoldResponse:
        hold_uuid = parse_uuid(hold_id, "holdId")
        expired_error: HoldExpiredError | None = None

        with self._transaction(cur) as c:
            hold = get_hold(c, hold_uuid, lock=True)
            if hold is None:
                raise HoldNotFoundError(f"Hold {hold_uuid} not found")

            now = self.clock()
            status = hold["status"]

            if status == HoldStatus.HOLD_CREATED and hold["expires_at"] <= now:
                # Lazy expiry: persist EXPIRED, then report it once committed
                update_hold_status(c, hold_id=hold_uuid, status=HoldStatus.EXPIRED, now=now)
                expired_error = HoldExpiredError()
                logger.info(
                    "hold expired on transition",
                    extra={
                        "extra_fields": safe_log_context(
                            hold_id=hold_uuid,
                            requested=target.value,
                        )
                    },
                )
            elif status == HoldStatus.EXPIRED:
                raise HoldExpiredError()
            elif status == target:
                # Confirm on CONFIRMED / cancel on CANCELLED
                return _to_response(hold)
            elif not can_transition(status, target):
                raise HoldStatusConflictError(
                    f"Cannot move hold from {status.value} to {target.value}"
                )
            else:
                update_hold_status(c, hold_id=hold_uuid, status=target, now=now)
                hold["status"] = target
                logger.info(
                    "hold transitioned",
                    extra={
                        "extra_fields": safe_log_context(
                            hold_id=hold_uuid,
                            from_status=status.value,
                            to_status=target.value,
                        )
                    },
                )
                return _to_response(hold)

        raise expired_error
