"""Hashing utilities for idempotency and advisory locking.

- hash_hold_request(): SHA-256 fingerprint of a create-hold request,
  stored alongside the idempotency record to detect key reuse.
- advisory_lock_key(): stable signed 64-bit key for pg_advisory_xact_lock.
"""

import hashlib
from datetime import datetime


def _render(value: object) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def hash_hold_request(
    hotel_id: str,
    guest_name: str,
    guest_phone: str,
    check_in: datetime,
    check_out: datetime,
) -> str:
    """Fingerprint a create-hold request.

    Fields are joined with "|" in a fixed order, so any change in any field
    (including the timestamp offset rendering) yields a different hash.

    Returns:
        Lowercase hex SHA-256 digest (64 chars).
    """
    payload = "|".join(
        _render(v) for v in (hotel_id, guest_name, guest_phone, check_in, check_out)
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def advisory_lock_key(scope: str, key: str) -> int:
    """Derive a signed 64-bit advisory lock key from scope and key.

    Uses the first 8 bytes of SHA-256("{scope}:{key}") so that the same
    idempotency key always maps to the same lock.
    """
    digest = hashlib.sha256(f"{scope}:{key}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=True)
