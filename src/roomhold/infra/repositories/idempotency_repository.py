"""Idempotency repository - persistence for idempotency_keys.

A record maps (scope, idem_key) to the request hash and the response that
was returned. Records are written once and never updated.
"""

import json
from dataclasses import dataclass

from psycopg2.extensions import cursor as PgCursor

from roomhold.infra.db import fetchone


@dataclass(frozen=True)
class IdempotencyRecord:
    request_hash: str
    response: dict


def find_record(cur: PgCursor, *, scope: str, idem_key: str) -> IdempotencyRecord | None:
    """Look up the stored outcome for (scope, idem_key).

    Returns:
        IdempotencyRecord or None if the key was never recorded.
    """
    row = fetchone(
        cur,
        """
        SELECT request_hash, response_json
        FROM idempotency_keys
        WHERE scope = %s AND idem_key = %s
        """,
        (scope, idem_key),
    )
    if row is None:
        return None

    response = row[1]
    if isinstance(response, (str, bytes)):
        response = json.loads(response)
    return IdempotencyRecord(request_hash=row[0], response=response or {})


def insert_record(
    cur: PgCursor,
    *,
    scope: str,
    idem_key: str,
    request_hash: str,
    response: dict,
) -> None:
    """Record the outcome for (scope, idem_key).

    Plain INSERT (no ON CONFLICT): a duplicate means another transaction
    won the race, which the caller must resolve by re-reading.

    Raises:
        psycopg2.errors.UniqueViolation: If the key is already recorded.
    """
    cur.execute(
        """
        INSERT INTO idempotency_keys (scope, idem_key, request_hash, response_json)
        VALUES (%s, %s, %s, %s)
        """,
        (scope, idem_key, request_hash, json.dumps(response)),
    )
