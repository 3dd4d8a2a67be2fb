"""Authentication for worker endpoints.

The on-demand sweep (/tasks/holds/expire) is triggered by Cloud Scheduler
or Cloud Tasks with a Google-signed OIDC token. Local development may use
a shared secret header instead, but only when the configured audience is
the local-dev audience.

Environment:
- TASKS_OIDC_AUDIENCE: expected token audience (required, fail closed)
- TASKS_OIDC_SERVICE_ACCOUNT: optional expected caller e-mail
- INTERNAL_TASK_SECRET: local-dev shared secret
"""

from __future__ import annotations

import hmac
import os

from fastapi import Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

logger = get_logger(__name__)

LOCAL_DEV_AUDIENCE = "roomhold-tasks-local"
INTERNAL_SECRET_HEADER = "X-Internal-Task-Secret"


def extract_bearer_token(request: Request) -> str | None:
    """Return the Bearer token from the Authorization header, if any."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        return None
    return token


def verify_oidc_token(token: str) -> bool:
    """Verify a Google-signed OIDC token against TASKS_OIDC_AUDIENCE.

    Returns False (never raises) on any verification failure, and when the
    audience is not configured.
    """
    audience = os.environ.get("TASKS_OIDC_AUDIENCE")
    if not audience:
        logger.error(
            "worker auth rejected: TASKS_OIDC_AUDIENCE not configured",
            extra={"extra_fields": safe_log_context(reason="missing_audience_env")},
        )
        return False

    try:
        claims = id_token.verify_oauth2_token(
            token, google_requests.Request(), audience=audience
        )
    except ValueError as exc:
        logger.warning(
            "worker auth rejected: invalid OIDC token",
            extra={"extra_fields": safe_log_context(error=str(exc))},
        )
        return False

    expected_account = os.environ.get("TASKS_OIDC_SERVICE_ACCOUNT")
    if expected_account and claims.get("email") != expected_account:
        logger.warning(
            "worker auth rejected: unexpected service account",
            extra={"extra_fields": safe_log_context(reason="service_account_mismatch")},
        )
        return False

    return True


def _local_secret_matches(request: Request) -> bool:
    secret = os.environ.get("INTERNAL_TASK_SECRET", "")
    provided = request.headers.get(INTERNAL_SECRET_HEADER, "")
    return bool(secret) and hmac.compare_digest(secret, provided)


def verify_task_auth(request: Request) -> bool:
    """Authenticate a worker request (OIDC, or shared secret in local dev)."""
    if os.environ.get("TASKS_OIDC_AUDIENCE") == LOCAL_DEV_AUDIENCE and _local_secret_matches(
        request
    ):
        return True

    token = extract_bearer_token(request)
    if token is None:
        logger.warning(
            "worker auth rejected: missing bearer token",
            extra={"extra_fields": safe_log_context(reason="missing_bearer_token")},
        )
        return False
    return verify_oidc_token(token)
