"""Worker route for on-demand hold expiry.

POST /tasks/holds/expire runs one expiry sweep with the server clock.
Meant for Cloud Scheduler (or an operator) in addition to the in-process
background sweeper.
"""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from roomhold.api.task_auth import verify_task_auth
from roomhold.domain.expire_holds import expire_holds
from roomhold.infra.time import format_timestamp
from roomhold.observability.correlation import get_correlation_id
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

router = APIRouter(prefix="/tasks/holds", tags=["tasks"])

logger = get_logger(__name__)


@router.post("/expire")
def handle_expire(request: Request) -> JSONResponse:
    """Expire every overdue HOLD_CREATED hold.

    Returns 200 {"ok": true, "expired": n, "now": ...}; safe to call
    repeatedly (a second call with nothing overdue reports 0).
    """
    correlation_id = get_correlation_id()

    if not verify_task_auth(request):
        raise HTTPException(status_code=401, detail="Unauthorized")

    clock = request.app.state.hold_service.clock
    now = clock()

    try:
        expired = expire_holds(now=now)
    except Exception:
        logger.exception(
            "expire-holds task failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "processing failed"},
        )

    logger.info(
        "expire-holds task completed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                expired=expired,
            )
        },
    )
    return JSONResponse(
        status_code=200,
        content={"ok": True, "expired": expired, "now": format_timestamp(now)},
    )
