"""FastAPI application factory with role-based route mounting."""

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Literal

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from roomhold.domain.errors import HoldError, InvalidRequestError
from roomhold.domain.holds import HoldService
from roomhold.domain.sweeper import ExpirySweeper
from roomhold.infra.settings import HoldSettings, load_settings
from roomhold.infra.time import Clock, utc_now
from roomhold.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

from .routers import public, worker

AppRole = Literal["public", "worker"]

logger = get_logger(__name__)


def _error_body(code: str, message: str) -> dict:
    return {"code": code, "message": message}


def create_app(
    role: AppRole | None = None,
    *,
    settings: HoldSettings | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Create FastAPI app with routes based on APP_ROLE.

    Args:
        role: Explicit role override. If None, reads from APP_ROLE env var.
              Defaults to "public" if env var is not set.
        settings: Hold settings. If None, loaded from the environment.
        clock: Clock shared by the hold service and the sweeper.

    Returns:
        Configured FastAPI application. The background expiry sweeper runs
        for the app's lifespan when settings.sweeper_enabled is true.
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = None
        if settings.sweeper_enabled:
            sweeper = ExpirySweeper(settings.expire_interval_seconds, clock=clock)
            sweeper.start()
        app.state.sweeper = sweeper
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.stop()

    app = FastAPI(
        title="Room Hold Engine",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hold_service = HoldService(settings=settings, clock=clock)
    app.state.sweeper = None

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    @app.exception_handler(HoldError)
    async def hold_error_handler(request: Request, exc: HoldError) -> JSONResponse:
        logger.info(
            "hold request rejected",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    path=request.url.path,
                    code=exc.code,
                )
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        message = "Invalid request: " + ", ".join(fields) if fields else "Invalid request."
        return JSONResponse(
            status_code=InvalidRequestError.status_code,
            content=_error_body(InvalidRequestError.code, message),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled error",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    path=request.url.path,
                )
            },
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "Unexpected error."),
        )

    app.include_router(public.router)

    # Mount worker routes only for worker role
    if role == "worker":
        app.include_router(worker.router)

    return app
