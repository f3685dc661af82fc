"""
Warehouse Audit Reversal Service: FastAPI application.

This is the entry point for the application.
All routers, the correlation-id middleware, and the error
handlers are registered here.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from warehouse_audit.config import get_settings
from warehouse_audit.errors import ReversalError, ValidationFailed
from warehouse_audit.logging import get_logger, setup_logging
from warehouse_audit.api.health import router as health_router
from warehouse_audit.api.audit_logs import router as audit_logs_router
from warehouse_audit.api.reversals import router as reversals_router
from warehouse_audit.api.repairs import router as repairs_router

settings = get_settings()
setup_logging(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Reversal engine for the warehouse audit ledger",
)


@app.middleware("http")
async def bind_correlation_id(request: Request, call_next):
    """Give every request its own correlation id, in logs and response."""
    correlation_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        correlation_id=correlation_id,
        method=request.method,
        path=request.url.path,
    )
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.exception_handler(ReversalError)
async def reversal_error_handler(request: Request, exc: ReversalError):
    correlation_id = getattr(request.state, "correlation_id", None)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_failed",
        error=exc.code,
        reason=exc.reason,
        step=exc.step,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_payload(correlation_id)),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = ValidationFailed(
        "Malformed request", details=jsonable_encoder(exc.errors())
    )
    return await reversal_error_handler(request, error)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # Runs outside the correlation-id middleware, so the header is set here
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.exception("request_crashed", error=str(exc))
    error = ReversalError("Unexpected internal error")
    headers = {"X-Correlation-ID": correlation_id} if correlation_id else None
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder(error.to_payload(correlation_id)),
        headers=headers,
    )


# Register routers
app.include_router(health_router)
app.include_router(audit_logs_router)
app.include_router(reversals_router)
app.include_router(repairs_router)
