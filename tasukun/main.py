"""tasukun - personal task manager with Google Calendar and Slack integration."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tasukun.core.errors import ErrorCode, ErrorResponse, TasukunError, classify_error_with_response
from tasukun.core.logging import configure_logfire, instrument_fastapi
from tasukun.core.schema import init_db
from tasukun.interface.google_router import router as google_router
from tasukun.interface.tasks_router import router as tasks_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so startup logs are captured
    configure_logfire()

    await init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="tasukun",
    description="Personal task manager with Google Calendar and Slack integration",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(tasks_router)
app.include_router(google_router)


def _error_response(exc: Exception) -> JSONResponse:
    status_code, body = classify_error_with_response(exc)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(TasukunError)
async def handle_tasukun_error(request: Request, exc: TasukunError) -> JSONResponse:
    """Translate domain errors into their HTTP response."""
    logger.warning(
        "request_failed",
        extra={"path": request.url.path, "code": exc.code, "severity": exc.severity.value, "error": exc.message},
    )
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query strings are client errors."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    )
    logger.warning("request_validation_failed", extra={"path": request.url.path, "error": details})
    body = ErrorResponse(error=details or "Invalid request", code=ErrorCode.ERR_VALIDATION)
    return JSONResponse(status_code=400, content=body.model_dump())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is an internal error."""
    logger.exception("request_crashed", extra={"path": request.url.path})
    return _error_response(exc)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
