"""
api/main.py -- FastAPI application entry point for FileVault.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost):
  1. log_requests     -- one log line per request with status and latency.
  2. CORSMiddleware   -- adds CORS headers for the browser client; credentials
     are allowed so the session cookie travels with fetch(..., credentials).
  3. reject_oversized -- 413 on an upload whose Content-Length already exceeds
     the ceiling, before the multipart body is read.

Lifespan opens the stores (user DB, file DB, blob directory) on startup and
closes them on shutdown. Route handlers reach them through app.state, so tests
can swap in isolated instances by replacing the lifespan.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorDetail, ErrorResponse, FieldErrorModel, HealthResponse, field_errors
from api.routes.v1.auth import router as auth_router
from api.routes.v1.files import router as files_router
from auth.store import UserStore
from core.config import get_settings
from core.errors import AppError, FieldError, PayloadTooLarge, ValidationFailed
from storage.blobs import LocalBlobStore
from storage.store import FileStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("filevault.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores before the first request and close them after the last.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The stores are explicit handles on app.state, not module
    globals, so each test can run against its own instances.
    """
    logger.info("FileVault API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.file_store = FileStore(_settings.database_url)
    app.state.blob_store = LocalBlobStore(_settings.storage_dir)
    logger.info("Stores initialized (blobs at %s)", app.state.blob_store.root)

    yield

    app.state.file_store.close()
    app.state.user_store.close()
    logger.info("FileVault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="FileVault API",
    description="Per-user file storage with cookie-based sessions.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

_UPLOAD_PATH = "/api/v1/upload"
# Room for multipart boundaries and part headers on top of the file bytes.
_MULTIPART_OVERHEAD = 16 * 1024


@app.middleware("http")
async def reject_oversized(request: Request, call_next):
    if request.method == "POST" and request.url.path == _UPLOAD_PATH:
        length = request.headers.get("content-length", "")
        limit = get_settings().max_upload_bytes + _MULTIPART_OVERHEAD
        if length.isdigit() and int(length) > limit:
            return _error_response(413, ErrorDetail(code=PayloadTooLarge.code, message=PayloadTooLarge.message))
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(files_router, prefix="/api/v1", tags=["Files"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(exclude_none=True),
    )


def _field_models(errors: list[FieldError]) -> list[FieldErrorModel]:
    return [FieldErrorModel(field=e.field, message=e.message) for e in errors]


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map a domain error to its status code and envelope.

    Server-side failures are logged with the traceback; the client only sees
    the class's generic message.
    """
    if exc.status_code >= 500:
        logger.error("Internal failure on %s %s", request.method, request.url.path, exc_info=exc)
    errors = _field_models(exc.errors) if isinstance(exc, ValidationFailed) and exc.errors else None
    return _error_response(exc.status_code, ErrorDetail(code=exc.code, message=exc.message, errors=errors))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 listing every field that failed validation."""
    return _error_response(
        400,
        ErrorDetail(
            code="validation_error",
            message="Request validation failed.",
            errors=_field_models(field_errors(list(exc.errors()))),
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 routes, 405 methods)."""
    return _error_response(exc.status_code, ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail)))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, ErrorDetail(code="internal_error", message="An unexpected error occurred."))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and a database reachability check."""
    db_ok = request.app.state.user_store.ping() and request.app.state.file_store.ping()
    return HealthResponse(
        status="healthy",
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
