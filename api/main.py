"""
api/main.py -- FastAPI application entry point for the WOJP admin backend.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- credentialed CORS for the admin panel origins
  2. SlowAPIMiddleware  -- per-route rate limits from api.limiter
  3. SessionMiddleware  -- OAuth state storage for authlib

Lifespan builds every storage collaborator and hangs it on app.state; route
handlers and auth dependencies read them from there. Tests replace the
lifespan with one that injects in-memory stores.
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
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin_auth import router as admin_auth_router
from api.routes.audit import router as audit_router
from api.routes.categories import router as categories_router
from api.routes.jobs import router as jobs_router
from api.routes.news import router as news_router
from api.routes.user_auth import router as user_auth_router
from audit.recorder import AuditRecorder
from audit.store import AuditStore
from auth.oauth import build_oauth
from auth.store import AdminStore, UserStore
from content.store import ContentStore
from core.config import get_settings
from core.errors import ConstraintViolationError, StorageError, StorageUnavailableError

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("wojp.api")

# HTTP status -> envelope code for HTTPExceptions raised without a dict detail
# (routing 404s, 405s, and so on).
_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    429: "TOO_MANY_REQUESTS",
}


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create stores on startup and dispose their engines on shutdown.

    Every store points at DATABASE_URL; each owns its own engine so the
    repositories stay independent. A bad URL surfaces here as
    StorageUnavailableError and aborts startup.
    """
    settings = get_settings()
    logger.info("WOJP admin API starting up (production=%s)", settings.is_production)

    app.state.admin_store = AdminStore(settings.database_url)
    app.state.user_store = UserStore(settings.database_url)
    app.state.content_store = ContentStore(settings.database_url)
    audit_store = AuditStore(settings.database_url)
    app.state.audit = AuditRecorder(audit_store)
    app.state.oauth = build_oauth(settings)

    if app.state.admin_store.count_admins() == 0:
        logger.warning("No admin accounts exist. Create one with `python main.py create-admin`.")

    yield

    app.state.admin_store.close()
    app.state.user_store.close()
    app.state.content_store.close()
    audit_store.close()
    logger.info("WOJP admin API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="WOJP Admin API",
    description="Admin panel backend: NEWS, job postings, categories, and audit trail.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# authlib keeps the OAuth state value in the Starlette session between the
# authorization redirect and the callback.
app.add_middleware(SessionMiddleware, secret_key=get_settings().jwt_secret, https_only=get_settings().is_production)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


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

app.include_router(admin_auth_router, prefix="/api", tags=["Admin Auth"])
app.include_router(news_router, prefix="/api", tags=["News"])
app.include_router(jobs_router, prefix="/api", tags=["Jobs"])
app.include_router(categories_router, prefix="/api", tags=["Categories"])
app.include_router(audit_router, prefix="/api", tags=["Audit"])
app.include_router(user_auth_router, prefix="/api", tags=["End-user Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {"error": {"code", "message"}} envelope.
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "TOO_MANY_REQUESTS", "Too many requests. Please try again later.", str(exc.detail))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 BAD_REQUEST with the first validation message."""
    errors = exc.errors()
    message = str(errors[0].get("msg", "Invalid request.")) if errors else "Invalid request."
    # Submitted values stay out of the response; they may be passwords.
    redacted = [{k: v for k, v in err.items() if k != "input"} for err in errors]
    return _error(400, "BAD_REQUEST", message, str(redacted))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Route handlers raise HTTPException with detail={"code", "message"}.

    A dict detail is used directly as the error field; anything else (e.g. the
    router's own 404/405) is wrapped using the status code table.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    code = _STATUS_CODES.get(exc.status_code, "INTERNAL_SERVER_ERROR" if exc.status_code >= 500 else "BAD_REQUEST")
    return _error(exc.status_code, code, str(exc.detail))


@app.exception_handler(ConstraintViolationError)
async def constraint_violation_handler(request: Request, exc: ConstraintViolationError) -> JSONResponse:
    """Uniqueness clashes not already handled by a route."""
    return _error(400, "BAD_REQUEST", "The request conflicts with existing data.")


@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError) -> JSONResponse:
    """The database could not be reached. The URL itself is never echoed."""
    logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "INTERNAL_SERVER_ERROR", "Database connection error: check DATABASE_URL")


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "INTERNAL_SERVER_ERROR", "A storage error occurred.")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the log only; the client receives a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "INTERNAL_SERVER_ERROR", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is reachable regardless of router state.
# Not rate limited.
# ---------------------------------------------------------------------------


@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness plus a database probe. Always 200; the probe result is in components."""
    try:
        request.app.state.admin_store.count_admins()
        database = "ok"
    except StorageError:
        database = "unavailable"
    return HealthResponse(version=VERSION, components={"api": "ok", "database": database})
