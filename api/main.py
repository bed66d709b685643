"""
api/main.py -- FastAPI application entry point for Wed Accounts.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- one log line per request with latency

Lifespan handles startup (store, mailer, service, OTP purge task) and
shutdown (cancel purge task, close DB connection) symmetrically.

Error translation:
  This module is the single boundary where failures become responses. Every
  auth.errors.AccountError maps to its status code and a message translated
  into the caller's Accept-Language. Unexpected exceptions become a generic
  500; the traceback is logged, and echoed in the body only when DEBUG=true.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.locale import localize
from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.errors import AccountError
from auth.mailer import build_mailer
from auth.service import AccountService
from auth.store import AccountStore
from core.config import get_settings

_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("wedaccounts.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Delete expired OTP rows every OTP_PURGE_INTERVAL_SECONDS.

    find_otp() already ignores expired rows; this keeps the table small.
    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(_settings.otp_purge_interval_seconds)
        removed = await asyncio.to_thread(app.state.account_store.purge_expired_otps)
        if removed:
            logger.info("Purged %d expired OTP codes", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters: the store and mailer must exist before the service
    that wraps them, and the purge task references the store.
    """
    logger.info("Wed Accounts API starting up")
    app.state.account_store = AccountStore(_settings.database_url, otp_ttl_seconds=_settings.otp_ttl_seconds)
    app.state.mailer = build_mailer(_settings)
    app.state.account_service = AccountService(
        app.state.account_store,
        app.state.mailer,
        password_min_length=_settings.password_min_length,
    )
    logger.info("Account store initialized (mail backend=%s)", _settings.mail_backend)
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.purge_task
    app.state.account_store.close()
    logger.info("Wed Accounts API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Wed Accounts API",
    description="Registration, email confirmation, login and admin account management.",
    version=_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "Accept-Language"],
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
app.include_router(users_router, prefix="/api/v1", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(request: Request, status_code: int, code: str, message_key: str, stack: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=localize(request, message_key), stack=stack).model_dump(),
    )


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Map an auth-layer failure to its status and localized message."""
    return _error(request, exc.status_code, exc.code, exc.message_key)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with structured error when request body or query params fail validation."""
    return _error(request, 400, "validation_error", "error.validationFailed")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for framework-raised HTTP exceptions (unknown route, bad method)."""
    if exc.status_code == 404:
        return _error(request, 404, "not_found", "error.routeNotFound")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(code=f"http_{exc.status_code}", message=str(exc.detail)).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log. The client receives a generic message,
    plus the traceback only in DEBUG mode.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    stack = "".join(traceback.format_exception(exc)) if _settings.debug else None
    return _error(request, 500, "internal_error", "error.internalServer", stack=stack)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    try:
        database = "ok" if request.app.state.account_store.ping() else "error"
    except Exception:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=_VERSION, components={"app": "ok", "database": database})
