"""
api/main.py -- FastAPI application entry point for DataWatchman.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests          -- method, path, status, latency
  2. limit_body_size       -- 413 above MAX_BODY_BYTES, before any parsing
  3. security_headers      -- CSP (stricter in production), nosniff, frame denial, HSTS in production
  4. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  5. CORSMiddleware        -- CORS headers and preflight answers for allow-listed origins
  6. SlowAPIMiddleware     -- per-client limits declared with @limiter.limit()

Lifespan is the composition root: it builds the origin validator, the
per-endpoint rate limiters, the address resolver and both stores, and tears
the stores down on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.gating import build_origin_validator, build_rate_limiters
from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.streetworks import router as streetworks_router
from api.routes.v1.submissions import router as submissions_router
from api.routes.v1.usrn import router as usrn_router
from bduk.store import PremisesStore
from core.address import AddressResolver
from core.config import get_settings
from core.errors import ConfigurationMissing, PayloadTooLarge, ServiceError
from reports.store import SubmissionStore

VERSION = "0.3.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("datawatchman.api")

settings = get_settings()


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build every piece of per-process state and hang it on app.state.

    Nothing here talks to the network. Missing database configuration leaves
    the corresponding store as None; the routes that need it answer 500
    (configuration missing) instead of the whole app refusing to start.
    """
    logger.info("DataWatchman API starting up")
    app.state.origin_validator = build_origin_validator(settings)
    app.state.rate_limiters = build_rate_limiters(settings)
    app.state.address_resolver = AddressResolver()
    logger.info(
        "Gating initialized (%d allowed origins, missing origin %s, limiters: %s)",
        len(settings.cors_origins),
        "accepted" if settings.allow_missing_origin else "rejected",
        ", ".join(app.state.rate_limiters.names()),
    )

    app.state.submissions = SubmissionStore(settings.database_url) if settings.database_url else None
    if app.state.submissions is None:
        logger.warning("DATABASE_URL not set -- report submissions are disabled")

    try:
        app.state.premises = PremisesStore(
            settings.analytics_db_url, settings.bduk_table, settings.os_identifiers_table
        )
    except ConfigurationMissing as exc:
        logger.warning("%s -- USRN lookups are disabled", exc)
        app.state.premises = None

    yield

    if app.state.submissions is not None:
        app.state.submissions.close()
    if app.state.premises is not None:
        app.state.premises.close()
    logger.info("DataWatchman API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="DataWatchman API",
    description="Missing-identifier reports, USRN broadband lookups and Paris street works.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the current stack, so the LAST call is outermost.
# Registered innermost-first here: SlowAPI, then CORS, then TrustedHost.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# HTTP middleware functions
#
# @app.middleware("http") also wraps the current stack, so these sit OUTSIDE
# the middleware added above, and the one defined LAST runs first.
# ---------------------------------------------------------------------------

def content_security_policy(production: bool) -> str:
    """Build the CSP header value. Development also allows 'unsafe-eval' in scripts."""
    script_src = "script-src 'self' 'unsafe-inline'"
    if not production:
        script_src = "script-src 'self' 'unsafe-eval' 'unsafe-inline'"
    return "; ".join(
        [
            "default-src 'self'",
            script_src,
            "style-src 'self' 'unsafe-inline'",
            "img-src 'self' blob: data:",
            "font-src 'self'",
            "object-src 'none'",
            "base-uri 'self'",
            "form-action 'self'",
            "frame-ancestors 'none'",
            "connect-src 'self'",
        ]
    )


_CSP = content_security_policy(settings.is_production)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Content-Security-Policy"] = _CSP
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
    return response


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Refuse bodies above MAX_BODY_BYTES before anything parses them.

    Only the declared Content-Length is checked. Every browser and HTTP client
    sends it for the JSON bodies this API accepts.
    """
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            too_large = int(declared) > settings.max_body_bytes
        except ValueError:
            return _error_response(400, "validation_error", "Invalid Content-Length header.")
        if too_large:
            exc = PayloadTooLarge(f"{declared} bytes on {request.url.path}")
            logger.warning("Rejected body: %s", exc)
            return _error_response(exc.status_code, exc.code, exc.public_message)
    return await call_next(request)


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

app.include_router(streetworks_router, prefix="/api/v1", tags=["Street works"])
app.include_router(usrn_router, prefix="/api/v1", tags=["USRN lookup"])
app.include_router(submissions_router, prefix="/api/v1", tags=["Reports"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope. Internal detail goes
# to the log only; the client sees the error code and a generic message.
# ---------------------------------------------------------------------------


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map the core error taxonomy to status codes."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return _error_response(exc.status_code, exc.code, exc.public_message)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a per-client slowapi limit is exceeded.

    Kept synchronous: SlowAPIMiddleware calls it directly for app-wide limits,
    and the route decorator's exception reaches it through Starlette.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests. Please try again later.", str(exc.detail))
    response.headers["Retry-After"] = str(retry_after)
    return response


app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body or query params fail validation."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return _error_response(400, "validation_error", "Request validation failed.", problems)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured envelope for framework-raised HTTP errors (404 route, 405 method, ...)."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged with its traceback, never written to the
    response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# No gating: health checks from load balancers must not be throttled or
# origin-checked.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and per-store status."""
    components = {"app": "ok"}
    store = request.app.state.submissions
    if store is None:
        components["submissions_db"] = "unconfigured"
    else:
        components["submissions_db"] = "ok" if store.ping() else "error"
    components["analytics_db"] = "configured" if request.app.state.premises is not None else "unconfigured"
    return HealthResponse(version=VERSION, components=components)
