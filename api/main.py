"""
api/main.py -- FastAPI application entry point for the Astra docs API.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  3. log_requests          -- one INFO line per request with latency

Lifespan builds every process-wide object (engine, stores, session store,
cache, services) and hangs it on app.state. Route handlers reach them through
request.app.state only, so tests swap the whole graph by patching the
lifespan.

Every error response, including framework 404/405 and validation failures,
uses the {"error": {"code", "text"}} envelope from api.models.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import HealthResponse, error_body
from api.routes.auth import router as auth_router
from api.routes.docs import router as docs_router
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from cache.store import TTLCache
from core.config import get_settings
from core.db import build_database_url, create_db_engine, wait_for_db
from core.errors import ServiceError
from documents.service import DocsService
from documents.store import DocumentStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("astra.api")

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Engine first, and wait for the database to answer SELECT 1.
      2. Stores next; create tables when AUTO_MIGRATE is on.
      3. Sessions, cache, and services last -- services wrap the stores.
    """
    settings = get_settings()
    logger.info("Astra docs API starting up")

    engine = create_db_engine(build_database_url(settings))
    wait_for_db(engine, attempts=settings.db_connect_attempts, delay=settings.db_connect_delay)

    user_store = UserStore(engine)
    doc_store = DocumentStore(engine)
    if settings.auto_migrate:
        user_store.migrate()
        doc_store.migrate()
        logger.info("Database migrations applied")
    else:
        logger.info("Auto-migration disabled (AUTO_MIGRATE=false)")

    app.state.settings = settings
    app.state.user_store = user_store
    app.state.doc_store = doc_store
    app.state.sessions = SessionStore()
    app.state.cache = TTLCache(ttl=settings.cache_ttl_seconds)
    app.state.auth_service = AuthService(user_store, settings.admin_token)
    app.state.docs_service = DocsService(doc_store)
    logger.info(
        "Ready (cache_ttl=%ss, uploads_dir=%s)",
        settings.cache_ttl_seconds,
        settings.uploads_dir,
    )

    yield

    # Shutdown -- both stores share one engine; dispose() is idempotent.
    app.state.doc_store.close()
    app.state.user_store.close()
    logger.info("Astra docs API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Astra Docs API",
    description="Document storage with token sessions and a read-through cache.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> SlowAPI. The @app.middleware log_requests below wraps both.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=get_settings().allowed_hosts,
)

app.add_middleware(SlowAPIMiddleware)

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

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(docs_router, prefix="/api", tags=["Documents"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same envelope so API clients can parse errors
# uniformly. code always equals the HTTP status.
# ---------------------------------------------------------------------------


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a domain error raised by a service, store, or route handler."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.text)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.text))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 in the envelope when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(status_code=429, content=error_body(429, "too many requests"))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies answer 400, not FastAPI's default 422."""
    logger.info("Rejected request body on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=error_body(400, "invalid request body"))


_HTTP_ERROR_TEXT = {
    404: "not found",
    405: "method not allowed",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown route, wrong method, bad multipart)."""
    text = _HTTP_ERROR_TEXT.get(exc.status_code) or str(exc.detail).lower()
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, text),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(500, "internal error"))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No rate limit and no session -- monitoring must not need credentials.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return liveness, version, and in-memory state sizes."""
    return HealthResponse(
        version=__version__,
        sessions=len(request.app.state.sessions),
        cache_entries=len(request.app.state.cache),
    )
