"""
api/main.py -- FastAPI application entry point for StudyHub.

Run with:  python main.py
           uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware   -- adds CORS headers for the configured origins
  2. log_requests     -- one access-log line per request with latency

Lifespan owns every piece of domain state: the credential store, the token
service and the material registry are built on startup, hung on app.state,
and torn down on shutdown. No module-level singletons hold domain data.
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
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.materials import router as materials_router
from api.routes.progress import router as progress_router
from auth.store import CredentialStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import StudyHubError
from materials.registry import MaterialRegistry

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("studyhub.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build domain state on startup and release it on shutdown.

    Startup order:
      1. Settings -- read once; the signing secret is fixed from here on.
      2. Credential store and token service.
      3. Material registry, then reconciliation with the upload directory.
         A missing or unreadable directory is logged and leaves the catalog
         empty; it never aborts startup.
    """
    settings = get_settings()
    logger.info("StudyHub API starting up")

    app.state.credential_store = CredentialStore(
        db_url=settings.database_url,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    app.state.token_service = TokenService(
        settings.secret_key,
        lifetime_seconds=settings.token_expire_seconds,
    )
    logger.info("Auth initialized (token lifetime %ds)", settings.token_expire_seconds)

    app.state.material_registry = MaterialRegistry(settings.upload_dir)
    app.state.material_registry.reconcile_from_directory()

    yield

    app.state.credential_store.close()
    logger.info("StudyHub API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="StudyHub API",
    description="Accounts, session tokens, study progress and a study-material catalog.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST", "DELETE"],
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

app.include_router(auth_router, tags=["Auth"])
app.include_router(progress_router, tags=["Progress"])
app.include_router(materials_router, tags=["Materials"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(StudyHubError)
async def domain_error_handler(request: Request, exc: StudyHubError) -> JSONResponse:
    """Render a domain failure with the status and code its class declares."""
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client input errors: 400 invalid_input."""
    return _error(400, "invalid_input", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured errors for framework-raised HTTP errors.

    A known path hit with the wrong method names no route, so it answers
    404 like an unknown path instead of 405 with an Allow header.
    """
    if exc.status_code in (404, 405):
        return _error(404, "not_found", "Not Found")
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    code = "not_found" if exc.status_code == 404 else f"http_{exc.status_code}"
    response = _error(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
