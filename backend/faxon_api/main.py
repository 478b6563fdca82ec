"""
Faxon Portal API — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn faxon_api.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────┐ ┌────────────┐ ┌────────────┐ ┌──────┐ ┌────┐│
    │  │ Req ID │→│ Rate Limit │→│ Access Log │→│ GZip │→│CORS││
    │  └────────┘ └────────────┘ └────────────┘ └──────┘ └────┘│
    │                                                          │
    │  Routes:                                                 │
    │  /api/auth/*   /api/blog/products/delete   /api/storage  │
    │  /health                                                 │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ NotFound→404 │ RateLimit→429 │ *→500   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check (missing provider credentials are
              logged; the service still starts so /health can answer)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from faxon_api import __version__
from faxon_api.config import settings
from faxon_api.database import dispose_engine
from faxon_api.exceptions import (
    DatabaseError,
    EmailDeliveryError,
    FaxonError,
    NotFoundError,
    RateLimitExceededError,
    StorageProviderError,
    TablesNotFoundError,
    ValidationError,
)
from faxon_api.middleware.logging import RequestLoggingMiddleware
from faxon_api.middleware.rate_limit import RateLimitMiddleware
from faxon_api.middleware.request_id import RequestIDMiddleware, request_id_var
from faxon_api.routes import auth, documents, health, storage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2024-01-15T12:00:00 [INFO] faxon.access: DELETE /api/... 200 12.3ms
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from libraries; faxon.access covers requests
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Faxon Portal API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: routes that need the missing provider fail on their own
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Faxon Portal API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": _request_id(request),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the JSON error envelope.

    Handler hierarchy (Starlette picks the most specific class in the MRO):
        ValidationError / RequestValidationError → 400
        NotFoundError                            → 404
        RateLimitExceededError                   → 429
        TablesNotFoundError                      → 500 tables_not_found
        DatabaseError                            → 500 server_error
        StorageProviderError                     → 500 storage_error
        EmailDeliveryError                       → 500 email_delivery_error
        FaxonError (base)                        → 500 server_error
        Exception (fallback)                     → 500 internal_server_error

    Context dicts carry SQL error types and provider bodies: they are logged,
    and only validation context is returned to the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return _error_response(request, 400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Malformed request: %s", _request_id(request), exc.errors())
        return _error_response(
            request,
            400,
            "validation_error",
            "Invalid request",
            details={"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        logger.info("[%s] Not found: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        # Raised by services (OTP resends); the per-IP limiter answers 429 itself
        logger.warning("[%s] Rate limited: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return _error_response(
            request,
            429,
            "rate_limit_exceeded",
            exc.message,
            details=exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(TablesNotFoundError)
    async def handle_tables_not_found(request: Request, exc: TablesNotFoundError):
        logger.critical("[%s] Database tables missing | Context: %s", _request_id(request), exc.context)
        return _error_response(request, 500, "tables_not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        # DatabaseError messages are fixed strings ("Delete failed", ...);
        # the SQL error itself only goes to the log
        logger.error("[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(StorageProviderError)
    async def handle_storage_error(request: Request, exc: StorageProviderError):
        logger.error("[%s] Storage provider error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return _error_response(request, 500, "storage_error", exc.message)

    @app.exception_handler(EmailDeliveryError)
    async def handle_email_error(request: Request, exc: EmailDeliveryError):
        logger.error("[%s] E-mail delivery error | Context: %s", _request_id(request), exc.context)
        return _error_response(request, 500, "email_delivery_error", exc.message)

    @app.exception_handler(FaxonError)
    async def handle_faxon_error(request: Request, exc: FaxonError):
        logger.error("[%s] %s: %s | Context: %s", _request_id(request), type(exc).__name__, exc.message, exc.context)
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return _error_response(
            request,
            500,
            "internal_server_error",
            "Internal server error",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, handlers and routers into a new application."""
    app = FastAPI(
        title="Faxon Portal API",
        description=(
            "Staff portal backend: OTP login, team member profiles, document "
            "deletion with audit logging and image assets on Supabase Storage."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware runs in reverse order of addition:
    # RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(documents.router)
    app.include_router(storage.router)
    app.include_router(health.router)

    return app


app = create_app()
