"""
Report Come Play Backend — FastAPI Application Factory
========================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn reportcomeplay.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware:  Request ID → Logging → Rate Limit → GZip → CORS│
    │                                                              │
    │  Routes:      /  /health                                     │
    │               /api/auth   /api/users   /api/fields           │
    │               /api/reports   /api/admin                      │
    │               /api/upload   /api/files/{path}                │
    │                                                              │
    │  Exception Handlers:                                         │
    │    Validation→400  Auth→401  Permission→403  NotFound→404    │
    │    Conflict/Duplicate→409  RateLimit→429  Storage/DB→500     │
    │    DB unreachable / upstream down→503                        │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check (logged, never fatal) → ready
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from reportcomeplay import __version__
from reportcomeplay.config import settings
from reportcomeplay.database import dispose_engine
from reportcomeplay.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    DuplicateFieldError,
    ExternalServiceError,
    FileStorageError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    ReportComePlayError,
    ValidationError,
)
from reportcomeplay.middleware.logging import RequestLoggingMiddleware
from reportcomeplay.middleware.rate_limit import RateLimitMiddleware
from reportcomeplay.middleware.request_id import RequestIDMiddleware, request_id_var
from reportcomeplay.routes import admin, auth, fields, health, reports, upload, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Root logger on stdout (Docker captures it) with one consistent format.

    Format: 2024-01-15T12:00:00 [INFO] reportcomeplay.access: GET /api/fields 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Report Come Play API v%s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health still reports status and operators see the log
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info("Storage backend: %s", settings.storage_backend)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Report Come Play API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"error": error, "message": message}
    if details:
        content["details"] = details
    content["request_id"] = request_id_var.get("") or None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exception types to HTTP status codes and the shared error body.

    Internal context (paths, SQL, upstream errors) is logged server-side;
    only validation details, the duplicate match and retry hints reach
    the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Schema failures answer 400 (not FastAPI's 422) with one entry per field."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        first = errors[0]["message"] if errors else "Invalid request"
        return error_response(400, "validation_error", first, {"errors": errors})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(401, "authentication_error", exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        logger.info("[%s] Permission denied: %s", request_id_var.get(""), exc.message)
        return error_response(403, "permission_denied", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DuplicateFieldError)
    async def handle_duplicate_field(request: Request, exc: DuplicateFieldError):
        return error_response(409, "duplicate_field", exc.message, exc.context)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(409, "conflict", exc.message)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), str(exc.orig))
        return error_response(409, "conflict", "A record with this unique field already exists.")

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            {"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return error_response(
            503,
            "service_unavailable",
            exc.message,
            {"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service(request: Request, exc: ExternalServiceError):
        logger.error(
            "[%s] External service error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return error_response(503, "service_unavailable", exc.message, headers=headers)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        if exc.unavailable:
            return error_response(
                503,
                "network_error",
                "Unable to reach the database. Please check your connection and try again.",
                {"type": "NETWORK_ERROR"},
            )
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def handle_database_unavailable(request: Request, exc: Exception):
        logger.error("[%s] Database unreachable: %s", request_id_var.get(""), str(exc))
        return error_response(
            503,
            "network_error",
            "Unable to reach the database. Please check your connection and try again.",
            {"type": "NETWORK_ERROR"},
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(ReportComePlayError)
    async def handle_application_error(request: Request, exc: ReportComePlayError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, "not_found", f"Route {request.url.path} not found.")
        return error_response(
            exc.status_code, "http_error", str(exc.detail), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Report Come Play API",
        description=(
            "Crowd-sourced reporting of sports fields: submissions with photos, "
            "duplicate detection, reports, admin review and contributor payouts."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → RateLimit → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(fields.router)
    app.include_router(reports.router)
    app.include_router(admin.router)
    app.include_router(upload.router)

    return app


app = create_app()
