"""
TaskHub Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings, middleware, exception handlers and
       routers, and attaches the two shared services (rate limiter, audit
       logger) to app.state. Tests call create_app() with their own limiter.
Who:   uvicorn taskhub.main:app

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌────────┐ ┌─────────┐ ┌──────────────┐  │
    │  │ Rate Limit │→│ Req ID │→│ Logging │→│ Sec. headers │  │
    │  └────────────┘ └────────┘ └─────────┘ └──────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────────┐ ┌─────────────┐ ┌─────────────────┐  │
    │  │ /api/v1/auth/* │ │ /tasks CRUD │ │ GET /health     │  │
    │  └────────────────┘ └─────────────┘ └─────────────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ TaskHubError→status_code │ HTTP/validation │ →500  │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → ready
    Shutdown: close rate limiter store → dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhub import __version__
from taskhub.config import settings
from taskhub.database import async_session_factory, dispose_engine
from taskhub.exceptions import RateLimitExceededError, TaskHubError
from taskhub.middleware.logging import RequestLoggingMiddleware
from taskhub.middleware.rate_limit import RateLimitMiddleware
from taskhub.middleware.request_id import RequestIDMiddleware, request_id_var
from taskhub.middleware.security_headers import SecurityHeadersMiddleware
from taskhub.responses import error_response
from taskhub.routes import access, auth, health, tasks
from taskhub.services.audit_service import AuditLogger
from taskhub.services.rate_limiter import RateLimiter, build_rate_limiter

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

class RequestIdFilter(logging.Filter):
    """Stamps every record with the current request id ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


def setup_logging() -> None:
    """
    Configures the root logger once, at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("TaskHub API %s starting (%s)", __version__, settings.environment)

    # A production instance with development secrets must not come up
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.critical("Configuration error: %s", e)
        raise

    logger.info("Rate limiter backend: %s", app.state.rate_limiter.store.name)
    logger.info("API docs: http://%s:%d/api-docs", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("TaskHub API shutting down...")
    await app.state.rate_limiter.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps every failure to the error envelope.

        TaskHubError            → its own status_code (400/401/403/404/429/500)
        RequestValidationError  → 400 with the field list
        Starlette HTTPException → its status (unknown route 404, 405, ...)
        Exception               → 500, details logged only
    """

    @app.exception_handler(TaskHubError)
    async def handle_taskhub_error(request: Request, exc: TaskHubError):
        if exc.status_code >= 500:
            logger.error("%s: %s | Context: %s", type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("%s %s → %d %s", request.method, request.url.path, exc.status_code, exc.message)

        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        return error_response(
            exc.status_code,
            exc.message,
            errors=getattr(exc, "errors", None),
            exc=exc,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]),
                "location": "param" if error["loc"][0] == "path" else str(error["loc"][0]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return error_response(400, "Validation failed", errors=errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return error_response(500, "Internal Server Error", exc=exc)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    rate_limiter: Optional[RateLimiter] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FastAPI:
    """
    Builds the application.

    Args:
        rate_limiter: Limiter to enforce; built from settings when omitted.
        audit_logger: Audit writer; defaults to one on the app's session factory.
    """
    app = FastAPI(
        title="TaskHub API",
        description=(
            "Task management API with JWT authentication, user/admin roles, "
            "per-task ownership checks, audit logging and rate limiting."
        ),
        version=__version__,
        docs_url="/api-docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.rate_limiter = rate_limiter or build_rate_limiter()
    app.state.audit_logger = audit_logger or AuditLogger(async_session_factory)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → Security → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "RateLimit-Limit",
            "RateLimit-Remaining",
            "RateLimit-Reset",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(access.router, prefix=settings.api_prefix)
    app.include_router(tasks.router)
    app.include_router(health.router)

    return app


app = create_app()
