"""
Map Points API: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routes,
       and wires the lifespan that connects and drains the database.
Who:   Called by uvicorn (uvicorn mappoints.main:app) or `python -m mappoints`.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  Req ID → Logging → Rate Limit → Body Limit → Security   │
    │         → GZip → CORS → Unhandled Error                  │
    │                                                          │
    │  Routes:                                                 │
    │  GET /api/points │ POST /api/points │ GET /api/health    │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ NoRoute→404 │ TooLarge→413 │ DB→500   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → database connectivity check → endpoint banner
    Shutdown: dispose the shared engine (drain pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mappoints import __version__
from mappoints.config import settings
from mappoints.database import connect, dispose_engine
from mappoints.exceptions import (
    NotFoundError,
    PayloadTooLargeError,
    PersistenceError,
    ValidationError,
)
from mappoints.middleware.body_limit import BodySizeLimitMiddleware
from mappoints.middleware.errors import UnhandledErrorMiddleware, unhandled_error_response
from mappoints.middleware.logging import RequestLoggingMiddleware
from mappoints.middleware.rate_limit import RateLimitMiddleware
from mappoints.middleware.request_id import RequestIDMiddleware, request_id_var
from mappoints.middleware.security_headers import SecurityHeadersMiddleware
from mappoints.routes import health, points

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (containers capture it)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup and shutdown of the shared resources.

    A failed database check is logged but does not abort startup: storage
    routes answer 500 until the database is reachable again.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Map Points API %s starting (%s)", __version__, settings.app_env)

    await connect()

    logger.info("Server running on %s:%d", settings.host, settings.port)
    logger.info("API endpoints:")
    logger.info("   GET  /api/points - get all points")
    logger.info("   POST /api/points - add new point")
    logger.info("   GET  /api/health - server status")

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Map Points API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers.

    Handler map:
        ValidationError         → 400 with the rule's message
        NotFoundError / 404/405 → 404 "Route not found"
        PersistenceError        → 500 "Server error"
        PayloadTooLargeError    → 413 "Payload too large"
        Exception (fallback)    → 500 "Something went wrong!"

    Faults from the routes are turned into the 500 by UnhandledErrorMiddleware
    so the outer middleware still tags and logs them. The Exception handler
    here only sees faults raised by the middleware layers themselves.

    Bodies are always {"error": "<message>"}; context and tracebacks are
    logged server-side only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input; expected outcome, logged at WARNING."""
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return _error(400, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Unknown paths and unsupported methods on known paths are both 'not found'."""
        if exc.status_code in (404, 405):
            return await handle_not_found(request, NotFoundError())
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        """Storage failure: generic message to the caller, details in the log."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Persistence error on %s %s | Context: %s",
            rid,
            request.method,
            request.url.path,
            exc.context,
        )
        return _error(500, exc.message)

    @app.exception_handler(PayloadTooLargeError)
    async def handle_payload_too_large(request: Request, exc: PayloadTooLargeError):
        rid = request_id_var.get("")
        logger.warning("[%s] Rejected body: %s | Context: %s", rid, exc.message, exc.context)
        return _error(413, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected faults.

        The full traceback goes to the log; the caller only gets the generic
        body. The process keeps serving later requests.
        """
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error on %s %s: %s",
            rid,
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return unhandled_error_response()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    Tests call this directly to get a fresh app (fresh rate limit counters).
    """
    app = FastAPI(
        title="Map Points API",
        description="Store and list geographic points with a title and description.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost)

    app.add_middleware(UnhandledErrorMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )

    # Don't compress small responses (overhead > savings)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.max_body_size)

    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(points.router)
    app.include_router(health.router)

    return app


app = create_app()
