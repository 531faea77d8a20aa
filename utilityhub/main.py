"""
UtilityHub API — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Served by uvicorn (uvicorn utilityhub.main:app) or imported by the
       serverless entry point api/index.py.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────────────────────────┐  │
    │  │  Req ID  │→│ Logging  │→│ CORS Gate (OPTIONS → 200)│  │
    │  └──────────┘ └──────────┘ └──────────────────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────┐ ┌──────────────┐ ┌──────────────────┐  │
    │  │ writing x4   │ │ generators x5│ │ remove-background│  │
    │  └──────────────┘ └──────────────┘ └──────────────────┘  │
    │                                                          │
    │  Exception Handlers → {"success": false, "error", ...}   │
    │  ValidationError→400 │ HTTP errors→as is │ rest→500      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Warn about missing vendor secrets (the server still starts)
    3. Open the shared httpx connection pool

    Shutdown:
    1. Close the connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from utilityhub import __version__
from utilityhub.config import settings
from utilityhub.exceptions import UtilityHubError, ValidationError
from utilityhub.middleware.cors import CORSGateMiddleware
from utilityhub.middleware.logging import RequestLoggingMiddleware
from utilityhub.middleware.request_id import RequestIDMiddleware, request_id_var
from utilityhub.responses import error_response, unexpected_error_response
from utilityhub.routes import generators, health, remove_background, writing

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once at startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # httpx logs every outbound request at INFO; the services log their own calls
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Own the shared httpx.AsyncClient for the life of the process.

    Vendor clients borrow it through get_http_client(), so connections to
    Gemini and remove.bg are pooled across requests.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("UtilityHub API %s starting up...", __version__)

    missing = settings.missing_credentials()
    if missing:
        # Not fatal: only the endpoints needing these secrets will fail
        logger.warning("Missing vendor credentials: %s", ", ".join(missing))

    app.state.http_client = httpx.AsyncClient()
    logger.info("CORS origins: %s", ", ".join(settings.cors_origins_list))
    logger.info("Retry policy: %d retries, base delay %.1fs", settings.retry_max_retries, settings.retry_base_delay)
    logger.info("=" * 60)

    yield

    logger.info("UtilityHub API shutting down...")
    await app.state.http_client.aclose()
    app.state.http_client = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError            → 400 (caller can fix the input)
        RequestValidationError     → 400 (body missing or not a JSON object)
        UtilityHubError (others)   → their status_code (500), curated message
        StarletteHTTPException     → its status (404, 405), same envelope
        Exception (fallback)       → 500, generic message

    Security: handlers never expose stack traces, vendor keys or raw vendor
    bodies. Context dicts are logged server-side only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning("[%s] Rejected request body: %s", request_id_var.get(""), errors)

        # loc ("body", <field>) is a bad field; ("body",) or invalid JSON is a bad body
        invalid_fields = [
            str(err["loc"][-1])
            for err in errors
            if err.get("type") != "json_invalid" and len(err.get("loc", ())) > 1
        ]
        if invalid_fields:
            message = f"ERROR: Invalid value for {', '.join(invalid_fields)}."
        else:
            message = "ERROR: Request body must be a JSON object."
        return error_response(400, "validation_error", message)

    @app.exception_handler(UtilityHubError)
    async def handle_utilityhub_error(request: Request, exc: UtilityHubError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            message = "ERROR: Method Not Allowed"
            code = "method_not_allowed"
        elif exc.status_code == 404:
            message = "ERROR: Not Found"
            code = "not_found"
        else:
            message = f"ERROR: {exc.detail}"
            code = "http_error"
        response = error_response(exc.status_code, code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: full trace in the log, generic message to the caller."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return unexpected_error_response()


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="UtilityHub API",
        description=(
            "Server-side proxy for the UtilityHub browser tools. Holds the Gemini and "
            "remove.bg credentials, retries vendor overload with exponential backoff, "
            "and returns a uniform JSON envelope."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → CORS gate → routes
    app.add_middleware(
        CORSGateMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=settings.cors_methods_list,
        allow_headers=settings.cors_headers_list,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(writing.router)
    app.include_router(generators.router)
    app.include_router(remove_background.router)
    app.include_router(health.router)

    return app


# uvicorn expects `utilityhub.main:app` to be importable
app = create_app()
