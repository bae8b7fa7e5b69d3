"""
FastAPI application entry point for the Todo API.

This module:
- Builds the FastAPI application with middleware and routers
- Sets up structured logging with structlog
- Implements global exception handlers for the plain-text error contract
- Manages the store's lifecycle (opened on startup, closed on shutdown)

Design decisions:
- Structured logging (JSON in prod, console in dev) for observability
- Error responses are the HTTP status plus the raw error text, no envelope
- Request timing middleware for performance monitoring
- Lifespan manager owns the store; handlers receive it through dependencies
"""

import logging
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from todo_api import __version__
from todo_api.api.routes import todo
from todo_api.config import Settings, settings
from todo_api.core.exceptions import TodoAPIError
from todo_api.models.database import Store
from todo_api.models.domain.response import HealthResponse

# ===== Structured Logging Configuration =====

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),  # ISO 8601 timestamps
        structlog.stdlib.add_log_level,  # Add log level to output
        structlog.processors.StackInfoRenderer(),  # Stack traces when needed
        structlog.processors.format_exc_info,  # Format exceptions
        # JSON for production (machine-readable), Console for dev (human-readable)
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper())
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager for the FastAPI application.

    Startup phase:
    - Log application start with configuration
    - Open the store (creates the file and the "todos" collection)

    Shutdown phase:
    - Close the store, releasing the file lock
    """
    app_settings: Settings = app.state.settings

    # ===== Startup =====
    logger.info(
        "application_starting",
        service="Todo API",
        version=__version__,
        environment=app_settings.app_env,
        log_level=app_settings.log_level,
        db_path=app_settings.db_path,
    )
    try:
        app.state.store = Store.open(
            app_settings.db_path,
            busy_timeout=app_settings.store_busy_timeout,
        )
    except TodoAPIError as exc:
        logger.error("store_open_failed", db_path=app_settings.db_path, error=str(exc))
        raise

    yield  # Application is running

    # ===== Shutdown =====
    logger.info("application_shutting_down")
    app.state.store.close()
    app.state.store = None
    logger.info("shutdown_complete")


def _unexpected_error_response(request: Request, exc: Exception) -> PlainTextResponse:
    """Catch-all: 500 with the raw error text."""
    logger.exception(
        "unexpected_error",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path
    )
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """
    Build a FastAPI application bound to ``app_settings``.

    Tests pass their own Settings (e.g. a temporary db_path); the module-level
    ``app`` uses the environment-loaded settings. Interactive docs are
    not served in production.
    """
    app_settings = app_settings or settings
    application = FastAPI(
        title="Todo API",
        description="CRUD over todo items persisted in an embedded keyed store",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if app_settings.is_production else "/docs",
        redoc_url=None if app_settings.is_production else "/redoc",
    )
    application.state.settings = app_settings
    application.state.store = None

    # ===== Middleware Configuration =====

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Log all incoming requests with timing information.

        Adds X-Process-Time header to response for debugging.
        """
        start_time = time.time()

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            # The catch-all handler runs outside this middleware, so unexpected
            # errors are answered here to keep them timed and logged.
            response = _unexpected_error_response(request, exc)

        process_time = time.time() - start_time
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2)
        )

        response.headers["X-Process-Time"] = str(round(process_time, 3))
        return response

    # ===== Global Exception Handlers =====

    @application.exception_handler(TodoAPIError)
    async def todo_api_error_handler(request: Request, exc: TodoAPIError):
        """
        Render domain and store errors as plain text.

        The body is the error message as-is: "Invalid ID", the JSON decode
        error, "Todo not found", or the store's raw error text.
        """
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            error_type=type(exc).__name__,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI parameter validation errors as client errors."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path
        )
        return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @application.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        return _unexpected_error_response(request, exc)

    # ===== Router Registration =====

    application.include_router(todo.router)

    @application.get("/health", response_model=HealthResponse)
    async def health():
        """
        Health check endpoint for load balancers and monitoring.

        Does not touch the store.
        """
        return HealthResponse(status="healthy")

    return application


app = create_app()
