"""
Campus Scheduler — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings, the database session factory, the
       operation store/tracker and the background task queue onto app.state,
       then registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn campus_scheduler.main:app`) and the test suite,
       which builds its own app around a SQLite session factory.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────┐ ┌───────────┐ ┌─────────┐ ┌─────────┐  │
    │  │ appointments │ │ schedules │ │ courses │ │ members │  │
    │  └──────┬───────┘ └───────────┘ └─────────┘ └─────────┘  │
    │         │ 202                                            │
    │  ┌──────▼───────┐   ┌────────────────────┐               │
    │  │  TaskQueue   │──▶│ OperationTracker   │◀── /operations│
    │  │  (workers)   │   │ (Redis or memory)  │               │
    │  └──────────────┘   └────────────────────┘               │
    │                                                          │
    │  Exception Handlers:                                     │
    │   SchedulerError → kind.status_code (400/404/409/500/503)│
    │   RequestValidationError → 400    Exception → 500        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, task queue workers
    Shutdown:  stop workers (queued tasks are dropped), close the operation
               store, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_scheduler import __version__
from campus_scheduler.config import Settings, settings
from campus_scheduler.database import build_engine, build_session_factory, dispose_engine
from campus_scheduler.exceptions import (
    ErrorKind,
    NotFoundError,
    SchedulerError,
    ServiceBusyError,
)
from campus_scheduler.middleware.logging import RequestLoggingMiddleware
from campus_scheduler.middleware.request_id import RequestIDMiddleware, request_id_var
from campus_scheduler.routes import (
    appointments,
    course_memberships,
    courses,
    health,
    operations,
    schedules,
)
from campus_scheduler.services.operation_store import build_operation_store
from campus_scheduler.services.operation_tracker import OperationTracker
from campus_scheduler.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole process.

    Format: 2026-01-15T12:00:00 [INFO] campus_scheduler.access: GET /courses 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Campus Scheduler %s starting up...", __version__)

    await app.state.task_queue.start()
    logger.info("Operation store: %s", type(app.state.operation_store).__name__)
    logger.info(
        "Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port
    )
    logger.info("=" * 60)

    yield

    logger.info("Campus Scheduler shutting down...")
    await app.state.task_queue.stop()
    await app.state.operation_store.close()
    if app.state.engine is not None:
        await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(kind: str, message: str, details=None) -> dict:
    return {
        "error": kind,
        "message": message,
        "details": details,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to structured JSON error responses.

    Handler hierarchy:
        SchedulerError          → exc.kind.status_code
                                  (NotFoundError adds `_links`,
                                   ServiceBusyError adds Retry-After)
        RequestValidationError  → 400 with per-field details
        HTTPException           → its own status, same body format
        Exception (fallback)    → 500

    Internal errors never expose their context in the response body; it is
    logged server-side instead.
    """

    @app.exception_handler(SchedulerError)
    async def handle_scheduler_error(request: Request, exc: SchedulerError):
        rid = request_id_var.get("")
        status_code = exc.kind.status_code
        headers = {}

        if exc.kind is ErrorKind.INTERNAL:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            content = _error_body(exc.kind.value, exc.message)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            content = _error_body(exc.kind.value, exc.message, exc.context or None)

        if isinstance(exc, NotFoundError) and exc.links:
            content["_links"] = {
                rel: link.model_dump(by_alias=True) for rel, link in exc.links.items()
            }
        if isinstance(exc, ServiceBusyError):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(status_code=status_code, content=content, headers=headers or None)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        fields = []
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            fields.append({"field": ".".join(loc) or None, "message": error.get("msg", "")})
        message = fields[0]["message"] if fields else "Invalid request"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=_error_body(ErrorKind.VALIDATION.value, message, {"errors": fields}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        kind = ErrorKind.NOT_FOUND.value if exc.status_code == 404 else "http_error"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(kind, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                ErrorKind.INTERNAL.value,
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings:    defaults to the environment-loaded settings
        session_factory: an existing factory (tests); when omitted an engine
                         is built from app_settings.database_url and disposed
                         on shutdown
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Campus Scheduler API",
        description=(
            "Appointments, schedules, courses and course memberships, with "
            "paginated listings, hypermedia links and background updates that "
            "can be polled through /operations."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Application State ─────────────────────────────────────────────────
    if session_factory is None:
        app.state.engine = build_engine(app_settings)
        session_factory = build_session_factory(app.state.engine)
    else:
        app.state.engine = None

    store = build_operation_store(app_settings)
    app.state.settings = app_settings
    app.state.session_factory = session_factory
    app.state.operation_store = store
    app.state.operation_tracker = OperationTracker(store)
    app.state.task_queue = TaskQueue(
        maxsize=app_settings.task_queue_maxsize,
        worker_count=app_settings.task_worker_count,
    )

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Link",
            "Location",
            "Retry-After",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(appointments.router)
    app.include_router(schedules.router)
    app.include_router(courses.router)
    app.include_router(course_memberships.router)
    app.include_router(operations.router)
    app.include_router(health.router)

    return app


app = create_app()
