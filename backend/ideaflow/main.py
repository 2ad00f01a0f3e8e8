"""IdeaFlow Backend: FastAPI application entry point."""

import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before other app imports bind their loggers
from ideaflow.core.logging import configure_structlog
from ideaflow.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ideaflow.api.deps import build_store
from ideaflow.api.routes import api_router
from ideaflow.core.config import get_settings
from ideaflow.core.exceptions import (
    DraftUnavailableError,
    IdeaFlowError,
    InvalidStepError,
    NotFoundError,
    ProfileLockedError,
    QuotaExceededError,
    StepLockedError,
)
from ideaflow.db import close_db, close_redis, init_db, init_redis
from ideaflow.services.draft_service import DraftService
from ideaflow.services.draft_tasks import DraftTaskQueue
from ideaflow.services.model_gateway import AnthropicGateway

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    app.state.shutting_down = False

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug, store=settings.store_backend)

    if settings.store_backend == "sql":
        await init_db()
        logger.info("db_initialized")

    # Redis only backs the deferred-draft queue (non-fatal)
    app.state.redis = await init_redis()
    logger.info("redis_initialized", available=app.state.redis is not None)

    app.state.store = build_store(settings)
    app.state.gateway = AnthropicGateway()
    app.state.task_queue = DraftTaskQueue(DraftService(app.state.store, app.state.gateway), redis=app.state.redis)
    app.state.task_queue.schedule_replay()

    yield

    # Shutdown
    app.state.shutting_down = True
    logger.info("shutdown_begin", pending_drafts=app.state.task_queue.pending)
    await app.state.task_queue.drain()
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


def _error_response(request: Request, status_code: int, exc: Exception, **extra) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    logger.warning(
        "request_failed",
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=correlation_id.get(None),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__, "debug_id": debug_id, **extra},
    )


async def ideaflow_exception_handler(request: Request, exc: IdeaFlowError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    if isinstance(exc, QuotaExceededError):
        response = _error_response(request, 429, exc, retry_after=exc.retry_after)
        response.headers["Retry-After"] = str(exc.retry_after)
        return response
    if isinstance(exc, InvalidStepError):
        return _error_response(request, 400, exc)
    if isinstance(exc, NotFoundError):
        return _error_response(request, 404, exc)
    if isinstance(exc, StepLockedError):
        return _error_response(request, 409, exc, current_step=exc.current_step)
    if isinstance(exc, ProfileLockedError):
        return _error_response(request, 409, exc)
    if isinstance(exc, DraftUnavailableError):
        return _error_response(request, 502, exc)
    return await generic_exception_handler(request, exc)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global exception handler for HTTPException with debug_id tracking."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=correlation_id.get(None),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors with debug_id tracking.

    Logs full exception with traceback, returns generic 500 to client.
    """
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=correlation_id.get(None),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(IdeaFlowError)(ideaflow_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="IdeaFlow - guided idea validation with AI step drafts",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # X-Request-ID is echoed back, or generated when absent
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        generator=lambda: str(uuid.uuid4()),
        validator=None,
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ideaflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
