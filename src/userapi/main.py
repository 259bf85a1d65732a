"""
Main FastAPI application entry point.

This module sets up the FastAPI app with all middleware, routes, and lifecycle events.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.userapi.api import health_router, metrics_router, users_router
from src.userapi.config import get_settings, Settings
from src.userapi.core.auth import ApiKeyMiddleware, api_key_dependencies
from src.userapi.core.exceptions import UserAPIException, error_response
from src.userapi.core.masking import mask_user
from src.userapi.core.metrics import MetricsCollector
from src.userapi.core.request_log import RequestLogMiddleware, RequestLogWriter
from src.userapi.core.store import UserStore
from src.userapi.models import User

DEMO_USER = User(name="Alice", email="Alice@ntu.ac.uk", password="Password123")


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog through stdlib logging with a console renderer."""
    level = logging.getLevelName(log_level.upper())
    logging.basicConfig(format="%(message)s", level=level)

    # RequestLogMiddleware already writes one line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def seed_store(store: UserStore) -> None:
    """Add the masked demo user to an empty store."""
    logger = structlog.get_logger(__name__)
    if len(store) > 0:
        return

    store.append(mask_user(DEMO_USER))
    logger.info(
        "Initialized users",
        users=[user.model_dump() for user in store.list()],
    )


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger = structlog.get_logger(__name__)
        logger.info("Starting UserAPI service", version=app.version)

        if settings.store.seed_demo_user:
            seed_store(app.state.user_store)

        try:
            logger.info(
                "UserAPI service started successfully",
                log_file=str(settings.log_file),
                protected_prefix=settings.security.protected_prefix,
            )
            yield
        finally:
            logger.info("UserAPI service shutdown complete")

    return lifespan


async def userapi_exception_handler(request: Request, exc: UserAPIException) -> JSONResponse:
    """Handle service exceptions (validation, not found)."""
    logger = structlog.get_logger(__name__)
    logger.info(
        "Request rejected",
        error=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )
    return error_response(exc)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unparseable path parameters and bodies as 400."""
    logger = structlog.get_logger(__name__)
    logger.info(
        "Request could not be parsed",
        path=request.url.path,
        method=request.method,
        errors=len(exc.errors()),
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request.",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions; details go to the log file, never the client."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    writer = getattr(request.app.state, 'request_log', None)
    if writer is not None:
        await writer.write(f"Exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error."},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Each call builds a fresh application with its own user store, so tests
    can create isolated instances.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(settings.log_level)

    app = FastAPI(
        title="UserAPI",
        description="In-memory user records behind a shared API key",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan_handler(settings),
    )

    app.state.settings = settings
    app.state.user_store = UserStore()
    app.state.metrics = MetricsCollector(version=app.version)
    app.state.request_log = RequestLogWriter(settings.log_file)

    app.add_exception_handler(UserAPIException, userapi_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Last added runs first: request logging wraps the API key gate
    app.add_middleware(ApiKeyMiddleware, settings=settings.security)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestLogMiddleware,
        writer=app.state.request_log,
        metrics=app.state.metrics,
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(
        users_router,
        prefix=settings.security.protected_prefix,
        tags=["users"],
        dependencies=api_key_dependencies(settings.security),
    )

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.userapi.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )
