"""
FastAPI application entry point.

Copyright (C) 2025 Prepdeck
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from .config import get_settings
from .core.database import check_db_health, connect_db, disconnect_db
from .dependencies import DBDep, SettingsDep
from .middleware import LoggingMiddleware, SecurityHeadersMiddleware
from .models.error_response import ErrorResponse
from .routes.courses import router as courses_router
from .routes.goals import router as goals_router
from .utils.exceptions import PrepdeckError
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


# ============================================================================
# Global Exception Handlers
# ============================================================================


async def prepdeck_error_handler(request: Request, exc: PrepdeckError) -> JSONResponse:
    """
    Convert PrepdeckError instances into the standard ErrorResponse body.

    5xx errors are logged with a traceback and sent to Sentry; 4xx errors are
    logged as warnings. ``detail`` is only exposed in debug mode.
    """
    settings = get_settings()

    log_context = {
        "error_code": exc.code,
        "status_code": exc.status_code,
        "detail": exc.detail,
        "path": request.url.path,
        "method": request.method,
    }

    if exc.status_code >= 500:
        logger.error(
            f"PrepdeckError [500-level]: {exc.code} - {exc.message}",
            exc_info=exc,
            extra=log_context,
        )
        sentry_sdk.capture_exception(exc)
    else:
        logger.warning(f"PrepdeckError: {exc.code} - {exc.message}", extra=log_context)

    error_response = ErrorResponse(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        detail=exc.detail if settings.DEBUG else None,
    )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(exclude_none=True),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reformat request validation failures as a 400 VALIDATION_ERROR response."""
    settings = get_settings()
    errors = exc.errors()

    if len(errors) == 1:
        error = errors[0]
        field = " -> ".join(str(loc) for loc in error["loc"])
        message = f"Validation error in field '{field}': {error['msg']}"
    else:
        message = f"Request validation failed with {len(errors)} error(s)"

    error_response = ErrorResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="VALIDATION_ERROR",
        message=message,
        detail=str(errors) if settings.DEBUG else None,
    )

    logger.info(f"Validation error: {message}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response.model_dump(exclude_none=True),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the traceback, report to Sentry, return a generic 500."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
            "traceback": "".join(traceback.format_exception(exc)),
        },
    )
    sentry_sdk.capture_exception(exc)

    error_response = ErrorResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_SERVER_ERROR",
        message="An internal server error occurred. Please try again later.",
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(exclude_none=True),
    )


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Logging first, before anything logs
    configure_logging()

    settings = get_settings()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.SENTRY_DSN.strip():
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            sample_rate=1.0,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            release=settings.APP_VERSION,
        )
        logger.info(
            "Sentry error tracking initialized",
            extra={"environment": settings.ENVIRONMENT, "release": settings.APP_VERSION},
        )
    else:
        logger.warning("Sentry DSN not configured - error tracking disabled")

    await connect_db()

    yield

    logger.info("Shutting down application...")
    await disconnect_db()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_exception_handler(PrepdeckError, prepdeck_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    @app.get("/")
    async def root(settings: SettingsDep) -> dict[str, str]:
        """Root endpoint."""
        return {"message": settings.APP_NAME, "version": settings.APP_VERSION}

    @app.get("/health")
    async def health(db_client: DBDep) -> JSONResponse:
        """Database health check: 200 when a trivial query succeeds, 503 otherwise."""
        try:
            result = await db_client.query_raw("SELECT 1 as test")
        except Exception as e:
            logger.warning("Health check failed", extra={"error": str(e)})
            result = None

        if not result:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unhealthy", "db": "disconnected"},
            )
        return JSONResponse(content={"status": "OK", "db": "connected"})

    @app.get("/ready")
    async def ready() -> dict[str, Any]:
        """Readiness check endpoint."""
        return {"status": "ready", "database": await check_db_health()}

    app.include_router(goals_router)
    app.include_router(courses_router)

    return app


app = create_app()
