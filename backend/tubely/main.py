"""
Tubely API - FastAPI application factory.

``create_app`` assembles the upload service around one frozen Settings
object:

- Logging configured from settings at startup
- MongoDB connection opened at startup and closed at shutdown
- CORS and request logging middleware
- Classified error handler producing ``{"error": ...}`` bodies
- Upload routes, ``/assets`` static files, ``/health`` and ``/ready``

The module-level ``app`` is built from environment settings for uvicorn.
"""

import logging
import time

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from tubely import __version__
from tubely.api import api_router
from tubely.api.responses import respond_with_error, tubely_error_handler
from tubely.config import Settings, get_settings
from tubely.core.database import close_db, get_db_client, init_db
from tubely.core.errors import TubelyError
from tubely.utils.logger import setup_logging


logger = logging.getLogger(__name__)

# Status codes >= 400 indicate errors
HTTP_ERROR_THRESHOLD = 400


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open shared resources on startup and release them on shutdown.

    Startup configures logging and connects to MongoDB; a failed connection
    aborts startup. Shutdown closes the MongoDB client.
    """
    settings: Settings = app.state.settings

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info("Tubely API starting")
    logger.info("Environment: %s", settings.app_env)
    logger.info("Assets root: %s", settings.assets_root)
    logger.info("S3 bucket: %s (%s)", settings.s3_bucket_name, settings.s3_region)

    try:
        await init_db(settings)
    except RuntimeError:
        logger.exception("Failed to initialize MongoDB")
        raise

    logger.info("Tubely API ready to accept requests")

    yield

    logger.info("Tubely API shutting down")
    await close_db()
    logger.info("Tubely API shutdown complete")


# =============================================================================
# Middleware
# =============================================================================


async def request_logging_middleware(request: Request, call_next) -> Response:
    """
    Log each request with its outcome and timing.

    Adds ``X-Request-ID`` (echoing the client's value when present) and
    ``X-Process-Time`` headers to every response.
    """
    request_id = request.headers.get("x-request-id") or uuid4().hex
    start_time = time.perf_counter()

    logger.debug("Request started: %s %s [%s]", request.method, request.url.path, request_id)

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed: %s %s [%s]", request.method, request.url.path, request_id
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.INFO if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s [Status: %d] [Time: %sms] [%s]",
        request.method,
        request.url.path,
        response.status_code,
        process_time_ms,
        request_id,
    )
    return response


# =============================================================================
# Exception Handlers
# =============================================================================


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Framework HTTP errors (unknown routes, missing assets) in the service's error shape."""
    response = respond_with_error(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unclassified becomes a generic 500; the details stay in the log."""
    return respond_with_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", exc
    )


# =============================================================================
# Application Factory
# =============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the Tubely API application.

    Args:
        settings: Configuration to run with. Defaults to the process
            settings loaded from the environment.

    Returns:
        FastAPI: The configured application. Its settings are available to
        handlers through ``app.state.settings``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Tubely API",
        description="Authenticated thumbnail and video uploads for Tubely videos.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )
    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(TubelyError, tubely_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router)

    # Thumbnails are written at runtime, so the directory may not exist yet
    app.mount(
        "/assets",
        StaticFiles(directory=settings.assets_root, check_dir=False),
        name="assets",
    )

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check() -> dict[str, Any]:
        """Liveness probe: the process is up and serving requests."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": __version__,
            "service": settings.app_name,
        }

    @app.get("/ready", tags=["health"], summary="Readiness Check")
    async def readiness_check() -> JSONResponse:
        """
        Readiness probe: MongoDB is reachable.

        Returns 200 when ready and 503 otherwise, with per-dependency checks.
        """
        try:
            mongodb_ready = await get_db_client().ping()
        except RuntimeError:
            mongodb_ready = False

        return JSONResponse(
            status_code=status.HTTP_200_OK if mongodb_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ready": mongodb_ready,
                "timestamp": datetime.now(UTC).isoformat(),
                "checks": {"mongodb": mongodb_ready},
            },
        )

    return app


app = create_app()
