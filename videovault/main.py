"""
Main FastAPI application entry point.
Configures logging, exception handlers, middleware, and routers.
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from videovault.api.dependencies import get_entity_store
from videovault.api.routers import (
    discover_router,
    health_router,
    likes_router,
    playlists_router,
    videos_router,
)
from videovault.config import get_settings
from videovault.config.logging import configure_logging
from videovault.core.exceptions import AppException, ValidationError
from videovault.core.telemetry import setup_telemetry


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    logger = logging.getLogger(__name__)
    settings = get_settings()

    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Demo data seeded: {settings.SEED_DEMO_DATA}")
    logger.info(f"Entity store sizes: {get_entity_store().sizes()}")

    yield

    logger.info("Shutting down application")


# =============================================================================
# Middleware
# =============================================================================

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag each request with an id (client-supplied or generated) and log its outcome."""
    logger = logging.getLogger(__name__)
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
        extra={"request_id": request_id},
    )
    return response


# =============================================================================
# Exception Handlers
# =============================================================================


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """Handle custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed bodies and query params use the same 400 envelope as service validation."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    error = ValidationError("Invalid request", details={"errors": details})
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions - return generic error."""
    logger = logging.getLogger(__name__)
    logger.exception(f"Unhandled exception: {exc}")

    error = AppException(
        message="An unexpected error occurred",
        status_code=500,
        error_code="INTERNAL_ERROR",
    )
    return JSONResponse(status_code=500, content=error.to_dict())


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    configure_logging(debug=settings.DEBUG)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
        VideoVault API

        Backend for a social video platform.

        ## Features
        - Video publishing with draft and published states
        - Likes on videos, comments and tweets
        - Ordered playlists
        - Channel and video discovery
        - Circuit breaker around object storage
        - Observability: JSON logs, Prometheus, OpenTelemetry
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context_middleware)

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    for router in (videos_router, likes_router, playlists_router, discover_router):
        app.include_router(router, prefix=settings.API_PREFIX)

    setup_telemetry(app)

    return app


# Create application instance
app = create_app()


# =============================================================================
# Development Entry Point
# =============================================================================


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "videovault.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
