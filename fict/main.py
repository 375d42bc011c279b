"""
Fict API - Main application entry point.
"""
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from structlog.contextvars import bind_contextvars, clear_contextvars

from fict.api.v1.router import build_api_router
from fict.core.config import settings
from fict.core.exceptions import FictException
from fict.core.logging import get_logger, log_error_details, log_request_details, setup_logging
from fict.infrastructure.database.base import Base, engine
from fict.services.auth.oauth import OAuthHandshake, ProviderRegistry, get_provider_registry

# Setup logging
setup_logging()
logger = get_logger(__name__)


# Initialize Sentry if configured
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT or settings.ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            SqlalchemyIntegration(),
        ],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    logger.info(
        "Starting Fict API",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # Note: In production, use Alembic migrations instead
    if settings.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    yield

    logger.info("Shutting down Fict API")
    await engine.dispose()


def create_app(
    registry: Optional[ProviderRegistry] = None,
    handshake: Optional[OAuthHandshake] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        registry: OAuth providers to route; defaults to those configured in settings
        handshake: Handshake engine; defaults to one using the configured HTTP timeout
    """
    registry = registry if registry is not None else get_provider_registry()
    handshake = handshake or OAuthHandshake(settings.OAUTH_HTTP_TIMEOUT_SECONDS)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.APP_VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json" if not settings.is_production else None,
        docs_url=f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing information."""
        start_time = time.time()

        logger.info(
            "Request started",
            **log_request_details(
                method=request.method,
                path=request.url.path,
                client_ip=request.client.host if request.client else None,
            ),
        )

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        return response

    # Registered last so it runs first and binds the ID before request logging.
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add unique request ID to each request."""
        request_id = request.headers.get("X-Request-ID", str(time.time_ns()))

        clear_contextvars()
        bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(FictException)
    async def fict_exception_handler(request: Request, exc: FictException):
        """Render application errors with their own status code."""
        logger.warning(
            "Request failed",
            **log_error_details(exc, path=request.url.path, status_code=exc.status_code),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )

        # Don't expose internal errors in production
        if settings.is_production:
            return JSONResponse(
                status_code=500,
                content={"detail": "An internal error occurred"},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": str(exc)},
        )

    app.include_router(build_api_router(registry, handshake), prefix=settings.API_V1_PREFIX)

    @app.get("/")
    async def root() -> Dict[str, Any]:
        """
        Root endpoint.

        Returns:
            API information
        """
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "providers": [provider.name for provider in registry],
        }

    return app


app = create_app()
