from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ratekeeper import __version__
from ratekeeper.app.api.rate_limit import router as rate_limit_router
from ratekeeper.app.core.config import settings
from ratekeeper.app.core.logging import get_logger, setup_logging
from ratekeeper.app.core.redis import close_redis
from ratekeeper.app.exceptions import RateKeeperException
from ratekeeper.app.middleware.rate_limit import RateLimitMiddleware
from ratekeeper.app.middleware.request_id import RequestIdMiddleware, get_request_id
from ratekeeper.app.services.rate_limit import (
    RateLimitService,
    get_rate_limit_service,
    reset_rate_limit_service,
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        The Redis client is created lazily on first use; shutdown closes
        its connection pool.
        """
        logger.info(
            "Application startup complete",
            extra={
                "redis_url_configured": bool(settings.redis_url),
                "api_rate_limit_enabled": settings.api_rate_limit_enabled,
                "debug_mode": settings.debug,
            },
        )
        yield
        reset_rate_limit_service()
        await close_redis()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="ratekeeper",
        description="Redis-backed rate limiting with five interchangeable algorithms",
        version=__version__,
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    if settings.api_rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, algorithm=settings.api_rate_limit_algorithm)

    app.add_middleware(RequestIdMiddleware)

    app.include_router(rate_limit_router)

    @app.get("/health")
    async def health(service: RateLimitService = Depends(get_rate_limit_service)) -> dict[str, Any]:
        """Health check endpoint with Redis status."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}
        try:
            await service.store.ping()
            health_status["components"]["redis"] = {"status": "ok"}
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["redis"] = {
                "status": "error",
                "error": str(e)[:100]  # Truncate for security
            }
        return health_status

    @app.exception_handler(RateKeeperException)
    async def ratekeeper_exception_handler(request: Request, exc: RateKeeperException) -> JSONResponse:
        """Map client input errors to 400 and store faults to 500."""
        if exc.status_code >= 500:
            logger.error(
                f"Rate limit store failure [request_id={get_request_id(request)}]: {exc.message}",
                extra={"request_id": get_request_id(request)},
            )
        content = exc.to_response()
        content["request_id"] = get_request_id(request)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback to the client; debug mode adds the
        exception message and type.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            },
        )

        content: dict[str, Any] = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
