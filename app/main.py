"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests build the app once and override the get_db dependency

2. Lifespan Events
   - startup: verify the database and Redis are reachable
   - shutdown: dispose the engine pool and close Redis

3. Exception Handlers
   - app.exceptions errors map to their HTTP status codes
   - ConflictError answers 503 with Retry-After: the write was not applied
     and the client may resend it
   - Unhandled database errors answer 503, anything else 500
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import check_connection, dispose_engine
from app.exceptions import CatalogError, ConflictError
from app.routers import (
    books_router,
    categories_router,
    reading_list_router,
    reviews_router,
    stats_router,
    users_router,
)
from app.services.cache import close_redis_connection, get_cache_stats, get_redis_client
from app.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CONFLICT_RETRY_AFTER_SECONDS = 1


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Code before yield runs on startup, code after yield on shutdown.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")
    logger.info(f"API version: {settings.api_version}")

    if check_connection():
        logger.info("Database reachable")
    else:
        logger.warning("Database unreachable at startup - requests will fail with 503")

    if get_redis_client():
        logger.info("Redis caching enabled")
    else:
        logger.warning("Redis unavailable or disabled - rankings are computed on every request")

    yield

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    close_redis_connection()
    dispose_engine()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Reading Tracker API

Book catalog with reviews and reading lists.

### Features
- **Books**: Catalog with review count, average rating and list count
- **Categories**: Group books
- **Reviews**: One review per user and book; ratings 0-5
- **Reading List**: Track want-to-read, reading and completed books
- **Statistics**: Top reviewers and fastest readers
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(CatalogError)
    async def catalog_exception_handler(
        request: Request,
        exc: CatalogError,
    ) -> JSONResponse:
        """Render service-layer errors with their own status code."""
        headers = None
        if isinstance(exc, ConflictError):
            headers = {"Retry-After": str(CONFLICT_RETRY_AFTER_SECONDS)}

        if exc.status_code >= 500:
            logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Database errors raised outside a service transaction (reads).

        Logs the actual error while hiding details from clients.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": "The data store is unavailable. Please try again later."},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all. Details are only shown in debug mode."""
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(books_router, prefix=api_prefix)
    app.include_router(categories_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(reading_list_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(stats_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API and its backing stores are reachable.",
    )
    def health_check() -> dict:
        """
        Used by load balancers and monitoring.

        "degraded" means the database could not be reached; Redis being down
        only disables caching.
        """
        database_ok = check_connection()

        return {
            "status": "healthy" if database_ok else "degraded",
            "app": settings.app_name,
            "version": settings.api_version,
            "database": {"connected": database_ok},
            "cache": get_cache_stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
                "write_limit": settings.rate_limit_write,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn app.main:app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
