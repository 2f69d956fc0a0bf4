"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from app.core.config import settings
from app.core.database import check_database_connection
from app.services.scheduler import scheduler_service

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events.

    Tests the database connection on startup, starts the audit refresh
    scheduler, and stops it on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control passes to the application.
    """
    # Startup
    logger.info("Starting SEO Audit Backend...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    if await check_database_connection():
        logger.info("Database connection successful!")
    else:
        logger.warning("Database unreachable.")
        logger.warning("The application will start but some operations may fail.")

    if not settings.has_dataforseo_credentials:
        logger.warning("DataForSEO credentials missing; audit refreshes will fail.")

    if settings.SCHEDULER_ENABLED:
        try:
            await scheduler_service.start()
        except Exception as e:
            logger.warning(f"Scheduler service failed to start: {e}")
            logger.warning("Stale audits will only refresh on explicit requests.")

    yield

    # Shutdown
    logger.info("Shutting down SEO Audit Backend...")

    try:
        await scheduler_service.shutdown()
    except Exception as e:
        logger.warning(f"Scheduler shutdown error: {e}")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    app = FastAPI(
        title="SEO Audit Backend",
        description="Audit refresh job and SEO data proxies for the marketing dashboard",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Remove duplicates while preserving order
    cors_origins = list(dict.fromkeys(settings.CORS_ORIGINS))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    # Include API routes
    app.include_router(router, prefix="/api/v1")

    # Root endpoint
    @app.get("/")
    async def root() -> dict:
        """Root endpoint with API information.

        Returns:
            dict: Basic API information and links.
        """
        return {
            "name": "SEO Audit Backend",
            "version": "0.1.0",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


# Create application instance
app = create_application()
