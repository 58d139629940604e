"""Main application entry point with app factory and lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.app import create_api_app
from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.database.connection import close_database, init_database
from app.services.catalog import seed_default_catalog
from app.services.indicator_listing import get_listing_cache


logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    # Initialize database
    await init_database()

    # Make sure the default catalog exists (insert-or-ignore)
    if settings.seed_catalog_on_startup:
        try:
            await seed_default_catalog()
        except Exception as e:
            logger.warning(f"Catalog seeding failed (run scripts/seed_indicators.py): {e}")

    # Check the Valkey connection; failures are treated as cache misses
    if settings.cache_backend == "valkey":
        if await get_listing_cache().ping():
            logger.info("Valkey connection established")
        else:
            logger.warning("Valkey unreachable, listing cache disabled")

    yield

    # Shutdown
    logger.info("Shutting down...")

    # Close cache connections
    await get_listing_cache().close()

    # Close database connections
    await close_database()

    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create the main FastAPI application."""
    # Create API app
    api_app = create_api_app()

    # Create main app with lifespan
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Mount API
    app.mount("/api", api_app)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/api/docs" if settings.debug else None,
            "health": "/api/health",
        }

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
