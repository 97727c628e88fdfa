"""
Application entry point.

This module serves as the main entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from chart_advisor.api.server import api_app
from chart_advisor.config import get_settings
from chart_advisor.utils.logger import get_logger, setup_logging

# Initialize logger
logger = get_logger(__name__)

# Get settings
settings = get_settings()


# Define startup and shutdown context
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle context manager for FastAPI.

    This handles startup and shutdown events.
    """
    # ===== Startup =====
    setup_logging()
    logger.info(f"Starting {settings.app_name} (version {settings.api_version})")
    logger.info(f"Environment: {settings.environment}")
    if settings.enhancement_enabled:
        logger.info(f"Enhancement service configured at {settings.enhancement_url}")
    else:
        logger.info("Enhancement service disabled, serving local suggestions only")

    logger.info("Application startup complete")

    yield

    # ===== Shutdown =====
    logger.info("Application shutdown complete")


# Create the main application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    lifespan=lifespan,
)

# Mount the API application
app.mount("/api", api_app)


# Add root route
@app.get("/")
async def root():
    """Root route that points to the API documentation."""
    return {
        "app": settings.app_name,
        "version": settings.api_version,
        "environment": settings.environment,
        "docs_url": "/api/docs"
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        workers=settings.uvicorn_workers
    )
