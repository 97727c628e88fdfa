import time
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chart_advisor.api.middleware.error_handler import ErrorHandlerMiddleware, validation_exception_handler
from chart_advisor.api.routes import visualizations
from chart_advisor.config import get_settings
from chart_advisor.utils.logger import get_logger, setup_logging

# Get settings
settings = get_settings()

# Setup logging
setup_logging()
logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Create the API application.

    Routes are registered without the ``/api`` prefix; main.py mounts the
    application under ``/api``.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Chart suggestions and render configurations for tabular data",
        version=settings.api_version,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom middleware
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    # Health check endpoint
    @app.get("/health", tags=["system"])
    async def health_check():
        """
        Health check endpoint to verify the API is running.
        """
        return {
            "status": "healthy",
            "version": settings.api_version,
            "timestamp": datetime.now().isoformat(),
            "environment": settings.environment,
            "enhancement_enabled": settings.enhancement_enabled,
        }

    # Include routers
    app.include_router(visualizations.router)

    # Error handlers
    @app.exception_handler(404)
    async def not_found_exception_handler(request: Request, exc):
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "not_found",
                    "message": "The requested resource was not found",
                    "path": request.url.path
                }
            }
        )

    return app


# Export the app for ASGI servers (like Uvicorn)
api_app = create_app()
