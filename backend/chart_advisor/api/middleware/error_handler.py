import time
import traceback
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from chart_advisor.config import get_settings
from chart_advisor.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Any = None,
    meta: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "error": {
            "code": error_code,
            "message": message
        }
    }

    if details:
        content["error"]["details"] = details

    if meta:
        content["error"]["meta"] = meta

    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Request validation error on {request.url.path}: {len(exc.errors())} errors")
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_code="validation_error",
        message="Invalid request data",
        details=[
            {"loc": list(error.get("loc", [])), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ],
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware for centralized error handling.

    Catches exceptions that weren't handled by route handlers, logs them,
    and returns the standard error envelope.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)

        except ValidationError as exc:
            # Models built inside handlers
            logger.warning(f"Validation error: {str(exc)}")
            return create_error_response(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                error_code="validation_error",
                message="Invalid request data",
                details=exc.errors(include_url=False, include_context=False),
            )

        except Exception as exc:
            error_id = f"err_{int(time.time())}"

            logger.error(
                f"Unhandled exception ({error_id}): {str(exc)}\n"
                f"URL: {request.method} {request.url}\n"
                f"{traceback.format_exc()}"
            )

            # In development, include the error details
            details = None
            if get_settings().environment == "development":
                details = {
                    "exception": str(exc),
                    "traceback": traceback.format_exc().split("\n")
                }

            return create_error_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code="server_error",
                message="An unexpected error occurred",
                details=details,
                meta={"error_id": error_id},
            )
