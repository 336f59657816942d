"""
Error Handling Middleware

Provides consistent, informative error responses across the API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)
- Custom exception classes for the service error taxonomy

Usage:
    from studyhub.middleware.error_handling import ErrorHandlingMiddleware, NotFoundError

    # Add middleware to app
    app.add_middleware(ErrorHandlingMiddleware)

    # Raise custom exceptions
    raise NotFoundError("Activity 42 not found")

Exception handling hierarchy:
    - HTTPException: Re-raised for FastAPI's built-in handler
    - ServiceError: Custom exceptions → structured JSON response
    - Exception: Catch-all for unexpected errors → sanitized response
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str  # Error code (e.g., "not_found")
    message: str  # Human-readable message
    error_id: str  # For log correlation
    details: Optional[dict] = None  # Additional context (sanitized)
    timestamp: datetime


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Recommendation store unavailable", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when a required input field is missing or malformed. Detected
    before any mutation.
    """

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a referenced user, activity or subtopic doesn't exist.
    """

    status_code = 404
    error_code = "not_found"


class StoreError(ServiceError):
    """
    Persistence failure.

    Wraps database errors. Surfaced as an opaque server error and never
    retried automatically.
    """

    status_code = 500
    error_code = "store_error"


class ScoringError(ServiceError):
    """
    Scoring failure for a single recommendation candidate.

    The recommendation generator catches it per candidate, logs it and
    drops the candidate.
    """

    status_code = 500
    error_code = "scoring_error"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            response = await call_next(request)
            return response

        except HTTPException:
            # Let FastAPI handle HTTP exceptions
            raise

        except ServiceError as e:
            logger.error(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={
                    "error_id": error_id,
                    "error_code": e.error_code,
                    "path": request.url.path,
                    "method": request.method,
                    "details": e.details,
                },
            )
            return service_error_response(e, error_id, debug=self.debug)

        except Exception as e:
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            content = {
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "error_id": error_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

            if self.debug:
                content["details"] = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(status_code=500, content=content)


def service_error_response(
    error: ServiceError, error_id: str, debug: bool = False
) -> JSONResponse:
    """Render a ServiceError in the standard error format."""
    # Store errors stay opaque outside debug mode
    message = error.message
    if isinstance(error, StoreError) and not debug:
        message = "A storage error occurred"

    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": error.error_code,
            "message": message,
            "error_id": error_id,
            "details": error.details if debug else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    ServiceErrors are rendered by an exception handler (so they work
    regardless of middleware ordering); the middleware covers everything else.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """

    async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        error_id = str(uuid4())[:8]
        logger.warning(
            f"[{error_id}] {exc.error_code}: {exc.message}",
            extra={"path": request.url.path, "method": request.method},
        )
        return service_error_response(exc, error_id, debug=debug)

    app.add_exception_handler(ServiceError, _handle_service_error)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Endpoint Decorator
# =============================================================================


def handle_endpoint_errors(operation: str) -> Callable:
    """
    Decorator that normalizes errors raised inside a route handler.

    HTTPException and ServiceError pass through untouched so FastAPI and the
    registered handlers can render them; anything else is logged and turned
    into a 500 HTTPException.

    Args:
        operation: Human-readable operation name used in logs

    Usage:
        @router.get("/stats")
        @handle_endpoint_errors("Get activity stats")
        async def get_stats(...):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except (HTTPException, ServiceError):
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {e}", exc_info=True)
                raise HTTPException(status_code=500, detail=f"{operation} failed")

        return wrapper

    return decorator
