"""
Error Handling for CoverScout

Centralized error handling:
- Structured error responses
- Logging of errors
- Translation of pipeline exceptions into HTTP status codes
"""

import traceback
from datetime import datetime, timezone

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from coverscout.cancellation import SearchCancelledError
from coverscout.catalog.isbndb import CatalogConfigurationError
from coverscout.similarity.phash import HashComputationError


class CoverScoutException(Exception):
    """Base exception for CoverScout API errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(CoverScoutException):
    """Input validation failed."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class PayloadTooLargeError(CoverScoutException):
    """Uploaded image exceeds the size limit."""

    def __init__(self, limit_mb: int):
        super().__init__(
            message="Image too large",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            detail=f"Maximum upload size is {limit_mb}MB",
        )


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: str = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "detail": detail,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(CoverScoutException)
    async def coverscout_exception_handler(request: Request, exc: CoverScoutException):
        logger.warning(f"CoverScout error: {exc.code} - {exc.message}")
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
        )

    @app.exception_handler(CatalogConfigurationError)
    async def configuration_exception_handler(request: Request, exc: CatalogConfigurationError):
        logger.error(f"Catalog not configured: {exc}")
        return create_error_response(
            error="Catalog not configured",
            code="CONFIGURATION_ERROR",
            status_code=503,
            detail=str(exc),
        )

    @app.exception_handler(HashComputationError)
    async def hash_exception_handler(request: Request, exc: HashComputationError):
        logger.warning(f"Target image could not be hashed: {exc}")
        return create_error_response(
            error="Target image could not be hashed",
            code="HASH_ERROR",
            status_code=422,
            detail=str(exc),
        )

    @app.exception_handler(SearchCancelledError)
    async def cancelled_exception_handler(request: Request, exc: SearchCancelledError):
        logger.info(f"Search cancelled: {exc}")
        return create_error_response(
            error="Search cancelled",
            code="CANCELLED",
            status_code=409,
            detail=str(exc),
        )

    @app.exception_handler(ValueError)
    async def value_exception_handler(request: Request, exc: ValueError):
        logger.warning(f"Validation error: {str(exc)}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=400,
            detail=str(exc),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            extra={"traceback": traceback.format_exc()},
        )
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
