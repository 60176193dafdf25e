"""
API middleware.

Maps pipeline errors to HTTP responses and logs each request.
"""

from .error_handler import (
    CoverScoutException,
    ValidationError,
    PayloadTooLargeError,
    setup_exception_handlers,
    create_error_response,
)

from .logging import (
    LoggingConfig,
    StructuredLogFormatter,
    RequestLoggingMiddleware,
    setup_logging,
    get_request_id,
)


__all__ = [
    # Error handling
    "CoverScoutException",
    "ValidationError",
    "PayloadTooLargeError",
    "setup_exception_handlers",
    "create_error_response",
    # Logging
    "LoggingConfig",
    "StructuredLogFormatter",
    "RequestLoggingMiddleware",
    "setup_logging",
    "get_request_id",
]
