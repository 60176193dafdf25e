"""
Request logging middleware.

One log line per API request:
- Request id taken from X-Request-ID or generated, echoed on the response
- Duration, with a separate slow threshold for similarity searches
- Upload size and a short whitelist of request headers
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("coverscout.api")


@dataclass
class LoggingConfig:
    """Configuration for request logging."""

    enabled: bool = True

    excluded_paths: set[str] = field(default_factory=lambda: {"/health", "/favicon.ico"})

    # Only these request headers are logged; credentials never are
    logged_headers: tuple[str, ...] = ("user-agent", "content-type", "content-length")

    # Searches download and hash every candidate cover
    search_path_prefix: str = "/api/v1/covers/similar"
    slow_search_seconds: float = 15.0
    slow_request_seconds: float = 1.0

    request_id_header: str = "X-Request-ID"

    def slow_threshold(self, path: str) -> float:
        if path.startswith(self.search_path_prefix):
            return self.slow_search_seconds
        return self.slow_request_seconds


class StructuredLogFormatter(logging.Formatter):
    """Render records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        context = getattr(record, "context", None)
        if context:
            entry.update(context)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def get_request_id() -> str:
    """Request id of the request being handled, or an empty string."""
    return request_id_var.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its outcome and timing."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.config.request_id_header) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        path = request.url.path
        if not self.config.enabled or path in self.config.excluded_paths:
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers[self.config.request_id_header] = request_id

        slow = elapsed > self.config.slow_threshold(path)
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400 or slow:
            level = logging.WARNING
        else:
            level = logging.INFO

        duration_ms = round(elapsed * 1000, 2)
        message = f"{request.method} {path} -> {response.status_code} ({duration_ms}ms)"
        if slow:
            message = f"[SLOW] {message}"

        logger.log(
            level,
            message,
            extra={"context": {
                "method": request.method,
                "path": path,
                "query": request.url.query or None,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else None,
                "headers": {
                    name: request.headers[name]
                    for name in self.config.logged_headers
                    if name in request.headers
                },
            }},
        )

        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the request logging middleware.

    With ``structured`` the ``coverscout`` stdlib logger writes JSON lines.
    """
    if structured:
        package_logger = logging.getLogger("coverscout")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in package_logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredLogFormatter())
            package_logger.addHandler(handler)
        package_logger.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config or LoggingConfig())
