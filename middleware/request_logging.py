"""
Request logging middleware.

Provides:
- A request ID per request, bound into structlog contextvars and echoed in
  the X-Request-ID response header
- One request_completed event with status and duration; the level follows
  the status class (5xx error, 4xx warning, else info)
"""

import time
import uuid

import structlog
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from shared.logging import get_logger

log = get_logger("identity.request")


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)

        status_code = response.status_code
        if status_code >= 500:
            log_fn = log.error
        elif status_code >= 400:
            log_fn = log.warning
        else:
            log_fn = log.info

        user_id = getattr(request.state, "user_id", None)
        log_fn(
            "request_completed",
            status_code=status_code,
            duration_ms=duration_ms,
            user_id=user_id,
        )

        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging_middleware(app: FastAPI) -> None:
    """Register the request logging middleware on *app*."""
    app.add_middleware(RequestLoggingMiddleware)
