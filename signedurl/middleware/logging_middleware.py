"""
Request Logging Middleware

Middleware that:
- Generates unique request_id for each request
- Logs request start and end with timing
- Propagates request_id to all logs via contextvars

Query strings are never logged; on a signed URL they carry the signature.
"""
import time
import uuid
import logging
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from signedurl.core.logging_config import clear_request_id, get_request_id, sanitize_log_value, set_request_id
from signedurl.middleware.signed import request_path

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs all HTTP requests with timing and correlation IDs.

    For each request:
    1. Generates a unique UUID as request_id
    2. Sets request_id in context for all downstream logs
    3. Logs request start (method, path)
    4. Logs request end (status code, response time in ms)
    """

    # Paths to exclude from detailed logging
    EXCLUDED_PATHS = {'/health', '/docs', '/redoc', '/openapi.json'}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        token = set_request_id(request_id)

        # Available to routes and error handlers
        request.state.request_id = request_id

        start_time = time.perf_counter()

        method = request.method
        path = sanitize_log_value(request_path(request))
        client_host = request.client.host if request.client else "unknown"

        should_log = path not in self.EXCLUDED_PATHS

        if should_log:
            logger.info(
                "Request started",
                extra={
                    "event_type": "request_start",
                    "method": method,
                    "path": path,
                    "client_ip": client_host,
                }
            )

        try:
            response = await call_next(request)

            response_time_ms = (time.perf_counter() - start_time) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id

            if should_log:
                log_level = logging.INFO if response.status_code < 400 else logging.WARNING
                if response.status_code >= 500:
                    log_level = logging.ERROR

                logger.log(
                    log_level,
                    "Request completed",
                    extra={
                        "event_type": "request_complete",
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "response_time_ms": round(response_time_ms, 2),
                        "client_ip": client_host,
                    }
                )

            return response

        except Exception as e:
            response_time_ms = (time.perf_counter() - start_time) * 1000

            logger.error(
                "Request failed with exception",
                extra={
                    "event_type": "request_error",
                    "method": method,
                    "path": path,
                    "response_time_ms": round(response_time_ms, 2),
                    "client_ip": client_host,
                    "error_type": type(e).__name__,
                },
                exc_info=True
            )
            raise

        finally:
            clear_request_id(token)


def get_current_request_id() -> str:
    """Current request ID, or "no-request" outside a request context."""
    return get_request_id() or "no-request"
