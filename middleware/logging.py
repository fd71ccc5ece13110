"""Access logging for development mode.

Each API request produces one line tagged with a short id. The id is echoed
back in ``X-Request-ID`` so a client-side failure can be matched to the
server log. Request bodies (uploaded photos, base64 payloads) are never
logged, only their declared size.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_LOGGER_NAME = "image_analyst.requests"
REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_REQUEST_ID_CHARS = 64

logger = logging.getLogger(REQUEST_LOGGER_NAME)

QUIET_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})


def _level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        # Reuse a caller-supplied id so a frontend can correlate its own logs.
        request_id = (
            request.headers.get(REQUEST_ID_HEADER, "")[:MAX_CLIENT_REQUEST_ID_CHARS]
            or uuid.uuid4().hex[:8]
        )
        body_size = request.headers.get("content-length", "-")
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s %s body=%sB failed after %.3fs",
                request_id,
                request.method,
                request.url.path,
                body_size,
                time.perf_counter() - started,
            )
            raise

        logger.log(
            _level_for_status(response.status_code),
            "[%s] %s %s body=%sB -> %d (%.3fs)",
            request_id,
            request.method,
            request.url.path,
            body_size,
            response.status_code,
            time.perf_counter() - started,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_request_logging(log_level: str = "INFO") -> None:
    """Give the access logger its own handler and level, detached from the root logger."""
    request_logger = logging.getLogger(REQUEST_LOGGER_NAME)
    request_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    request_logger.propagate = False

    if not request_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - access - %(levelname)s - %(message)s"))
        request_logger.addHandler(handler)
