"""
Observability Middleware.

Tags every request with a correlation id (taken from the caller or generated)
and emits one structured log line per request.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("freight_dispatch.requests")

CORRELATION_HEADER = "X-Correlation-ID"
PROCESS_TIME_HEADER = "X-Process-Time"


def _level_for(status_code: int) -> int:
    # 409s are assignment conflicts and lost races; routine on a busy board
    if status_code >= 500:
        return logging.ERROR
    if status_code == 409:
        return logging.INFO
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers[PROCESS_TIME_HEADER] = str(duration_ms)

        logger.log(
            _level_for(response.status_code),
            "%s %s -> %s",
            request.method, request.url.path, response.status_code,
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response
