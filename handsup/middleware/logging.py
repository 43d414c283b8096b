import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

log = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds a request id to every log line emitted while serving a request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        clear_contextvars()

        # Keep the caller's id when a proxy or the mobile client sent one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_contextvars(
            request_id=request_id,
            http_method=request.method,
            path=request.url.path,
        )
        request.state.request_id = request_id

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            log.exception(
                "http_request_failed",
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
                error=str(e),
            )
            raise

        log.info(
            "http_request",
            status_code=response.status_code,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
