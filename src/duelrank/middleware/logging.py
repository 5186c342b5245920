# src/duelrank/middleware/logging.py

"""Request/response logging middleware for the DuelRank API."""

import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("duelrank.api")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and its outcome with a shared request ID.

    A caller-supplied ``X-Request-ID`` (e.g. from the match-resolution job)
    is reused so one ID follows a match result across services; otherwise
    a short random ID is generated. The ID is echoed on the response.
    Client and server errors are logged at WARNING.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start = time.perf_counter()

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        logger.debug(
            "[%s] %s %s",
            request_id,
            request.method,
            request.url.path,
            extra={
                **context,
                "query_params": str(request.query_params),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "[%s] %s %s -> ERROR (%.2fms): %s",
                request_id,
                request.method,
                request.url.path,
                (time.perf_counter() - start) * 1000,
                e,
                extra={**context, "error": str(e)},
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "[%s] %s %s -> %d (%.2fms)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                **context,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response  # type: ignore[no-any-return]
