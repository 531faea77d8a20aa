"""
UtilityHub API — Access Log Middleware
========================================

What:  One line per tool call on the "utilityhub.access" logger.
How:   Preflights and /health are not logged; the browser sends an OPTIONS
       before nearly every POST and uptime checks poll /health. Everything
       else is timed from middleware entry to response return.

Level by outcome:
    5xx (vendor failure after retries, bad AI output) → ERROR
    4xx (bad input, missing credential)               → WARNING
    otherwise                                         → INFO

Request bodies (user text, images) and vendor keys are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from utilityhub.middleware.request_id import request_id_var

logger = logging.getLogger("utilityhub.access")

UNLOGGED_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS" or request.url.path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        tool = request.url.path.rsplit("/", 1)[-1] or "/"
        status = response.status_code
        rid = request_id_var.get("")
        logger.log(
            level_for_status(status),
            "%s %s -> %d in %.0fms [%s]",
            request.method,
            request.url.path,
            status,
            elapsed_ms,
            rid,
            extra={
                "request_id": rid,
                "tool": tool,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response
