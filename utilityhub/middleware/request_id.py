"""
UtilityHub API — Request ID Middleware
========================================

What:  Tags each request with a correlation ID, echoed in X-Request-ID and in
       the "request_id" field of every error envelope.
How:   A caller-supplied X-Request-ID is honoured only when it is a short
       token (letters, digits, ".", "_", "-"; at most 64 characters). Anything
       else is replaced by a fresh 8-character ID, so arbitrary header text
       never reaches log lines or response bodies.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(client_value: Optional[str]) -> str:
    if client_value and _CLIENT_ID_PATTERN.match(client_value):
        return client_value
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
