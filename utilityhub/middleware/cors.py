"""
UtilityHub API — CORS / Preflight Gate
========================================

What:  Answers every OPTIONS request itself and stamps CORS headers on every
       other response.
Why:   Browsers call these endpoints cross-origin. A preflight must succeed
       without credentials, body validation or vendor access, so it never
       reaches a route.
How:   Starlette middleware, innermost of the application's own middleware:

           OPTIONS <any path>  → 200, empty body, CORS headers. Nothing else runs.
           anything else       → call_next(), then CORS headers on the response
                                 (errors included, so the browser can read them)
           exception escaping a route → generic 500 envelope, CORS headers kept

Origin Selection:
    configured "*"                    → Access-Control-Allow-Origin: *
    request Origin in configured list → echoed back, plus Vary: Origin
    otherwise                         → first configured origin
"""

import logging
from typing import Dict, List, Optional, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from utilityhub.middleware.request_id import request_id_var
from utilityhub.responses import unexpected_error_response

logger = logging.getLogger(__name__)


class CORSGateMiddleware(BaseHTTPMiddleware):
    """
    Minimal CORS gate for a POST-only JSON/image API.

    Unlike a general-purpose CORS middleware, preflight handling does not
    depend on Access-Control-Request-* headers: any OPTIONS is answered 200.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_origins: Sequence[str] = ("*",),
        allow_methods: Sequence[str] = ("POST", "OPTIONS"),
        allow_headers: Sequence[str] = ("Content-Type",),
    ) -> None:
        super().__init__(app)
        self.allow_origins: List[str] = list(allow_origins) or ["*"]
        self.allow_all_origins = "*" in self.allow_origins
        self.allow_methods = ", ".join(allow_methods)
        self.allow_headers = ", ".join(allow_headers)

    def select_origin(self, request_origin: Optional[str]) -> str:
        if self.allow_all_origins:
            return "*"
        if request_origin and request_origin in self.allow_origins:
            return request_origin
        return self.allow_origins[0]

    def cors_headers(self, request_origin: Optional[str]) -> Dict[str, str]:
        headers = {
            "Access-Control-Allow-Origin": self.select_origin(request_origin),
            "Access-Control-Allow-Methods": self.allow_methods,
            "Access-Control-Allow-Headers": self.allow_headers,
        }
        if not self.allow_all_origins:
            headers["Vary"] = "Origin"
        return headers

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        headers = self.cors_headers(request.headers.get("origin"))

        if request.method == "OPTIONS":
            logger.debug("Preflight for %s answered by CORS gate", request.url.path)
            return Response(status_code=200, headers=headers)

        try:
            response = await call_next(request)
        except Exception:
            # Rendered here so the browser can still read the 500 envelope
            logger.error(
                "[%s] Unhandled error on %s %s",
                request_id_var.get(""),
                request.method,
                request.url.path,
                exc_info=True,
            )
            response = unexpected_error_response()

        vary = headers.pop("Vary", None)
        response.headers.update(headers)
        if vary:
            response.headers.add_vary_header(vary)
        return response
