"""
UtilityHub API — Error Envelope
=================================

What:  Builds the one JSON shape every failure is rendered into:

           {"success": false, "error": <code>, "message": "ERROR: ...",
            "request_id": <X-Request-ID>}

Who:   The exception handlers in main.py, and the CORS gate for exceptions
       that escape the routing layer.
"""

from fastapi.responses import JSONResponse

from utilityhub.middleware.request_id import request_id_var

UNEXPECTED_ERROR_MESSAGE = "ERROR: An unexpected error occurred."


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """The single error envelope every failure is rendered into."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "request_id": request_id_var.get(""),
        },
    )


def unexpected_error_response() -> JSONResponse:
    """Generic 500; the details belong in the log, never in the body."""
    return error_response(500, "internal_server_error", UNEXPECTED_ERROR_MESSAGE)
