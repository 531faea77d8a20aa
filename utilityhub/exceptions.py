"""
UtilityHub API — Custom Exception Hierarchy
=============================================

What:  Defines application-specific exceptions for every failure class a proxy
       request can end in.
Why:   Each class carries the HTTP status and a curated, caller-safe message,
       so a single boundary can render every failure the same way.
How:   Each exception carries a message (returned to the caller) and an optional
       context dict (logged server-side only). Global exception handlers
       registered in main.py turn them into the JSON error envelope.
Who:   Raised by dependencies, tool services, vendor clients and the retry loop.

Exception Hierarchy:
    UtilityHubError (base)
    ├── ValidationError              → 400 (missing or invalid caller input)
    ├── ConfigurationError           → 500 (vendor secret not configured)
    └── UpstreamError                → 500 (definitive vendor error, not retried)
        ├── UpstreamOverloadError    → 500 (overload signal after the retry cap)
        ├── UpstreamUnavailableError → 500 (transport failure after the retry cap)
        ├── UpstreamTimeoutError     → 500 (outbound deadline exceeded)
        ├── BlockedContentError      → 500 (safety / recitation block)
        └── MalformedResponseError   → 500 (unexpected shape or invalid JSON)
"""

from typing import Any, Dict, Optional


class UtilityHubError(Exception):
    """
    Base exception for all UtilityHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "ERROR: An unexpected error occurred.",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(UtilityHubError):
    """
    Raised when caller input is missing or invalid.

    When:    Required JSON field absent, empty image body, image too large.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "ERROR: Invalid request.",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConfigurationError(UtilityHubError):
    """
    Raised when a vendor secret is missing from the process configuration.

    When:    Once per request, before any network I/O.
    HTTP:    500. The caller cannot fix this, and the message never names
             which variable is missing (that goes to the log).
    """

    error_code = "configuration_error"

    def __init__(
        self,
        setting: str,
        message: str = "ERROR: API Key is not configured on the server.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["setting"] = setting
        super().__init__(message=message, context=ctx)
        self.setting = setting


class UpstreamError(UtilityHubError):
    """
    Raised when the vendor answered with a definitive (non-retryable) error.

    When:    Bad request, auth failure, vendor-side fault, error object in body.
    HTTP:    500. The vendor's own message is passed through when present.
    """

    error_code = "upstream_error"

    def __init__(
        self,
        message: str = "ERROR: The AI service encountered an issue processing the request.",
        status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status is not None:
            ctx["upstream_status"] = status
        super().__init__(message=message, context=ctx)
        self.status = status


class UpstreamOverloadError(UpstreamError):
    """
    Raised when every attempt was answered with the vendor's overload signal.

    When:    After max_retries + 1 attempts, all classified as retryable.
    """

    error_code = "upstream_overloaded"

    def __init__(
        self,
        message: str = "ERROR: The service is overloaded. Please try again later.",
        attempts: int = 0,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["attempts"] = attempts
        super().__init__(message=message, context=ctx)
        self.attempts = attempts


class UpstreamUnavailableError(UpstreamError):
    """
    Raised when the vendor could not be reached (connection refused, reset, DNS).

    When:    After the retry cap when transport errors are retried, or on the
             first failure when the retry policy excludes them.
    """

    error_code = "upstream_unreachable"

    def __init__(
        self,
        message: str = "ERROR: Could not reach the upstream service. Please try again later.",
        attempts: int = 0,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["attempts"] = attempts
        super().__init__(message=message, context=ctx)
        self.attempts = attempts


class UpstreamTimeoutError(UpstreamError):
    """Raised when an outbound call exceeds its deadline. Never retried."""

    error_code = "upstream_timeout"

    def __init__(
        self,
        message: str = "ERROR: The analysis took too long. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BlockedContentError(UpstreamError):
    """
    Raised when a generative vendor withheld its output.

    The vendor answered successfully but flagged the candidate (SAFETY,
    RECITATION) or the prompt itself. Retrying would produce the same verdict,
    so this is terminal and kept distinct from overload.
    """

    error_code = "content_blocked"

    def __init__(
        self,
        reason: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        if message is None:
            if reason == "RECITATION":
                message = "ERROR: AI response blocked due to potential recitation."
            else:
                message = "ERROR: AI response blocked due to safety settings."
        super().__init__(message=message, context=ctx)
        self.reason = reason


class MalformedResponseError(UpstreamError):
    """Raised when a success response cannot be parsed into the expected shape."""

    error_code = "malformed_response"

    def __init__(
        self,
        message: str = "ERROR: Received an invalid response format from the AI.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
