"""
UtilityHub API — Shared Response Schemas
==========================================

What:  Models for the error envelope and the health check.
Why:   Documented in OpenAPI through each route's `responses=` mapping so the
       frontend knows the failure shape of every endpoint.

Tool success bodies are not modeled: they are `{"success": true}` merged with
the vendor's schema-conformant JSON, returned exactly as produced.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response format for all failures.

    Fields:
        success:    Always false
        error:      Machine-readable error code (e.g. "validation_error")
        message:    Caller-safe description, prefixed with "ERROR:"
        request_id: Correlation ID matching the X-Request-ID header
    """

    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    Health check response.

    Status values:
        healthy:  Every vendor secret is configured
        degraded: At least one secret is missing; the endpoints that need it fail
    """

    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    vendors: Dict[str, str] = Field(
        description="Credential state per vendor: configured, missing",
    )
    uptime_seconds: float = Field(description="Seconds since service started")
