"""
UtilityHub API — Health Check Route
=====================================

What:  Liveness endpoint for monitoring and uptime probes.
How:   Reports which vendor secrets are configured. Makes no outbound calls.

    Status levels:
    - healthy:  Every vendor secret configured
    - degraded: A secret is missing; only the endpoints needing it fail (HTTP 200)
"""

import logging
import time

from fastapi import APIRouter, Depends

from utilityhub import __version__
from utilityhub.config import Settings, get_settings
from utilityhub.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()

_VENDOR_SECRETS = {
    "gemini": "GEMINI_API_KEY",
    "remove_bg": "REMOVE_BG_API_KEY",
}


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Returns service status, version and per-vendor credential state.",
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    missing = set(settings.missing_credentials())
    vendors = {
        vendor: "missing" if env_name in missing else "configured"
        for vendor, env_name in _VENDOR_SECRETS.items()
    }

    overall = "degraded" if missing else "healthy"
    if missing:
        logger.warning("Health check: missing credentials %s", sorted(missing))

    return HealthResponse(
        status=overall,
        version=__version__,
        vendors=vendors,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
