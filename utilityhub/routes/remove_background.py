"""
UtilityHub API — Background Removal Route
===========================================

What:  POST /api/remove-background: image in, transparent PNG out.
How:   The payload strategy follows the inbound Content-Type:

           multipart/form-data → stream forwarded untouched (boundary kept)
           anything else       → body buffered and repackaged as multipart

Security Checks (this route):
    - Size: Content-Length checked before reading, actual size after
    - Credential: REMOVE_BG_API_KEY resolved by get_remove_bg_service
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from utilityhub.dependencies import get_remove_bg_service
from utilityhub.exceptions import ValidationError
from utilityhub.routes.writing import ERROR_RESPONSES
from utilityhub.services.remove_bg_service import RemoveBgService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Images"])


def _content_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(message="ERROR: Invalid Content-Length header.", field="content-length") from None


@router.post(
    "/remove-background",
    response_class=Response,
    responses={
        200: {"description": "Image with the background removed", "content": {"image/png": {}}},
        **ERROR_RESPONSES,
    },
    summary="Remove the background from an image",
    description=(
        "Send the raw image bytes as the request body, or a multipart/form-data "
        "upload with an `image_file` field. Returns image/png."
    ),
)
async def remove_background(
    request: Request,
    service: RemoveBgService = Depends(get_remove_bg_service),
) -> Response:
    content_type = request.headers.get("content-type", "")
    content_length = _content_length(request)

    if content_type.lower().startswith("multipart/form-data"):
        logger.info("Forwarding multipart upload (%s bytes)", content_length or "unknown")
        image = await service.forward_multipart(request.stream(), content_type, content_length)
    else:
        # Reject oversized uploads before buffering them
        service.validate_size(content_length, None)
        body = await request.body()
        image = await service.remove_background(body)

    return Response(content=image, media_type="image/png")
