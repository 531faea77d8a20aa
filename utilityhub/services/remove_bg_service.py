"""
UtilityHub API — remove.bg Background Removal Service
=======================================================

What:  Forwards an inbound image to remove.bg and returns the cut-out PNG.
Why:   The API key must stay server-side; the browser only ever talks to us.
How:   Two payload strategies, chosen by the route from the inbound Content-Type:

       Buffer-and-repackage (raw image body):
           Read the whole body, validate its size, and wrap it in a new
           multipart form with the fixed field `image_file`, the synthetic
           filename `image.jpg`, and `size=auto`. Retried per RetryPolicy.

       Pass-through streaming (inbound multipart/form-data):
           Forward the byte stream untouched with the ORIGINAL Content-Type
           header. The multipart boundary lives in that header; rewriting it
           would invalidate the body. A stream cannot be replayed, so this path
           makes exactly one attempt.

Who:   Created per request by the get_remove_bg_service dependency.
"""

import asyncio
import logging
import time
from typing import AsyncIterator, Optional

import httpx

from utilityhub.exceptions import MalformedResponseError, UpstreamError, ValidationError
from utilityhub.services.retry import RetryPolicy, Sleep, call_with_retry, status_classifier

logger = logging.getLogger(__name__)


class RemoveBgService:
    """
    remove.bg client.

    Overload signals: 429 (rate limited) and 503 (busy) are retried with
    backoff on the buffered path; every other error status is final.
    """

    OVERLOAD_STATUSES = (429, 503)

    # Multipart layout remove.bg expects for a file upload
    # remove.bg sniffs the bytes; the filename is never read
    UPLOAD_FIELD = "image_file"
    UPLOAD_FILENAME = "image.jpg"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        api_url: str = "https://api.remove.bg/v1/removebg",
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        timeout: float = 25.0,
        max_image_size: int = 10_485_760,
    ):
        self.api_key = api_key
        self.client = client
        self.api_url = api_url
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.timeout = timeout
        self.max_image_size = max_image_size

    def validate_size(self, content_length: Optional[int], actual_size: Optional[int]) -> None:
        """
        Validate image size against the configured maximum.

        How:     Checks Content-Length first (before reading), then actual size.
        Raises:  ValidationError for empty or oversized images.
        """
        max_mb = self.max_image_size / (1024 * 1024)

        if content_length is not None and content_length > self.max_image_size:
            raise ValidationError(
                message=f"ERROR: Image exceeds the maximum size of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size is not None:
            if actual_size == 0:
                raise ValidationError(
                    message="ERROR: Image data is required.",
                    field="image",
                )
            if actual_size > self.max_image_size:
                raise ValidationError(
                    message=(
                        f"ERROR: Image size ({actual_size / (1024 * 1024):.1f}MB) "
                        f"exceeds the maximum of {max_mb:.0f}MB."
                    ),
                    field="image",
                    context={"max_size_mb": max_mb, "actual_size": actual_size},
                )

    async def remove_background(self, image: bytes) -> bytes:
        """
        Buffer-and-repackage strategy.

        Args:
            image: Complete raw image bytes from the inbound request body.

        Returns:
            PNG bytes with the background removed.
        """
        self.validate_size(None, len(image))

        async def send() -> httpx.Response:
            return await self.client.post(
                self.api_url,
                headers={"X-Api-Key": self.api_key},
                files={self.UPLOAD_FIELD: (self.UPLOAD_FILENAME, image)},
                data={"size": "auto"},
                timeout=self.timeout,
            )

        start_time = time.perf_counter()
        response = await call_with_retry(
            send,
            status_classifier(self.OVERLOAD_STATUSES),
            self.policy,
            sleep=self.sleep,
            description="remove.bg upload",
            overload_message="ERROR: The image service is busy. Please try again later.",
            unavailable_message="ERROR: Could not reach the image service. Please try again later.",
            timeout_message="ERROR: Image processing took too long. Please try again.",
        )
        result = self._read_image(response)

        logger.info(
            "remove.bg processed %d bytes into %d bytes in %.0fms",
            len(image),
            len(result),
            (time.perf_counter() - start_time) * 1000,
        )
        return result

    async def forward_multipart(
        self,
        stream: AsyncIterator[bytes],
        content_type: str,
        content_length: Optional[int] = None,
    ) -> bytes:
        """
        Pass-through streaming strategy.

        Args:
            stream: The inbound body, chunk by chunk, unmodified.
            content_type: The inbound Content-Type, boundary included.
            content_length: Inbound Content-Length when the client sent one.

        Returns:
            PNG bytes with the background removed.
        """
        if "boundary=" not in content_type.lower():
            raise ValidationError(
                message="ERROR: Multipart uploads must declare a boundary.",
                field="content-type",
            )
        if content_length == 0:
            raise ValidationError(message="ERROR: Image data is required.", field="image")
        self.validate_size(content_length, None)

        headers = {"X-Api-Key": self.api_key, "Content-Type": content_type}
        if content_length is not None:
            headers["Content-Length"] = str(content_length)

        async def send() -> httpx.Response:
            return await self.client.post(
                self.api_url,
                headers=headers,
                content=self._limited(stream),
                timeout=self.timeout,
            )

        response = await call_with_retry(
            send,
            status_classifier(self.OVERLOAD_STATUSES),
            self.policy.single_attempt(),
            sleep=self.sleep,
            description="remove.bg pass-through",
            overload_message="ERROR: The image service is busy. Please try again later.",
            unavailable_message="ERROR: Could not reach the image service. Please try again later.",
            timeout_message="ERROR: Image processing took too long. Please try again.",
        )
        return self._read_image(response)

    async def _limited(self, stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Re-yield stream chunks, stopping once the size limit is crossed."""
        received = 0
        async for chunk in stream:
            received += len(chunk)
            if received > self.max_image_size:
                self.validate_size(None, received)
            yield chunk

    def _read_image(self, response: httpx.Response) -> bytes:
        if not response.is_success:
            raise self._vendor_error(response)
        if not response.content:
            raise MalformedResponseError(
                message="ERROR: The image service returned an empty image.",
            )
        return response.content

    @staticmethod
    def _vendor_error(response: httpx.Response) -> UpstreamError:
        """remove.bg reports failures as {"errors": [{"title": ..., "code": ...}]}."""
        title = None
        try:
            body = response.json()
        except ValueError:
            logger.error("remove.bg returned non-JSON error (status %d)", response.status_code)
        else:
            logger.error("remove.bg API error: %s", body)
            errors = body.get("errors") if isinstance(body, dict) else None
            if isinstance(errors, list) and errors and isinstance(errors[0], dict):
                title = errors[0].get("title")

        message = "ERROR: Failed to process the image."
        if title:
            message = f"{message} {title}"
        return UpstreamError(message=message, status=response.status_code)
