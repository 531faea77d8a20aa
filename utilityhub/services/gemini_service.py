"""
UtilityHub API — Google Gemini Service Implementation
=======================================================

What:  Concrete TextGenerationService calling Gemini's generateContent REST API.
Why:   Every text tool (grammar, humanizer, paraphrase, plagiarism, word games,
       name combiner, typing test) is a prompt sent to the same endpoint.
How:   Builds the JSON instruction payload (prompt + optional response schema),
       posts it through the shared bounded-retry loop, then walks the response
       envelope candidates[0].content.parts[0].text to the actual payload.
Who:   Created per request by the get_gemini_service dependency.

Failure Mapping:
    503                        → retried with backoff (UpstreamOverloadError at the cap)
    other non-2xx              → UpstreamError, vendor error.message passed through
    finishReason SAFETY        → BlockedContentError (not retried)
    finishReason RECITATION    → BlockedContentError (not retried)
    promptFeedback.blockReason → BlockedContentError (not retried)
    missing text / bad JSON    → MalformedResponseError (not retried)
"""

import asyncio
import json
import logging
import re
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx

from utilityhub.exceptions import (
    BlockedContentError,
    MalformedResponseError,
    UpstreamError,
)
from utilityhub.services.llm_base import TextGenerationService
from utilityhub.services.retry import RetryPolicy, Sleep, call_with_retry, status_classifier

logger = logging.getLogger(__name__)

# Models sometimes wrap JSON in a markdown fence even when asked not to
_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    """Return the content of the first ```json fence in text, or text itself."""
    match = _CODE_FENCE.search(text)
    if match:
        return match.group(1)
    return text.strip()


_CONTAINER_KINDS = {"OBJECT": (dict, "object"), "ARRAY": (list, "array")}


def check_schema_shape(data: Any, schema: Dict[str, Any]) -> None:
    """
    Loosely validate a parsed value against a Gemini response schema.

    Checked: the value kind (OBJECT → dict, ARRAY → list), the presence of
    the schema's required keys, and that each required key declared as
    OBJECT or ARRAY holds a dict or list. Scalars and anything deeper are
    left alone. Nothing is coerced.

    Raises:
        MalformedResponseError: The value does not have the expected shape.
    """
    kind = str(schema.get("type", "")).upper()

    if kind == "OBJECT":
        if not isinstance(data, dict):
            raise MalformedResponseError(
                context={"expected": "object", "received": type(data).__name__},
            )
        required = schema.get("required", [])
        missing = [key for key in required if key not in data]
        if missing:
            raise MalformedResponseError(context={"missing_fields": missing})

        properties = schema.get("properties", {})
        for key in required:
            prop_kind = str(properties.get(key, {}).get("type", "")).upper()
            if prop_kind not in _CONTAINER_KINDS:
                continue
            expected_type, expected_name = _CONTAINER_KINDS[prop_kind]
            if not isinstance(data[key], expected_type):
                raise MalformedResponseError(
                    context={
                        "field": key,
                        "expected": expected_name,
                        "received": type(data[key]).__name__,
                    },
                )

    elif kind == "ARRAY":
        if not isinstance(data, list):
            raise MalformedResponseError(
                context={"expected": "array", "received": type(data).__name__},
            )


class GeminiService(TextGenerationService):
    """
    Gemini generateContent client with bounded retry.

    Architecture:
        - One instance per request, sharing the application's pooled httpx client
        - API key travels in the x-goog-api-key header (never in the URL, so it
          cannot leak into access logs)
        - All calls go through call_with_retry() with the 503 overload signal
    """

    OVERLOAD_STATUSES = (503,)

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        model: str = "gemini-2.5-flash",
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        timeout: float = 25.0,
    ):
        self.api_key = api_key
        self.client = client
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    @staticmethod
    def build_payload(
        prompt: str,
        response_schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Build the generateContent request body.

        With a response_schema, the model is told to answer with JSON only
        (responseMimeType application/json) conforming to that schema.
        """
        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}

        generation_config: Dict[str, Any] = {}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema
        if temperature is not None:
            generation_config["temperature"] = temperature
        if generation_config:
            payload["generationConfig"] = generation_config

        if tools:
            payload["tools"] = tools

        return payload

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        body = await self._generate(
            self.build_payload(prompt, temperature=temperature, tools=tools)
        )
        return self._extract_text(body).strip()

    async def generate_json(
        self,
        prompt: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        body = await self._generate(
            self.build_payload(
                prompt,
                response_schema=response_schema,
                temperature=temperature,
                tools=tools,
            )
        )
        text = strip_code_fence(self._extract_text(body))

        try:
            data = json.loads(text)
        except ValueError as e:
            logger.error("Failed to parse JSON from Gemini output: %s", e)
            raise MalformedResponseError(context={"snippet": text[:100]}) from e

        if response_schema is not None:
            check_schema_shape(data, response_schema)

        return data

    async def _generate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Post one payload through the retry loop and return the decoded body.

        Performance tracking:
            Duration covers every attempt, including backoff waits, so slow
            requests caused by overload show up in the logs.
        """
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        async def send() -> httpx.Response:
            return await self.client.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )

        response = await call_with_retry(
            send,
            status_classifier(self.OVERLOAD_STATUSES),
            self.policy,
            sleep=self.sleep,
            description=f"[{request_id}] Gemini {self.model}",
            overload_message="ERROR: The model is overloaded. Please try again later.",
            unavailable_message="ERROR: Could not reach the AI service. Please try again later.",
            timeout_message="ERROR: The AI analysis took too long. Please try again.",
        )

        if not response.is_success:
            raise self._vendor_error(response)

        try:
            body = response.json()
        except ValueError as e:
            logger.error("[%s] Gemini returned a non-JSON success body", request_id)
            raise MalformedResponseError(context={"request_id": request_id}) from e

        if not isinstance(body, dict):
            raise MalformedResponseError(context={"request_id": request_id})

        # Some failures arrive as 200 with an error object instead of a status
        error = body.get("error")
        if error:
            detail = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamError(
                message=f"ERROR: Gemini API Error: {detail or 'unknown error'}",
                context={"request_id": request_id},
            )

        usage = body.get("usageMetadata") or {}
        logger.info(
            "[%s] Gemini call completed in %.0fms (tokens=%s)",
            request_id,
            (time.perf_counter() - start_time) * 1000,
            usage.get("totalTokenCount", "n/a"),
        )
        return body

    @staticmethod
    def _vendor_error(response: httpx.Response) -> UpstreamError:
        """Translate a definitive error status into UpstreamError."""
        detail = f"{response.status_code} {response.reason_phrase}".strip()
        try:
            error_body = response.json()
        except ValueError:
            logger.error(
                "Gemini API returned non-JSON error response (status %d)",
                response.status_code,
            )
        else:
            logger.error("Gemini API returned error JSON: %s", error_body)
            error = error_body.get("error") if isinstance(error_body, dict) else None
            if isinstance(error, dict) and error.get("message"):
                detail = error["message"]

        return UpstreamError(
            message=f"ERROR: Gemini API Error: {detail}",
            status=response.status_code,
        )

    @staticmethod
    def _extract_text(body: Dict[str, Any]) -> str:
        """
        Walk candidates[0].content.parts[0].text.

        Raises:
            BlockedContentError: No text because the vendor blocked the content.
            MalformedResponseError: No text for any other reason.
        """
        candidates = body.get("candidates") or []
        candidate = candidates[0] if isinstance(candidates, list) and candidates else {}
        if not isinstance(candidate, dict):
            candidate = {}

        content = candidate.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        part = parts[0] if isinstance(parts, list) and parts else {}
        text = part.get("text") if isinstance(part, dict) else None

        if isinstance(text, str) and text:
            return text

        finish_reason = candidate.get("finishReason")
        if finish_reason in ("SAFETY", "RECITATION"):
            logger.warning("Gemini withheld output (finishReason=%s)", finish_reason)
            raise BlockedContentError(reason=finish_reason)

        feedback = body.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            logger.warning("Gemini blocked the prompt (blockReason=%s)", block_reason)
            raise BlockedContentError(reason=str(block_reason))

        logger.error("Unexpected Gemini response structure: %s", json.dumps(body)[:500])
        raise MalformedResponseError(
            message="ERROR: Unexpected or empty response structure from AI.",
            context={"finish_reason": finish_reason},
        )
