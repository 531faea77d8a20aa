"""
UtilityHub API — Gemini Service Unit Tests (Mocked)
=====================================================

What:  Tests for GeminiService against a scripted generateContent endpoint.
Why:   Tests should not make real API calls (costs money, requires network).
How:   The service gets an httpx client on httpx.MockTransport (the upstream
       fixture), which records every request and answers from a script.

What we test:
    ✅ Request payload: prompt, response schema, temperature, tools, auth header
    ✅ JSON output parsed as-is (fenced or not) and loosely shape-checked
    ✅ 503 retried with backoff; overload error at the cap
    ✅ Definitive vendor errors pass the vendor message through, one call
    ✅ Blocked and malformed responses are terminal
    ❌ Real API calls (use integration tests for that)
"""

import json

import httpx
import pytest

from utilityhub.exceptions import (
    BlockedContentError,
    MalformedResponseError,
    UpstreamError,
    UpstreamOverloadError,
)
from utilityhub.services.gemini_service import (
    GeminiService,
    check_schema_shape,
    strip_code_fence,
)
from utilityhub.services.retry import RetryPolicy
from utilityhub.services.writing_service import GRAMMAR_SCHEMA

WORD_SCHEMA = {
    "type": "OBJECT",
    "properties": {"word": {"type": "STRING"}, "hint": {"type": "STRING"}},
    "required": ["word", "hint"],
}


@pytest.fixture
def service(upstream_client, backoff):
    return GeminiService(
        "test-gemini-key",
        upstream_client,
        model="gemini-test",
        api_base="https://gemini.test/v1beta/",
        policy=RetryPolicy(max_retries=3, base_delay=1.0),
        sleep=backoff,
    )


class TestHelpers:
    """Tests for the module-level parsing helpers."""

    def test_strip_code_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fence('Here you go:\n```\n[1, 2]\n```\nDone.') == "[1, 2]"
        assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'

    def test_check_schema_shape_accepts_extra_keys(self):
        check_schema_shape({"word": "x", "hint": "y", "extra": 1}, WORD_SCHEMA)

    def test_check_schema_shape_rejects_missing_key(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            check_schema_shape({"word": "x"}, WORD_SCHEMA)
        assert exc_info.value.context["missing_fields"] == ["hint"]

    def test_check_schema_shape_checks_kind(self):
        with pytest.raises(MalformedResponseError):
            check_schema_shape(["x"], WORD_SCHEMA)
        with pytest.raises(MalformedResponseError):
            check_schema_shape({"names": []}, {"type": "ARRAY", "items": {"type": "STRING"}})
        check_schema_shape(["a", "b"], {"type": "ARRAY", "items": {"type": "STRING"}})

    def test_check_schema_shape_checks_required_containers(self):
        # null or scalar where the schema declares a list/object is malformed
        with pytest.raises(MalformedResponseError) as exc_info:
            check_schema_shape({"analysis": {}, "corrections": None}, GRAMMAR_SCHEMA)
        assert exc_info.value.context == {"field": "corrections", "expected": "array", "received": "NoneType"}

        with pytest.raises(MalformedResponseError) as exc_info:
            check_schema_shape({"analysis": "fine", "corrections": []}, GRAMMAR_SCHEMA)
        assert exc_info.value.context["field"] == "analysis"

        # Item contents and nested required keys are not inspected
        check_schema_shape({"analysis": {}, "corrections": [{"from": 0}]}, GRAMMAR_SCHEMA)


class TestPayload:
    """Tests for the request sent to generateContent."""

    def test_build_payload_plain(self):
        payload = GeminiService.build_payload("hello")
        assert payload == {"contents": [{"parts": [{"text": "hello"}]}]}

    def test_build_payload_with_schema_and_options(self):
        tools = [{"google_search": {}}]
        payload = GeminiService.build_payload("hi", WORD_SCHEMA, temperature=1.0, tools=tools)
        assert payload["generationConfig"] == {
            "responseMimeType": "application/json",
            "responseSchema": WORD_SCHEMA,
            "temperature": 1.0,
        }
        assert payload["tools"] == tools

    @pytest.mark.asyncio
    async def test_request_shape(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply('{"word": "apple", "hint": "A fruit"}'))

        await service.generate_json("prompt text", response_schema=WORD_SCHEMA, temperature=1.0)

        request = upstream.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://gemini.test/v1beta/models/gemini-test:generateContent"
        assert request.headers["x-goog-api-key"] == "test-gemini-key"
        assert "key=" not in str(request.url)

        sent = json.loads(request.content)
        assert sent["contents"][0]["parts"][0]["text"] == "prompt text"
        assert sent["generationConfig"]["responseSchema"] == WORD_SCHEMA
        assert sent["generationConfig"]["temperature"] == 1.0


class TestGeminiServiceMocked:
    """Tests for GeminiService success and failure paths."""

    @pytest.mark.asyncio
    async def test_generate_json_returns_output_unchanged(self, service, upstream, gemini_reply):
        output = {"word": "apple", "hint": "A fruit", "difficulty": 3}
        upstream.queue(gemini_reply(json.dumps(output)))

        result = await service.generate_json("p", response_schema=WORD_SCHEMA)

        assert result == output
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_generate_json_strips_markdown_fence(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply('```json\n{"word": "kiwi", "hint": "Fuzzy"}\n```'))
        result = await service.generate_json("p", response_schema=WORD_SCHEMA)
        assert result == {"word": "kiwi", "hint": "Fuzzy"}

    @pytest.mark.asyncio
    async def test_generate_text_strips_whitespace(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply("  A rewritten sentence.\n"))
        assert await service.generate_text("p") == "A rewritten sentence."

    @pytest.mark.asyncio
    async def test_non_json_output_is_malformed_and_not_retried(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply("Sure! The word is apple."))

        with pytest.raises(MalformedResponseError) as exc_info:
            await service.generate_json("p", response_schema=WORD_SCHEMA)

        assert exc_info.value.message == "ERROR: Received an invalid response format from the AI."
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_required_field_is_malformed(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply('{"word": "apple"}'))
        with pytest.raises(MalformedResponseError):
            await service.generate_json("p", response_schema=WORD_SCHEMA)

    @pytest.mark.asyncio
    async def test_overload_then_success(self, service, upstream, gemini_reply, backoff):
        upstream.queue(
            httpx.Response(503, json={"error": {"message": "overloaded"}}),
            httpx.Response(503, json={"error": {"message": "overloaded"}}),
            gemini_reply('{"word": "apple", "hint": "A fruit"}'),
        )

        result = await service.generate_json("p", response_schema=WORD_SCHEMA)

        assert result == {"word": "apple", "hint": "A fruit"}
        assert upstream.call_count == 3
        assert backoff.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_overload_exhausts_retries(self, service, upstream, backoff):
        upstream.default = httpx.Response(503, json={"error": {"message": "overloaded"}})

        with pytest.raises(UpstreamOverloadError) as exc_info:
            await service.generate_text("p")

        assert upstream.call_count == 4
        assert exc_info.value.message == "ERROR: The model is overloaded. Please try again later."

    @pytest.mark.asyncio
    async def test_vendor_error_message_passed_through(self, service, upstream):
        upstream.queue(
            httpx.Response(400, json={"error": {"code": 400, "message": "API key not valid."}}),
        )

        with pytest.raises(UpstreamError) as exc_info:
            await service.generate_text("p")

        assert exc_info.value.message == "ERROR: Gemini API Error: API key not valid."
        assert exc_info.value.status == 400
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_vendor_error_without_json_uses_status(self, service, upstream):
        upstream.queue(httpx.Response(500, text="<html>oops</html>"))

        with pytest.raises(UpstreamError) as exc_info:
            await service.generate_text("p")

        assert exc_info.value.message == "ERROR: Gemini API Error: 500 Internal Server Error"

    @pytest.mark.asyncio
    async def test_error_object_in_success_body(self, service, upstream):
        upstream.queue(httpx.Response(200, json={"error": {"message": "quota exceeded"}}))
        with pytest.raises(UpstreamError) as exc_info:
            await service.generate_text("p")
        assert "quota exceeded" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_safety_block(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply(finishReason="SAFETY"))

        with pytest.raises(BlockedContentError) as exc_info:
            await service.generate_text("p")

        assert exc_info.value.reason == "SAFETY"
        assert exc_info.value.message == "ERROR: AI response blocked due to safety settings."
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_recitation_block(self, service, upstream, gemini_reply):
        upstream.queue(gemini_reply(finishReason="RECITATION"))
        with pytest.raises(BlockedContentError) as exc_info:
            await service.generate_json("p")
        assert exc_info.value.reason == "RECITATION"

    @pytest.mark.asyncio
    async def test_prompt_block(self, service, upstream):
        upstream.queue(httpx.Response(200, json={"promptFeedback": {"blockReason": "OTHER"}}))
        with pytest.raises(BlockedContentError) as exc_info:
            await service.generate_text("p")
        assert exc_info.value.reason == "OTHER"

    @pytest.mark.asyncio
    async def test_empty_candidates(self, service, upstream):
        upstream.queue(httpx.Response(200, json={"candidates": []}))
        with pytest.raises(MalformedResponseError) as exc_info:
            await service.generate_text("p")
        assert exc_info.value.message == "ERROR: Unexpected or empty response structure from AI."

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, service, upstream):
        upstream.queue(httpx.Response(200, text="not json"))
        with pytest.raises(MalformedResponseError):
            await service.generate_text("p")
        assert upstream.call_count == 1
