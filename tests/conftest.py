"""
UtilityHub API — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure: fake vendor, backoff recorder,
       injected settings and an API client wired to all three.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── upstream:        Scripted vendor behind httpx.MockTransport; counts calls
    ├── upstream_client: httpx.AsyncClient routed to `upstream`
    ├── backoff:         Records requested backoff delays instead of sleeping
    ├── test_settings:   Settings with fake credentials (mutable per test)
    ├── gemini_reply:    Builds a Gemini generateContent response
    └── test_client:     HTTPX AsyncClient for API endpoint testing
"""

import os
from typing import Any, Callable, List, Union

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any utilityhub import: the settings singleton reads them
os.environ["GEMINI_API_KEY"] = "test-gemini-key-not-real"
os.environ["REMOVE_BG_API_KEY"] = "test-removebg-key-not-real"
os.environ["CORS_ALLOW_ORIGINS"] = "*"
os.environ["LOG_LEVEL"] = "WARNING"

from utilityhub.config import Settings, get_settings  # noqa: E402
from utilityhub.dependencies import get_backoff_sleep, get_http_client  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

Scripted = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """
    Scripted vendor: answers each outbound request with the next queued item.

    Items are httpx.Response objects, exceptions (raised instead of
    answering), or callables taking the request. When the queue is empty the
    `default` item answers.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._script: List[Scripted] = []
        self.default: Scripted = httpx.Response(500, text="no response scripted")

    def queue(self, *items: Scripted) -> None:
        self._script.extend(items)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._script.pop(0) if self._script else self.default
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item


class BackoffRecorder:
    """Stands in for asyncio.sleep; remembers every requested delay."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def upstream_client(upstream):
    """httpx client whose every request is answered by `upstream`."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def backoff() -> BackoffRecorder:
    return BackoffRecorder()


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings with fake credentials and the default retry policy.

    Tests may mutate fields (e.g. blank a key) before sending requests.
    """
    return Settings(
        gemini_api_key="test-gemini-key",
        remove_bg_api_key="test-removebg-key",
        retry_max_retries=3,
        retry_base_delay=1.0,
        retry_max_delay=30.0,
        max_image_size=1_048_576,
    )


@pytest.fixture
def gemini_reply() -> Callable[..., httpx.Response]:
    """
    Factory for Gemini generateContent responses.

    Usage:
        upstream.queue(gemini_reply('{"word": "apple", "hint": "fruit"}'))
    """

    def build(text: Any = None, status: int = 200, **candidate_fields: Any) -> httpx.Response:
        candidate: dict = dict(candidate_fields)
        if text is not None:
            candidate["content"] = {"parts": [{"text": text}], "role": "model"}
        candidate.setdefault("finishReason", "STOP")
        body = {"candidates": [candidate], "usageMetadata": {"totalTokenCount": 42}}
        return httpx.Response(status, json=body)

    return build


@pytest_asyncio.fixture
async def test_client(test_settings, upstream_client, backoff):
    """
    Provides an async HTTP test client for endpoint testing.

    Settings, the outbound httpx client and the backoff sleep are replaced
    through dependency_overrides, so no request leaves the process and retries
    never wait.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from utilityhub.main import app

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_client] = lambda: upstream_client
    app.dependency_overrides[get_backoff_sleep] = lambda: backoff

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
