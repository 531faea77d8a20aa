"""
UtilityHub API — Request Dependencies
=======================================

What:  FastAPI dependencies that resolve credentials and build the per-request
       vendor clients and tool services.
Why:   Every route needs the same preamble: look up the vendor secret, fail
       fast if it is missing, and wire a client to the shared connection pool.
How:   Dependency chain, resolved by FastAPI before the route body runs:

           get_settings ─┐
           get_http_client ─┼─→ get_gemini_service ─→ get_writing_service
           get_backoff_sleep ┘                      └→ get_game_service
                            └─→ get_remove_bg_service

       Tests override get_settings (fake credentials), get_http_client
       (httpx.MockTransport) and get_backoff_sleep (records delays instead of
       waiting) through app.dependency_overrides.

Credential Resolution:
    The secret is read once per request, before any network I/O. Missing or
    blank → ConfigurationError (HTTP 500), logged with the variable name, and
    no outbound call is made.
"""

import asyncio
import logging
from typing import AsyncIterator

import httpx
from fastapi import Depends, Request

from utilityhub.config import Settings, get_settings
from utilityhub.exceptions import ConfigurationError
from utilityhub.services.games_service import GameContentService
from utilityhub.services.gemini_service import GeminiService
from utilityhub.services.remove_bg_service import RemoveBgService
from utilityhub.services.retry import RetryPolicy, Sleep
from utilityhub.services.writing_service import WritingToolsService

logger = logging.getLogger(__name__)


async def get_http_client(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    """
    Yield the application's pooled httpx client.

    Falls back to a client scoped to this request when the lifespan did not run
    (e.g. the app mounted by a host that skips ASGI lifespan events).
    """
    client = getattr(request.app.state, "http_client", None)
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient() as client:
        yield client


def get_backoff_sleep() -> Sleep:
    """Awaitable used between retry attempts."""
    return asyncio.sleep


def _require_secret(value: str, env_name: str) -> str:
    if not value or not value.strip():
        logger.error("%s is not configured; rejecting request before any outbound call", env_name)
        raise ConfigurationError(setting=env_name)
    return value.strip()


def get_gemini_service(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    sleep: Sleep = Depends(get_backoff_sleep),
) -> GeminiService:
    api_key = _require_secret(settings.gemini_api_key, "GEMINI_API_KEY")
    return GeminiService(
        api_key,
        client,
        model=settings.gemini_model,
        api_base=settings.gemini_api_base,
        policy=RetryPolicy.from_settings(settings),
        sleep=sleep,
        timeout=settings.upstream_timeout,
    )


def get_remove_bg_service(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    sleep: Sleep = Depends(get_backoff_sleep),
) -> RemoveBgService:
    api_key = _require_secret(settings.remove_bg_api_key, "REMOVE_BG_API_KEY")
    return RemoveBgService(
        api_key,
        client,
        api_url=settings.remove_bg_api_url,
        policy=RetryPolicy.from_settings(settings),
        sleep=sleep,
        timeout=settings.upstream_timeout,
        max_image_size=settings.max_image_size,
    )


def get_writing_service(
    llm: GeminiService = Depends(get_gemini_service),
) -> WritingToolsService:
    return WritingToolsService(llm)


def get_game_service(
    llm: GeminiService = Depends(get_gemini_service),
) -> GameContentService:
    return GameContentService(llm)
