"""
Shared HTTP client for provider API calls and webhook deliveries.

One pooled httpx.AsyncClient serves Google, Fitbit, Notify Me and every user
webhook. It never follows redirects, so a webhook URL cannot bounce a
notification somewhere the user did not configure. Token endpoint calls go
through authlib sessions instead (see ``healthsync.integrations.oauth_client``).
"""
import asyncio
from typing import Optional

import httpx

from healthsync.core.config import settings
from healthsync.core.logging_config import log_info

_client: Optional[httpx.AsyncClient] = None
_client_lock: Optional[asyncio.Lock] = None


def user_agent() -> str:
    return f"{settings.app_name.replace(' ', '')}/{settings.app_version}"


def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        follow_redirects=False,
        headers={"User-Agent": user_agent()},
    )


def _get_lock() -> asyncio.Lock:
    global _client_lock
    if _client_lock is None:
        _client_lock = asyncio.Lock()
    return _client_lock


async def get_http_client() -> httpx.AsyncClient:
    """
    The shared client, created on first use or after it was closed.

    Closed by the app's shutdown hook.
    """
    global _client
    if _client is None or _client.is_closed:
        async with _get_lock():
            if _client is None or _client.is_closed:
                _client = build_http_client()
                log_info("HTTP client created", timeout=settings.http_timeout_seconds, user_agent=user_agent())
    return _client


async def close_http_client() -> None:
    global _client
    async with _get_lock():
        if _client and not _client.is_closed:
            await _client.aclose()
            _client = None
            log_info("HTTP client closed")


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300
