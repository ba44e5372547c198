from __future__ import annotations

from typing import Optional

import httpx

from .settings import HTTP_CONNECT_TIMEOUT_SECONDS, HTTP_TIMEOUT_SECONDS

# Backend client only; python-telegram-bot manages its own connection pool.
http_client: Optional[httpx.AsyncClient] = None
_temp_http_client: Optional[httpx.AsyncClient] = None


def _new_backend_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS, connect=HTTP_CONNECT_TIMEOUT_SECONDS),
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )


async def init_http_client() -> httpx.AsyncClient:
    global http_client
    if http_client is None:
        http_client = _new_backend_client()
    return http_client


def get_http_client() -> httpx.AsyncClient:
    """Lifespan client when running, otherwise a lazily created fallback (tests, scripts)."""
    if http_client is not None:
        return http_client
    global _temp_http_client
    if _temp_http_client is None or _temp_http_client.is_closed:
        _temp_http_client = _new_backend_client()
    return _temp_http_client


async def close_http_clients() -> None:
    global http_client, _temp_http_client
    for client in (http_client, _temp_http_client):
        if client is not None and not client.is_closed:
            await client.aclose()
    http_client = None
    _temp_http_client = None
