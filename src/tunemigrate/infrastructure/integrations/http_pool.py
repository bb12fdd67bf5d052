"""Shared HTTP client pool for the provider gateways.

Hey future me - both gateways (Spotify, Tidal) talk through ONE httpx.AsyncClient
so TCP connections are reused across pages, batches and concurrent runs. The
per-call deadline is NOT configured here - the gateway attaches it per request.

Usage:
    client = await HttpClientPool.get_client()
    response = await client.get("https://api.example.com/data")

HttpClientPool.close() runs at app shutdown (see infrastructure/lifecycle.py).
"""

import asyncio
import logging
from typing import ClassVar

import httpx

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Singleton HTTP client pool for connection reuse.

    Features:
    - Lazy initialization (created on first use, inside the running loop)
    - Initialization guarded by asyncio.Lock
    - Proper cleanup at shutdown
    """

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    # The gateways serialize calls per provider anyway, so a small pool is plenty.
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 10
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 20

    @classmethod
    def _ensure_lock(cls) -> asyncio.Lock:
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def get_client(cls) -> httpx.AsyncClient:
        """Get the shared HTTP client instance, creating it on first call."""
        async with cls._ensure_lock():
            if cls._client is None:
                cls._client = httpx.AsyncClient(
                    limits=httpx.Limits(
                        max_keepalive_connections=cls.DEFAULT_MAX_KEEPALIVE,
                        max_connections=cls.DEFAULT_MAX_CONNECTIONS,
                    ),
                    http2=True,
                    follow_redirects=True,
                )
                logger.info(
                    "HTTP client pool initialized (keepalive=%d, max_conn=%d)",
                    cls.DEFAULT_MAX_KEEPALIVE,
                    cls.DEFAULT_MAX_CONNECTIONS,
                )
            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared HTTP client and release all connections."""
        async with cls._ensure_lock():
            if cls._client is not None:
                await cls._client.aclose()
                cls._client = None
                logger.info("HTTP client pool closed")
