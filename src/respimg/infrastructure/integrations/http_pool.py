"""Shared HTTP client pool for the image API.

Hey future me - every placeholder fetch goes through ONE httpx.AsyncClient so
keep-alive connections to the image CDN get reused. A build can ask for
thousands of 20px thumbnails; opening a fresh TCP+TLS connection for each one
is what made the first version crawl.

Usage:
    from respimg.infrastructure.integrations.http_pool import HttpClientPool

    client = await HttpClientPool.get_client()
    response = await client.get("https://images.ctfassets.net/...?w=20")

Call HttpClientPool.close() at shutdown (lifespan() in lifecycle.py does).
"""

import asyncio
import logging
from typing import ClassVar

import httpx

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Lazily created, process-wide httpx.AsyncClient.

    - created on first use
    - creation guarded by an asyncio.Lock
    - limits and timeout applied on first creation only
    - close() releases connections; the next get_client() starts fresh
    """

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    DEFAULT_TIMEOUT: ClassVar[float] = 30.0
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 20
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 50

    @classmethod
    def _ensure_lock(cls) -> asyncio.Lock:
        # asyncio.Lock() must be created inside a running loop, hence lazy
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def get_client(
        cls,
        timeout: float | None = None,
        max_keepalive: int | None = None,
        max_connections: int | None = None,
    ) -> httpx.AsyncClient:
        """Get the shared client, creating it on first call.

        Args:
            timeout: Request timeout in seconds (default: 30.0)
            max_keepalive: Idle connections kept open (default: 20)
            max_connections: Total concurrent connections (default: 50)

        Returns:
            Shared httpx.AsyncClient

        Note:
            Config params only apply on the FIRST call.
        """
        async with cls._ensure_lock():
            if cls._client is None:
                effective_timeout = timeout or cls.DEFAULT_TIMEOUT
                effective_keepalive = max_keepalive or cls.DEFAULT_MAX_KEEPALIVE
                effective_max_conn = max_connections or cls.DEFAULT_MAX_CONNECTIONS

                cls._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(effective_timeout),
                    limits=httpx.Limits(
                        max_keepalive_connections=effective_keepalive,
                        max_connections=effective_max_conn,
                    ),
                    # The image CDN speaks HTTP/2, lots of tiny requests multiplex well
                    http2=True,
                    follow_redirects=True,
                )
                logger.info(
                    "HTTP client pool initialized (timeout=%.1fs, keepalive=%d, max_conn=%d)",
                    effective_timeout,
                    effective_keepalive,
                    effective_max_conn,
                )

            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client and release all connections."""
        async with cls._ensure_lock():
            if cls._client is not None:
                await cls._client.aclose()
                cls._client = None
                logger.info("HTTP client pool closed")

    @classmethod
    def is_initialized(cls) -> bool:
        """True once a client exists (health checks, tests)."""
        return cls._client is not None
