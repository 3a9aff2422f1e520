"""Placeholder cache - blurred low-resolution previews, fetched at most once.

Hey future me - read this before touching anything here!

Two tiers per fetch URL:
- _resolved: settled data-URI strings (memory, process lifetime)
- the BlobStore: <sha1(url)>.base64 files that survive restarts

Plus _in_flight: url → the ONE asyncio.Task currently producing that value.
The in-flight map IS the mutual exclusion. get_placeholder() is a plain def
with no await between "is there a task?" and "register my task", so on the
event loop thread the check-and-start is atomic. Add an await in there and
you get duplicate fetches.

Every caller gets a future:
- settled        → already-resolved future
- in flight      → asyncio.shield() of the shared task (fan-out)
- neither        → new task registered, then shielded
shield() matters: a caller that gets cancelled must NOT cancel the fetch that
other callers are waiting on.

Failures are never cached. The task drops itself from _in_flight when it
finishes either way, every waiter of that attempt sees the same exception,
and the next call starts a fresh attempt.

Both maps are unbounded. That's fine: values are ~1-2KB thumbnails and a
build only knows a finite set of images.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from respimg.application.cache.blob_store import BlobStore, FileBlobStore
from respimg.infrastructure.integrations.image_api_client import (
    DEFAULT_MIME_TYPE,
    ImageApiClient,
)
from respimg.infrastructure.observability.logger_template import log_operation

if TYPE_CHECKING:
    from respimg.config.settings import Settings
    from respimg.domain.value_objects import ImageSource

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_API_HOST = "images.ctfassets.net"
DEFAULT_PLACEHOLDER_WIDTH = 20


class PlaceholderCache:
    """Fetches, persists and fans out blurred placeholder payloads.

    One instance per process (lifespan() builds it). Independent instances
    share nothing, which is what tests rely on.

    Args:
        store: Persistent tier (FileBlobStore in production)
        client: Image API client used on a store miss
        image_api_host: Only URLs on this host are fetchable
        placeholder_width: Width (px) of the preview request
        fallback_mime: MIME type for the data URI when the API doesn't say
    """

    def __init__(
        self,
        store: BlobStore,
        client: ImageApiClient,
        image_api_host: str = DEFAULT_IMAGE_API_HOST,
        placeholder_width: int = DEFAULT_PLACEHOLDER_WIDTH,
        fallback_mime: str = DEFAULT_MIME_TYPE,
    ) -> None:
        self._store = store
        self._client = client
        self.image_api_host = image_api_host
        self.placeholder_width = placeholder_width
        self.fallback_mime = fallback_mime

        self._in_flight: dict[str, asyncio.Task[str]] = {}
        self._resolved: dict[str, str] = {}
        self._network_fetches = 0

    @classmethod
    def from_settings(
        cls, settings: Settings, client: ImageApiClient | None = None
    ) -> PlaceholderCache:
        """Build a cache on the disk store configured in settings."""
        store = FileBlobStore(
            settings.image_cache_dir, persist_policy=settings.persist_failure_policy
        )
        return cls(
            store=store,
            client=client or ImageApiClient(timeout=settings.http.timeout),
            image_api_host=settings.image_api_host,
            placeholder_width=settings.placeholder_width,
            fallback_mime=settings.placeholder_fallback_mime,
        )

    @property
    def store(self) -> BlobStore:
        return self._store

    # === Keys & URLs ===

    def _is_api_url(self, url: str) -> bool:
        hostname = urlparse(url).hostname or ""
        return hostname == self.image_api_host or hostname.endswith(
            "." + self.image_api_host
        )

    def placeholder_url(self, source: ImageSource) -> str | None:
        """Low-resolution fetch URL for source, None when not fetchable."""
        if not source.is_raster_image or not source.base_url:
            return None

        base_url = source.base_url
        if base_url.startswith("//"):
            base_url = f"https:{base_url}"

        if not self._is_api_url(base_url):
            return None

        return f"{base_url}?w={self.placeholder_width}"

    @staticmethod
    def cache_key(url: str) -> str:
        """Hex SHA-1 of the fetch URL (content addressing, not security)."""
        return hashlib.sha1(url.encode("utf-8"), usedforsecurity=False).hexdigest()

    # === Public API ===

    def get_placeholder(self, source: ImageSource) -> asyncio.Future[str] | None:
        """Get the blurred placeholder for source.

        Must be called from a running event loop.

        Returns:
            Future resolving to a "data:image/...;base64,..." string, or None
            when the source is not eligible (never raises for that).
        """
        url = self.placeholder_url(source)
        if url is None:
            return None

        loop = asyncio.get_running_loop()

        settled = self._resolved.get(url)
        if settled is not None:
            future: asyncio.Future[str] = loop.create_future()
            future.set_result(settled)
            return future

        task = self._in_flight.get(url)
        if task is None:
            task = loop.create_task(self._load(url), name=f"placeholder:{url}")
            self._in_flight[url] = task
        else:
            logger.debug("Joining in-flight placeholder fetch for %s", url)

        return asyncio.shield(task)

    def peek(self, source: ImageSource) -> str | None:
        """Settled value for source without starting anything."""
        url = self.placeholder_url(source)
        if url is None:
            return None
        return self._resolved.get(url)

    def stats(self) -> dict[str, Any]:
        """Cache counters for logs and tests."""
        return {
            "in_flight": len(self._in_flight),
            "resolved": len(self._resolved),
            "network_fetches": self._network_fetches,
        }

    def clear(self) -> None:
        """Forget settled values (disk blobs and running fetches stay)."""
        self._resolved.clear()

    async def aclose(self) -> None:
        """Wait for running fetches to finish, then drop memory state.

        Running fetches are awaited, not cancelled. Their failures were
        already delivered to their callers and are not raised again here.
        """
        pending = list(self._in_flight.values())
        if pending:
            logger.info("Waiting for %d placeholder fetches to finish", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
        self._resolved.clear()

    # === Internals ===

    async def _load(self, url: str) -> str:
        try:
            body = await self._store.get_or_compute(
                self.cache_key(url), lambda: self._fetch(url), label=url
            )
        finally:
            self._in_flight.pop(url, None)

        self._resolved[url] = body
        return body

    async def _fetch(self, url: str) -> str:
        self._network_fetches += 1
        async with log_operation(
            logger, "placeholder_fetch", log_level=logging.DEBUG, url=url
        ):
            fetched = await self._client.fetch(url)
        return fetched.to_data_uri(self.fallback_mime)
