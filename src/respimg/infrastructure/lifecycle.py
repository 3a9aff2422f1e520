"""Process lifecycle: build the service graph at startup, release it at shutdown.

Usage:
    async with lifespan() as service:
        descriptor = await service.resolve(source, request, placeholder="blurred")
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from respimg.application.cache import PlaceholderCache
from respimg.application.services.images import ImageDescriptorService
from respimg.config import Settings, get_settings
from respimg.domain.ports import AssetMaterializer, ImagePostProcessor
from respimg.infrastructure.integrations import HttpClientPool, ImageApiClient
from respimg.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


# Listen future me, everything before `yield` is STARTUP, everything after is SHUTDOWN.
# The try/finally makes sure running placeholder fetches are awaited and the shared
# HTTP client is closed even when the caller's body raises.
@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    materializer: AssetMaterializer | None = None,
    post_processor: ImagePostProcessor | None = None,
) -> AsyncGenerator[ImageDescriptorService, None]:
    """Configure logging, create cache directories and yield a ready service.

    Args:
        settings: Settings to use (default: get_settings())
        materializer: Optional collaborator for traced SVG / dominant color
        post_processor: Optional collaborator for traced SVG / dominant color

    Raises:
        ConfigurationError: cache directory can't be created
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting %s", settings.app_name)

    settings.ensure_directories()
    logger.info("Placeholder cache directory: %s", settings.image_cache_dir)

    # Warm the pool with the configured limits; later get_client() calls reuse it
    await HttpClientPool.get_client(
        timeout=settings.http.timeout,
        max_keepalive=settings.http.max_keepalive,
        max_connections=settings.http.max_connections,
    )
    cache = PlaceholderCache.from_settings(
        settings, client=ImageApiClient(timeout=settings.http.timeout)
    )
    service = ImageDescriptorService(
        placeholder_cache=cache,
        materializer=materializer,
        post_processor=post_processor,
    )

    try:
        yield service
    finally:
        logger.info("Shutting down %s (%s)", settings.app_name, cache.stats())
        try:
            await cache.aclose()
        finally:
            await HttpClientPool.close()
