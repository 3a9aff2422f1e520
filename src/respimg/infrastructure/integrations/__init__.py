"""Integrations with remote services."""

from respimg.infrastructure.integrations.http_pool import HttpClientPool
from respimg.infrastructure.integrations.image_api_client import (
    FetchedImage,
    ImageApiClient,
)

__all__ = ["FetchedImage", "HttpClientPool", "ImageApiClient"]
