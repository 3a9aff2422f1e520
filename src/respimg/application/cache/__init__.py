"""Caching layer - persistent placeholder payloads."""

from respimg.application.cache.blob_store import (
    BlobStore,
    FileBlobStore,
    InMemoryBlobStore,
    PersistFailurePolicy,
)
from respimg.application.cache.placeholder_cache import PlaceholderCache

__all__ = [
    "BlobStore",
    "FileBlobStore",
    "InMemoryBlobStore",
    "PersistFailurePolicy",
    "PlaceholderCache",
]
