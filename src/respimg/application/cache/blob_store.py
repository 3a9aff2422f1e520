"""Key-value blob stores for persisted placeholder payloads.

Keys are content hashes (hex SHA-1 of the fetch URL), values are the
data-URI strings. Entries never go stale: published images are immutable, so
a key that exists always holds the right bytes and is never rewritten.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Any

from respimg.domain.exceptions import PlaceholderPersistError
from respimg.infrastructure.observability.error_formatting import (
    format_oserror_message,
)

logger = logging.getLogger(__name__)

BLOB_SUFFIX = ".base64"


class PersistFailurePolicy(str, Enum):
    """What get_or_compute does when the computed value can't be stored."""

    FAIL = "fail"
    """Discard the computed value and raise PlaceholderPersistError."""

    WARN = "warn"
    """Log a warning and hand the computed value back anyway."""

    def __str__(self) -> str:
        return self.value


class BlobStore(ABC):
    """Base interface for placeholder blob stores."""

    def __init__(self, persist_policy: PersistFailurePolicy = PersistFailurePolicy.FAIL) -> None:
        self.persist_policy = persist_policy

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a stored value.

        Returns:
            Stored value, or None if the key was never written
        """
        pass

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Store a value.

        Raises:
            OSError: when the value could not be written
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a value is stored under key."""
        pass

    def describe(self, key: str) -> str:
        """Where key lives (for error messages)."""
        return key

    # Hey future me, this is THE primitive the placeholder cache uses. Read if present,
    # otherwise compute + persist + return. The persist_policy decides what a failed
    # write means - FAIL (default) throws the freshly computed value away so a cache
    # directory that silently doesn't work gets noticed immediately.
    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[str]],
        label: str | None = None,
    ) -> str:
        """Return the stored value for key, computing and persisting it if absent.

        Args:
            key: Store key
            compute: Coroutine factory producing the value on a miss
            label: Human-readable origin (fetch URL) for error messages

        Returns:
            Stored or freshly computed value

        Raises:
            PlaceholderPersistError: write failed and policy is FAIL
            Exception: anything compute() raises, unchanged
        """
        stored = await self.get(key)
        if stored is not None:
            logger.debug("Blob store hit for %s (%s)", key, label or "-")
            return stored

        value = await compute()

        try:
            await self.put(key, value)
        except OSError as e:
            context: dict[str, Any] = {"url": label, "byte_count": len(value)}
            message = format_oserror_message(
                e, "write placeholder", self.describe(key), context
            )
            if self.persist_policy is PersistFailurePolicy.WARN:
                logger.warning("%s (returning unpersisted value)", message)
                return value
            logger.error(message)
            raise PlaceholderPersistError(
                message,
                url=label or key,
                path=self.describe(key),
                byte_count=len(value),
            ) from e

        return value


class FileBlobStore(BlobStore):
    """One file per key under a directory: <directory>/<key>.base64.

    The file content is the raw value, no metadata wrapper, no expiry.
    """

    def __init__(
        self,
        directory: Path | str,
        persist_policy: PersistFailurePolicy = PersistFailurePolicy.FAIL,
    ) -> None:
        super().__init__(persist_policy)
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """File path for key."""
        return self.directory / f"{key}{BLOB_SUFFIX}"

    def describe(self, key: str) -> str:
        return str(self.path_for(key))

    async def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not await asyncio.to_thread(path.exists):
            return None
        return await asyncio.to_thread(path.read_text, "utf-8")

    # Writes go to a temp file first and get renamed into place, so a crash
    # mid-write never leaves a truncated blob that later reads would trust.
    async def put(self, key: str, value: str) -> None:
        path = self.path_for(key)

        def _write_sync() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(f"{path.name}.{os.getpid()}.tmp")
            try:
                tmp_path.write_text(value, "utf-8")
                os.replace(tmp_path, path)
            except OSError:
                tmp_path.unlink(missing_ok=True)
                raise

        await asyncio.to_thread(_write_sync)
        logger.debug("Persisted placeholder %s (%d bytes)", path, len(value))

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.path_for(key).exists)


class InMemoryBlobStore(BlobStore):
    """Dictionary-backed store for tests and throwaway runs.

    Nothing survives the process - use FileBlobStore for real builds.
    """

    def __init__(
        self, persist_policy: PersistFailurePolicy = PersistFailurePolicy.FAIL
    ) -> None:
        super().__init__(persist_policy)
        self._blobs: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._blobs.get(key)

    async def put(self, key: str, value: str) -> None:
        self._blobs[key] = value

    async def exists(self, key: str) -> bool:
        return key in self._blobs
