"""Tests for the blurred placeholder cache."""

import asyncio
from pathlib import Path

import pytest

from respimg.application.cache import (
    FileBlobStore,
    InMemoryBlobStore,
    PersistFailurePolicy,
    PlaceholderCache,
)
from respimg.domain.exceptions import ExternalServiceError, PlaceholderPersistError
from respimg.domain.value_objects import ImageSource
from respimg.infrastructure.integrations.image_api_client import FetchedImage

PAYLOAD = b"tiny-jpeg"
EXPECTED_DATA_URI = "data:image/jpeg;base64,dGlueS1qcGVn"


class FakeImageApiClient:
    """Counts fetches; optionally waits on a gate or fails the first N calls."""

    def __init__(self, fail_times: int = 0, gated: bool = False) -> None:
        self.calls: list[str] = []
        self.fail_times = fail_times
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()

    async def fetch(self, url: str) -> FetchedImage:
        self.calls.append(url)
        await self.gate.wait()
        if len(self.calls) <= self.fail_times:
            raise ExternalServiceError(f"boom for {url}", url=url, status_code=503)
        return FetchedImage(content=PAYLOAD, content_type="image/jpeg")


class FailingPutStore(InMemoryBlobStore):
    """In-memory store whose writes always fail like a read-only disk."""

    async def put(self, key: str, value: str) -> None:
        raise OSError(30, "Read-only file system")


class GatedReadStore(FileBlobStore):
    """File store whose reads block on a gate and get counted."""

    def __init__(self, directory: Path) -> None:
        super().__init__(directory)
        self.reads = 0
        self.gate = asyncio.Event()

    async def get(self, key: str) -> str | None:
        self.reads += 1
        await self.gate.wait()
        return await super().get(key)


@pytest.fixture
def source() -> ImageSource:
    """Eligible image on the image API host."""
    return ImageSource(
        base_url="//images.ctfassets.net/space/asset/token/photo.jpg",
        content_type="image/jpeg",
        width=2000,
        height=1000,
    )


@pytest.fixture
def client() -> FakeImageApiClient:
    """Fake image API client."""
    return FakeImageApiClient()


@pytest.fixture
def cache(client: FakeImageApiClient) -> PlaceholderCache:
    """Cache backed by memory."""
    return PlaceholderCache(InMemoryBlobStore(), client)  # type: ignore[arg-type]


class TestPlaceholderUrl:
    """Test which sources are fetchable and how."""

    def test_protocol_relative_url(
        self, cache: PlaceholderCache, source: ImageSource
    ) -> None:
        """Test that // URLs get https and the preview width."""
        assert (
            cache.placeholder_url(source)
            == "https://images.ctfassets.net/space/asset/token/photo.jpg?w=20"
        )

    def test_foreign_host(self, cache: PlaceholderCache) -> None:
        """Test that URLs outside the image API are not fetched."""
        source = ImageSource(
            base_url="//example.com/photo.jpg",
            content_type="image/jpeg",
            width=10,
            height=10,
        )

        assert cache.placeholder_url(source) is None
        assert cache.get_placeholder(source) is None

    def test_cache_key_is_sha1_hex(self) -> None:
        """Test the content-addressed key."""
        key = PlaceholderCache.cache_key("https://images.ctfassets.net/a.jpg?w=20")

        assert len(key) == 40
        assert key == PlaceholderCache.cache_key(
            "https://images.ctfassets.net/a.jpg?w=20"
        )


class TestGetPlaceholder:
    """Test fetching, fan-out and failure handling."""

    async def test_returns_data_uri(
        self, cache: PlaceholderCache, source: ImageSource
    ) -> None:
        """Test a single fetch."""
        future = cache.get_placeholder(source)

        assert future is not None
        assert await future == EXPECTED_DATA_URI
        assert cache.peek(source) == EXPECTED_DATA_URI

    async def test_ineligible_source(self, cache: PlaceholderCache) -> None:
        """Test that a PDF yields None and starts nothing."""
        pdf = ImageSource(
            base_url="//images.ctfassets.net/space/doc/token/manual.pdf",
            content_type="application/pdf",
            width=100,
            height=100,
        )

        assert cache.get_placeholder(pdf) is None
        assert cache.stats()["in_flight"] == 0

    async def test_concurrent_callers_share_one_fetch(
        self, source: ImageSource
    ) -> None:
        """Test that N concurrent callers cause exactly one network fetch."""
        client = FakeImageApiClient(gated=True)
        cache = PlaceholderCache(InMemoryBlobStore(), client)  # type: ignore[arg-type]

        futures = [cache.get_placeholder(source) for _ in range(10)]
        assert cache.stats()["in_flight"] == 1

        client.gate.set()
        results = await asyncio.gather(*futures)  # type: ignore[arg-type]

        assert results == [EXPECTED_DATA_URI] * 10
        assert len(client.calls) == 1
        assert cache.stats() == {"in_flight": 0, "resolved": 1, "network_fetches": 1}

    async def test_settled_value_needs_no_fetch(
        self, cache: PlaceholderCache, client: FakeImageApiClient, source: ImageSource
    ) -> None:
        """Test that later calls are served from memory."""
        await cache.get_placeholder(source)  # type: ignore[misc]
        second = cache.get_placeholder(source)

        assert second is not None
        assert second.done()
        assert await second == EXPECTED_DATA_URI
        assert len(client.calls) == 1

    async def test_cancelled_caller_does_not_cancel_fetch(
        self, source: ImageSource
    ) -> None:
        """Test that one waiter giving up leaves the shared fetch running."""
        client = FakeImageApiClient(gated=True)
        cache = PlaceholderCache(InMemoryBlobStore(), client)  # type: ignore[arg-type]

        impatient = cache.get_placeholder(source)
        patient = cache.get_placeholder(source)
        assert impatient is not None and patient is not None

        impatient.cancel()
        client.gate.set()

        assert await patient == EXPECTED_DATA_URI
        assert impatient.cancelled()

    async def test_failure_reaches_every_waiter_and_is_not_cached(
        self, source: ImageSource
    ) -> None:
        """Test that a failed fetch is retried on the next call."""
        client = FakeImageApiClient(fail_times=1, gated=True)
        cache = PlaceholderCache(InMemoryBlobStore(), client)  # type: ignore[arg-type]

        first = cache.get_placeholder(source)
        second = cache.get_placeholder(source)
        client.gate.set()

        results = await asyncio.gather(first, second, return_exceptions=True)  # type: ignore[arg-type]
        assert all(isinstance(result, ExternalServiceError) for result in results)
        assert cache.stats()["in_flight"] == 0
        assert cache.peek(source) is None

        retry = cache.get_placeholder(source)
        assert retry is not None
        assert await retry == EXPECTED_DATA_URI
        assert len(client.calls) == 2

    async def test_distinct_urls_fetch_independently(
        self, cache: PlaceholderCache, client: FakeImageApiClient, source: ImageSource
    ) -> None:
        """Test that two images cause two fetches."""
        other = ImageSource(
            base_url="//images.ctfassets.net/space/other/token/cat.png",
            content_type="image/png",
            width=10,
            height=10,
        )

        await asyncio.gather(
            cache.get_placeholder(source),  # type: ignore[arg-type]
            cache.get_placeholder(other),  # type: ignore[arg-type]
        )

        assert len(client.calls) == 2


class TestPersistence:
    """Test the disk tier and persist failures."""

    async def test_survives_restart(self, tmp_path: Path, source: ImageSource) -> None:
        """Test that a fresh instance on the same directory doesn't fetch."""
        first_client = FakeImageApiClient()
        first = PlaceholderCache(FileBlobStore(tmp_path), first_client)  # type: ignore[arg-type]
        value = await first.get_placeholder(source)  # type: ignore[misc]

        key = PlaceholderCache.cache_key(first.placeholder_url(source))  # type: ignore[arg-type]
        assert (tmp_path / f"{key}.base64").read_text("utf-8") == value

        second_client = FakeImageApiClient()
        second = PlaceholderCache(FileBlobStore(tmp_path), second_client)  # type: ignore[arg-type]

        assert await second.get_placeholder(source) == value  # type: ignore[misc]
        assert second_client.calls == []
        assert second.stats()["network_fetches"] == 0

    async def test_callers_share_one_disk_read(
        self, tmp_path: Path, source: ImageSource
    ) -> None:
        """Test that callers arriving during a disk read wait on that same read."""
        store = GatedReadStore(tmp_path)
        client = FakeImageApiClient()
        cache = PlaceholderCache(store, client)  # type: ignore[arg-type]
        key = PlaceholderCache.cache_key(cache.placeholder_url(source))  # type: ignore[arg-type]
        await store.put(key, EXPECTED_DATA_URI)

        futures = [cache.get_placeholder(source) for _ in range(5)]
        await asyncio.sleep(0)
        assert store.reads == 1

        futures += [cache.get_placeholder(source) for _ in range(5)]
        assert cache.stats()["in_flight"] == 1

        store.gate.set()
        results = await asyncio.gather(*futures)  # type: ignore[arg-type]

        assert results == [EXPECTED_DATA_URI] * 10
        assert store.reads == 1
        assert client.calls == []
        assert cache.stats()["network_fetches"] == 0

    async def test_persist_failure_fails_request(self, source: ImageSource) -> None:
        """Test that FAIL discards the value and raises."""
        client = FakeImageApiClient()
        cache = PlaceholderCache(FailingPutStore(), client)  # type: ignore[arg-type]

        with pytest.raises(PlaceholderPersistError) as exc_info:
            await cache.get_placeholder(source)  # type: ignore[misc]

        assert exc_info.value.byte_count == len(EXPECTED_DATA_URI)
        assert exc_info.value.url == cache.placeholder_url(source)
        assert cache.peek(source) is None

    async def test_persist_failure_warn_policy(self, source: ImageSource) -> None:
        """Test that WARN hands back the unpersisted value."""
        client = FakeImageApiClient()
        store = FailingPutStore(persist_policy=PersistFailurePolicy.WARN)
        cache = PlaceholderCache(store, client)  # type: ignore[arg-type]

        assert await cache.get_placeholder(source) == EXPECTED_DATA_URI  # type: ignore[misc]


class TestLifecycle:
    """Test clear() and aclose()."""

    async def test_clear_keeps_disk_tier(
        self, tmp_path: Path, source: ImageSource
    ) -> None:
        """Test that clear() forgets memory only."""
        client = FakeImageApiClient()
        cache = PlaceholderCache(FileBlobStore(tmp_path), client)  # type: ignore[arg-type]
        await cache.get_placeholder(source)  # type: ignore[misc]

        cache.clear()

        assert cache.peek(source) is None
        assert await cache.get_placeholder(source) == EXPECTED_DATA_URI  # type: ignore[misc]
        assert len(client.calls) == 1

    async def test_aclose_waits_for_running_fetches(
        self, source: ImageSource
    ) -> None:
        """Test that aclose() lets in-flight fetches finish."""
        client = FakeImageApiClient(gated=True)
        cache = PlaceholderCache(InMemoryBlobStore(), client)  # type: ignore[arg-type]
        pending = cache.get_placeholder(source)

        closing = asyncio.create_task(cache.aclose())
        await asyncio.sleep(0)
        client.gate.set()
        await closing

        assert await pending == EXPECTED_DATA_URI  # type: ignore[misc]
        assert cache.stats()["in_flight"] == 0
        assert cache.stats()["resolved"] == 0
