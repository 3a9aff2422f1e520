"""Tests for the process lifespan."""

import logging
from pathlib import Path

import pytest

from respimg.application.services.images import ImageDescriptorService
from respimg.config.settings import Settings
from respimg.domain.exceptions import ConfigurationError
from respimg.infrastructure.integrations.http_pool import HttpClientPool
from respimg.infrastructure.lifecycle import lifespan


@pytest.fixture(autouse=True)
def restore_root_logger():
    """lifespan() reconfigures logging; undo it after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
async def reset_pool():
    """No pooled client leaks between tests."""
    await HttpClientPool.close()
    HttpClientPool._lock = None
    yield
    await HttpClientPool.close()
    HttpClientPool._lock = None


class TestLifespan:
    """Test startup and shutdown."""

    async def test_startup_and_shutdown(self, tmp_path: Path) -> None:
        """Test that a ready service is yielded and resources are released."""
        settings = Settings(remote_cache_dir=tmp_path / "remote")

        async with lifespan(settings) as service:
            assert isinstance(service, ImageDescriptorService)
            assert (tmp_path / "remote" / "images").is_dir()
            assert HttpClientPool.is_initialized()

        assert not HttpClientPool.is_initialized()

    async def test_cleanup_runs_when_body_raises(self, tmp_path: Path) -> None:
        """Test that shutdown happens even when the caller fails."""
        settings = Settings(remote_cache_dir=tmp_path / "remote")

        with pytest.raises(RuntimeError, match="build failed"):
            async with lifespan(settings):
                raise RuntimeError("build failed")

        assert not HttpClientPool.is_initialized()

    async def test_unusable_cache_dir(self, tmp_path: Path) -> None:
        """Test that startup fails fast on a bad cache directory."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(ConfigurationError):
            async with lifespan(Settings(remote_cache_dir=blocker)):
                pass

        assert not HttpClientPool.is_initialized()
