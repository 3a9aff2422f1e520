"""Tests for application settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from respimg.application.cache.blob_store import PersistFailurePolicy
from respimg.config.settings import Settings, get_settings
from respimg.domain.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run from an empty directory with no RESPIMG_ variables."""
    for name in [
        "RESPIMG_REMOTE_CACHE_DIR",
        "RESPIMG_PLACEHOLDER_WIDTH",
        "RESPIMG_PERSIST_FAILURE_POLICY",
        "RESPIMG_HTTP__TIMEOUT",
        "RESPIMG_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettingsDefaults:
    """Test default values."""

    def test_defaults(self) -> None:
        """Test defaults without any environment."""
        settings = Settings()

        assert settings.image_api_host == "images.ctfassets.net"
        assert settings.placeholder_width == 20
        assert settings.persist_failure_policy is PersistFailurePolicy.FAIL
        assert settings.http.timeout == 30.0
        assert settings.remote_cache_dir == Path.cwd() / ".cache" / "remote_cache"
        assert settings.image_cache_dir == settings.remote_cache_dir / "images"


class TestSettingsFromEnvironment:
    """Test RESPIMG_ environment overrides."""

    def test_env_overrides(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Test flat and nested variables."""
        monkeypatch.setenv("RESPIMG_REMOTE_CACHE_DIR", str(tmp_path / "cache"))
        monkeypatch.setenv("RESPIMG_PLACEHOLDER_WIDTH", "40")
        monkeypatch.setenv("RESPIMG_PERSIST_FAILURE_POLICY", "warn")
        monkeypatch.setenv("RESPIMG_HTTP__TIMEOUT", "5")

        settings = Settings()

        assert settings.image_cache_dir == tmp_path / "cache" / "images"
        assert settings.placeholder_width == 40
        assert settings.persist_failure_policy is PersistFailurePolicy.WARN
        assert settings.http.timeout == 5.0

    def test_dotenv_file(self, tmp_path: Path) -> None:
        """Test that .env in the working directory is read."""
        (tmp_path / ".env").write_text("RESPIMG_LOG_LEVEL=DEBUG\n")

        assert Settings().log_level == "DEBUG"

    def test_invalid_width(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a zero placeholder width is rejected."""
        monkeypatch.setenv("RESPIMG_PLACEHOLDER_WIDTH", "0")

        with pytest.raises(PydanticValidationError):
            Settings()

    def test_get_settings_is_cached(self) -> None:
        """Test that get_settings() returns one instance."""
        assert get_settings() is get_settings()


class TestEnsureDirectories:
    """Test cache directory creation."""

    def test_creates_image_dir(self, tmp_path: Path) -> None:
        """Test that the images directory is created."""
        settings = Settings(remote_cache_dir=tmp_path / "remote")

        settings.ensure_directories()

        assert (tmp_path / "remote" / "images").is_dir()

    def test_unwritable_location(self, tmp_path: Path) -> None:
        """Test that a file in the way raises ConfigurationError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        settings = Settings(remote_cache_dir=blocker)

        with pytest.raises(ConfigurationError, match="RESPIMG_REMOTE_CACHE_DIR"):
            settings.ensure_directories()
