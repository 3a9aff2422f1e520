"""Application settings loaded from environment variables and .env.

Every setting can be overridden with a RESPIMG_ prefixed variable, nested
ones with a double underscore:

    RESPIMG_REMOTE_CACHE_DIR=/var/cache/respimg
    RESPIMG_PERSIST_FAILURE_POLICY=warn
    RESPIMG_HTTP__TIMEOUT=10
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from respimg.application.cache.blob_store import PersistFailurePolicy
from respimg.domain.exceptions import ConfigurationError

CACHE_IMAGES_SUBDIR = "images"


class HttpSettings(BaseModel):
    """Connection settings for the image API client."""

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_connections: int = Field(default=50, ge=1)
    max_keepalive: int = Field(default=20, ge=0)


class Settings(BaseSettings):
    """respimg settings."""

    model_config = SettingsConfigDict(
        env_prefix="RESPIMG_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "respimg"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json_format: bool = False

    # Placeholders are kept apart from other build caches on purpose: those go
    # stale, published images never do.
    remote_cache_dir: Path = Field(
        default_factory=lambda: Path.cwd() / ".cache" / "remote_cache",
        description="Root of the persistent placeholder cache",
    )
    image_api_host: str = Field(
        default="images.ctfassets.net",
        description="Host whose URLs can be fetched as low-resolution placeholders",
    )
    placeholder_width: int = Field(default=20, gt=0, le=4000)
    placeholder_fallback_mime: str = "image/jpeg"
    persist_failure_policy: PersistFailurePolicy = PersistFailurePolicy.FAIL

    http: HttpSettings = Field(default_factory=HttpSettings)

    @property
    def image_cache_dir(self) -> Path:
        """Directory holding <sha1>.base64 placeholder blobs."""
        return self.remote_cache_dir / CACHE_IMAGES_SUBDIR

    def ensure_directories(self) -> None:
        """Create the placeholder cache directory.

        Raises:
            ConfigurationError: directory can't be created
        """
        try:
            self.image_cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Unable to create placeholder cache directory "
                f"'{self.image_cache_dir}': {e}. "
                "Set RESPIMG_REMOTE_CACHE_DIR to a writable location."
            ) from e


@lru_cache
def get_settings() -> Settings:
    """Cached Settings instance (call get_settings.cache_clear() in tests)."""
    return Settings()
