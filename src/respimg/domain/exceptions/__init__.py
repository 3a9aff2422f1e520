"""Domain exceptions."""

from pathlib import Path
from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so callers can inspect it without
    # parsing str(exception). Don't raise this directly - use a subclass so callers can
    # catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Raised when a variant request carries values the image API cannot accept
    (negative dimensions, quality outside 0-100).

    Example:
        raise ValidationError("quality must be between 0 and 100, got 120")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing or invalid.

    Example:
        raise ConfigurationError("Unable to create cache directory '/ro/images'")
    """

    pass


class ExternalServiceError(DomainException):
    """The image API returned an error or could not be reached.

    Carries the URL that failed and the HTTP status (None for transport errors)
    so log handlers can report them structured.
    """

    def __init__(
        self, message: str, url: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PlaceholderPersistError(DomainException):
    """A fetched placeholder could not be written to the disk cache.

    The fetched bytes are discarded for this attempt. url, path and byte_count
    are kept for diagnosis.
    """

    def __init__(
        self, message: str, url: str, path: Path | str, byte_count: int
    ) -> None:
        super().__init__(message)
        self.url = url
        self.path = str(path)
        self.byte_count = byte_count


class AssetMaterializationError(DomainException):
    """The asset could not be placed on local disk for post-processing."""

    def __init__(self, message: str, base_url: str | None = None) -> None:
        super().__init__(message)
        self.base_url = base_url


__all__ = [
    "AssetMaterializationError",
    "ConfigurationError",
    "DomainException",
    "ExternalServiceError",
    "PlaceholderPersistError",
    "ValidationError",
]
