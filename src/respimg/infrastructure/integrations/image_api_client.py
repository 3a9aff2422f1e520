"""HTTP client for the remote image-transformation API.

Only one call is needed: GET a (small) transformed image and hand back its
bytes. Transport errors and non-2xx responses become ExternalServiceError so
the placeholder cache deals with exactly one failure type.
"""

import base64
import logging
from dataclasses import dataclass

import httpx

from respimg.domain.exceptions import ExternalServiceError
from respimg.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class FetchedImage:
    """Raw response body plus the media type the API reported."""

    content: bytes
    content_type: str | None = None

    def to_data_uri(self, fallback_mime: str = DEFAULT_MIME_TYPE) -> str:
        """Encode as "data:<mime>;base64,<payload>".

        Non-image content types (some proxies answer octet-stream) fall back to
        fallback_mime.
        """
        mime = (self.content_type or "").split(";")[0].strip().lower()
        if not mime.startswith("image/"):
            mime = fallback_mime
        payload = base64.b64encode(self.content).decode("ascii")
        return f"data:{mime};base64,{payload}"


class ImageApiClient:
    """Fetches transformed images from the image API.

    Args:
        client: httpx client to use. None = the shared HttpClientPool client.
        timeout: Per-request timeout override in seconds
    """

    def __init__(
        self, client: httpx.AsyncClient | None = None, timeout: float | None = None
    ) -> None:
        self._client = client
        self.timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await HttpClientPool.get_client(timeout=self.timeout)

    async def fetch(self, url: str) -> FetchedImage:
        """GET url and return the body.

        Raises:
            ExternalServiceError: network failure or non-2xx status
        """
        client = await self._get_client()
        logger.debug("Fetching %s", url)
        try:
            if self.timeout is not None:
                response = await client.get(url, timeout=self.timeout)
            else:
                response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Image API returned {e.response.status_code} for {url}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Image API request failed for {url}: {e}", url=url
            ) from e

        return FetchedImage(
            content=response.content,
            content_type=response.headers.get("content-type"),
        )
