"""ImageSource value object - one source image known to the system.

Hey future me - ImageSource is the ONLY input the planner and the placeholder
cache look at. The asset record coming from the content API is nested and
often incomplete, so from_asset() flattens it and never raises. Whether the
image can be transformed at all is answered by is_eligible, and every
operation treats an ineligible source as "not applicable" (None), not as an
error.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

# Raster types the image API can transform
ELIGIBLE_CONTENT_TYPES: frozenset[str] = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
)


@dataclass(frozen=True)
class ImageSource:
    """Reference to an untransformed asset plus its stored metadata.

    Attributes:
        base_url: Protocol-relative URL, e.g. "//images.ctfassets.net/sp/id/tok/a.jpg"
        content_type: MIME type from the asset metadata
        width: Intrinsic width in pixels (None if metadata is missing)
        height: Intrinsic height in pixels (None if metadata is missing)
        file_name: Original file name, handed to post-processing collaborators
    """

    base_url: str
    content_type: str | None = None
    width: int | None = None
    height: int | None = None
    file_name: str | None = None

    @property
    def is_raster_image(self) -> bool:
        """Content type is one the image API can transform."""
        return self.content_type in ELIGIBLE_CONTENT_TYPES

    @property
    def is_eligible(self) -> bool:
        """Raster image with usable intrinsic geometry."""
        return (
            self.is_raster_image
            and bool(self.base_url)
            and self.width is not None
            and self.height is not None
            and self.width > 0
            and self.height > 0
        )

    @property
    def intrinsic_aspect_ratio(self) -> float | None:
        """width / height, or None when geometry is unknown."""
        if not self.width or not self.height:
            return None
        return self.width / self.height

    @classmethod
    def from_asset(cls, asset: Mapping[str, Any]) -> "ImageSource":
        """Build from a content-API asset record.

        Expected shape (every level optional):
            {"file": {"url": ..., "contentType": ..., "fileName": ...,
                      "details": {"image": {"width": ..., "height": ...}}}}
        """
        file_info = asset.get("file") or {}
        details = (file_info.get("details") or {}).get("image") or {}
        return cls(
            base_url=file_info.get("url") or "",
            content_type=file_info.get("contentType"),
            width=details.get("width"),
            height=details.get("height"),
            file_name=file_info.get("fileName"),
        )
