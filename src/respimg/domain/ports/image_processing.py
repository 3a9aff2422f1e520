"""Ports for the collaborators that work on local image files.

Future me note:
respimg never decodes pixels itself. Traced SVGs and dominant colors come
from an external post-processor, and that processor needs the original asset
on local disk, which is the materializer's job. Both live outside this package,
so only the contracts are defined here.

Usage:
    class SharpBridge:
        async def trace_to_vector(self, path: Path) -> str: ...
        async def dominant_color(self, path: Path) -> str: ...

    service = ImageDescriptorService(cache, materializer, SharpBridge())
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from respimg.domain.value_objects import ImageSource, VariantRequest


class AssetMaterializer(Protocol):
    """Places the original asset bytes on local disk."""

    async def materialize(
        self, source: ImageSource, request: VariantRequest
    ) -> Path:
        """Return the absolute path of the materialized asset.

        Failures propagate as the failure of the one request that asked.
        """
        ...


class ImagePostProcessor(Protocol):
    """Derives vector or color placeholders from a local image file."""

    async def trace_to_vector(self, path: Path) -> str:
        """Return SVG markup (usually as a data URI) tracing the image."""
        ...

    async def dominant_color(self, path: Path) -> str:
        """Return a CSS color string, e.g. "#a1b2c3"."""
        ...
