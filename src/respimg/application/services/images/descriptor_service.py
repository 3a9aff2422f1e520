"""Image Descriptor Service - one request in, one descriptor out.

Future me note:
This is the seam the schema layer calls. It owns no algorithms:
1. pick the mode (fixed / fluid / resize)
2. run the planner (sync, pure)
3. optionally attach a placeholder (blurred / dominant color / traced SVG)
4. optionally attach WebP companion URLs

If the planner says None (ineligible image), we return None right away and
never touch placeholder logic.

Collaborator policy:
- no post-processor or materializer → dominant color degrades to
  NEUTRAL_PLACEHOLDER_COLOR, traced SVG to no placeholder (both logged)
- materializer present but failing → AssetMaterializationError for THIS
  request only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

from respimg.application.services.images.variant_planner import plan
from respimg.domain.exceptions import AssetMaterializationError, DomainException
from respimg.domain.value_objects import (
    DescriptorMode,
    ImageDescriptor,
    ImageFormat,
    ImageSource,
    Placeholder,
    PlaceholderStrategy,
    VariantRequest,
)

if TYPE_CHECKING:
    from respimg.application.cache.placeholder_cache import PlaceholderCache
    from respimg.domain.ports import AssetMaterializer, ImagePostProcessor

logger = logging.getLogger(__name__)

NEUTRAL_PLACEHOLDER_COLOR = "rgba(0,0,0,0.5)"


@dataclass(frozen=True)
class DescriptorDefaults:
    """Defaults filled into requests that leave these fields unset.

    jpeg_progressive only fills in for resize mode. Fixed and fluid
    descriptors default quality alone.
    """

    quality: int | None = 50
    jpeg_progressive: bool | None = True

    def apply(
        self, request: VariantRequest, mode: DescriptorMode
    ) -> VariantRequest:
        jpeg_progressive = request.jpeg_progressive
        if jpeg_progressive is None and mode is DescriptorMode.RESIZE:
            jpeg_progressive = self.jpeg_progressive
        return replace(
            request,
            quality=request.quality if request.quality is not None else self.quality,
            jpeg_progressive=jpeg_progressive,
        )


class ImageDescriptorService:
    """Composes the variant planner, the placeholder cache and the collaborators.

    Args:
        placeholder_cache: Source of blurred placeholders (None disables them)
        materializer: Puts original assets on local disk
        post_processor: Traces SVGs and extracts dominant colors
        defaults: Request defaults (None = use requests as given)
    """

    def __init__(
        self,
        placeholder_cache: PlaceholderCache | None = None,
        materializer: AssetMaterializer | None = None,
        post_processor: ImagePostProcessor | None = None,
        defaults: DescriptorDefaults | None = DescriptorDefaults(),
    ) -> None:
        self._placeholder_cache = placeholder_cache
        self._materializer = materializer
        self._post_processor = post_processor
        self._defaults = defaults

    @staticmethod
    def select_mode(
        request: VariantRequest, mode: DescriptorMode | str | None = None
    ) -> DescriptorMode:
        """Explicit mode wins, fluid fields mean fluid, everything else is fixed."""
        if mode is not None:
            return DescriptorMode(mode)
        if request.is_fluid:
            return DescriptorMode.FLUID
        return DescriptorMode.FIXED

    def plan(
        self,
        source: ImageSource,
        request: VariantRequest | None = None,
        mode: DescriptorMode | str | None = None,
    ) -> ImageDescriptor | None:
        """Planner output only - no placeholders, no awaits."""
        request = request or VariantRequest()
        selected = self.select_mode(request, mode)
        if self._defaults is not None:
            request = self._defaults.apply(request, selected)
        return plan(source, request, selected)

    async def resolve(
        self,
        source: ImageSource,
        request: VariantRequest | None = None,
        mode: DescriptorMode | str | None = None,
        placeholder: PlaceholderStrategy | str | None = None,
        include_webp: bool = False,
    ) -> ImageDescriptor | None:
        """Full descriptor for one request.

        Args:
            source: Image to describe
            request: Constraints (None = all defaults)
            mode: Force a mode, otherwise chosen from the request fields
            placeholder: Placeholder strategy to attach, if any
            include_webp: Also compute src_webp / src_set_webp

        Returns:
            Descriptor, or None when the source is not eligible

        Raises:
            ExternalServiceError: blurred placeholder fetch failed
            PlaceholderPersistError: blurred placeholder could not be cached
            AssetMaterializationError: asset could not be put on disk
        """
        request = request or VariantRequest()
        selected = self.select_mode(request, mode)
        if self._defaults is not None:
            request = self._defaults.apply(request, selected)

        descriptor = plan(source, request, selected)
        if descriptor is None:
            return None

        if include_webp:
            src_webp, src_set_webp = self.webp_companion(source, request, selected)
            descriptor = replace(
                descriptor, src_webp=src_webp, src_set_webp=src_set_webp
            )

        if placeholder is not None:
            strategy = PlaceholderStrategy(placeholder)
            value = await self._placeholder_value(strategy, source, request)
            if value:
                descriptor = replace(
                    descriptor, placeholder=Placeholder(kind=strategy, value=value)
                )

        return descriptor

    def webp_companion(
        self, source: ImageSource, request: VariantRequest, mode: DescriptorMode
    ) -> tuple[str | None, str | None]:
        """(src, srcset) of the same plan rendered as WebP.

        (None, None) when the source already is WebP or WebP was requested.
        """
        if source.content_type == "image/webp" or request.to_format is ImageFormat.WEBP:
            return None, None

        webp = plan(source, request.with_format(ImageFormat.WEBP), mode)
        if webp is None:
            return None, None
        return webp.src, webp.src_set_string or None

    # === Placeholders ===

    async def _placeholder_value(
        self,
        strategy: PlaceholderStrategy,
        source: ImageSource,
        request: VariantRequest,
    ) -> str | None:
        if strategy is PlaceholderStrategy.BLURRED:
            return await self.blurred(source)
        if strategy is PlaceholderStrategy.DOMINANT_COLOR:
            return await self.dominant_color(source, request)
        return await self.traced_svg(source, request)

    async def blurred(self, source: ImageSource) -> str | None:
        """Base64 data URI of a tiny preview, None when not available."""
        if self._placeholder_cache is None:
            return None
        pending = self._placeholder_cache.get_placeholder(source)
        if pending is None:
            return None
        return await pending

    async def traced_svg(
        self, source: ImageSource, request: VariantRequest | None = None
    ) -> str | None:
        """Traced SVG placeholder, None for non-images or missing collaborators."""
        if not (source.content_type or "").startswith("image/"):
            return None
        if self._post_processor is None or self._materializer is None:
            logger.warning(
                "Traced SVG requested for %s but no image post-processor is configured",
                source.base_url,
            )
            return None

        path = await self._materialize(source, request or VariantRequest())
        return await self._post_processor.trace_to_vector(path)

    async def dominant_color(
        self, source: ImageSource, request: VariantRequest | None = None
    ) -> str:
        """Dominant color of the image, NEUTRAL_PLACEHOLDER_COLOR as fallback."""
        if self._post_processor is None or self._materializer is None:
            logger.warning(
                "Dominant color requested for %s but no image post-processor is "
                "configured, using %s",
                source.base_url,
                NEUTRAL_PLACEHOLDER_COLOR,
            )
            return NEUTRAL_PLACEHOLDER_COLOR

        path = await self._materialize(source, request or VariantRequest())
        try:
            return await self._post_processor.dominant_color(path)
        except Exception:
            logger.exception(
                "Dominant color extraction failed for %s, using %s",
                path,
                NEUTRAL_PLACEHOLDER_COLOR,
            )
            return NEUTRAL_PLACEHOLDER_COLOR

    async def _materialize(self, source: ImageSource, request: VariantRequest) -> Path:
        assert self._materializer is not None
        try:
            return await self._materializer.materialize(source, request)
        except DomainException:
            raise
        except Exception as e:
            raise AssetMaterializationError(
                f"Failed to materialize {source.base_url}: {e}",
                base_url=source.base_url,
            ) from e
