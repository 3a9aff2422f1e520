# Future me note:
# This module is the CENTRAL place for descriptor logic.
#
# - transform_url.py: wire parameters of the image API (the only place that knows them)
# - variant_planner.py: pure sizing math for fixed / fluid / resize
# - descriptor_service.py: the facade callers use, attaches placeholders
#
# The placeholder cache lives in application/cache because it owns state
# (in-flight map, disk blobs) - everything here is stateless.

"""respimg Image Services Module.

Usage:
    from respimg.application.services.images import ImageDescriptorService

    service = ImageDescriptorService(placeholder_cache=cache)
    descriptor = await service.resolve(source, VariantRequest(max_width=800))
"""

from respimg.application.services.images.descriptor_service import (
    NEUTRAL_PLACEHOLDER_COLOR,
    DescriptorDefaults,
    ImageDescriptorService,
)
from respimg.application.services.images.transform_url import (
    MAX_IMAGE_DIMENSION,
    build_query,
    build_transform_url,
)
from respimg.application.services.images.variant_planner import (
    plan,
    resolve_fixed,
    resolve_fluid,
    resolve_resize,
)

__all__ = [
    "MAX_IMAGE_DIMENSION",
    "NEUTRAL_PLACEHOLDER_COLOR",
    "DescriptorDefaults",
    "ImageDescriptorService",
    "build_query",
    "build_transform_url",
    "plan",
    "resolve_fixed",
    "resolve_fluid",
    "resolve_resize",
]
