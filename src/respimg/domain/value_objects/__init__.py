"""Value objects for image sources, requests and descriptors."""

from respimg.domain.value_objects.descriptor import (
    DescriptorMode,
    ImageDescriptor,
    Placeholder,
    PlaceholderStrategy,
    SrcSetEntry,
)
from respimg.domain.value_objects.image_source import (
    ELIGIBLE_CONTENT_TYPES,
    ImageSource,
)
from respimg.domain.value_objects.variant_request import (
    CropFocus,
    ImageFormat,
    ResizingBehavior,
    VariantRequest,
)

__all__ = [
    "CropFocus",
    "DescriptorMode",
    "ELIGIBLE_CONTENT_TYPES",
    "ImageDescriptor",
    "ImageFormat",
    "ImageSource",
    "Placeholder",
    "PlaceholderStrategy",
    "ResizingBehavior",
    "SrcSetEntry",
    "VariantRequest",
]
