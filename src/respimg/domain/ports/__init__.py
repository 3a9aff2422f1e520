"""Domain ports (interfaces implemented outside the core)."""

from respimg.domain.ports.image_processing import AssetMaterializer, ImagePostProcessor

__all__ = ["AssetMaterializer", "ImagePostProcessor"]
