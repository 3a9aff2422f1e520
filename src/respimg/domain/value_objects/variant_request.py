"""VariantRequest value object and the image API option enums.

Hey future me - VariantRequest is what a caller asks for, NOT what we send!
The planner runs a normalization pass (defaults, derived dimensions) over it
before any sizing math. Keep this object dumb: validation only, no defaults.

Mode is implicit:
- width / height          → fixed (or resize, if the caller says so)
- max_width / max_height  → fluid
- sizes                   → fluid (only meaningful there)
"""

from dataclasses import dataclass, replace
from enum import Enum

from respimg.domain.exceptions import ValidationError


class ImageFormat(str, Enum):
    """Output formats understood by the image API (`fm` parameter)."""

    NO_CHANGE = ""
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    AVIF = "avif"

    def __str__(self) -> str:
        return self.value


class ResizingBehavior(str, Enum):
    """How the API fits the image into the requested box (`fit` parameter)."""

    PAD = "pad"
    """Keep aspect ratio, pad the rest with the background color."""

    FILL = "fill"
    """Cover the box, cropping what sticks out."""

    SCALE = "scale"
    """Stretch to the box, ignoring aspect ratio."""

    CROP = "crop"
    """Crop a part of the original image."""

    THUMB = "thumb"
    """Thumbnail around the focus area."""

    def __str__(self) -> str:
        return self.value


class CropFocus(str, Enum):
    """Focus area for cropping (`f` parameter)."""

    TOP = "top"
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM = "bottom"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"
    RIGHT = "right"
    LEFT = "left"
    CENTER = "center"
    FACE = "face"
    FACES = "faces"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VariantRequest:
    """User-supplied constraints for one descriptor.

    Every field is optional. Strings are accepted for the enum fields and
    coerced, so `VariantRequest(to_format="webp")` works.

    Raises:
        ValidationError: negative dimensions, quality outside 0-100 or an
            unknown enum value.
    """

    width: int | None = None
    height: int | None = None
    max_width: int | None = None
    max_height: int | None = None
    sizes: str | None = None
    to_format: ImageFormat | None = None
    quality: int | None = None
    resizing_behavior: ResizingBehavior | None = None
    crop_focus: CropFocus | None = None
    background: str | None = None
    jpeg_progressive: bool | None = None

    def __post_init__(self) -> None:
        for name in ("width", "height", "max_width", "max_height"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValidationError(f"{name} must not be negative, got {value}")

        if self.quality is not None and not 0 <= self.quality <= 100:
            raise ValidationError(
                f"quality must be between 0 and 100, got {self.quality}"
            )

        # frozen dataclass, so coercion goes through object.__setattr__
        for name, enum_cls in (
            ("to_format", ImageFormat),
            ("resizing_behavior", ResizingBehavior),
            ("crop_focus", CropFocus),
        ):
            value = getattr(self, name)
            if value is None or isinstance(value, enum_cls):
                continue
            try:
                object.__setattr__(self, name, enum_cls(value))
            except ValueError as e:
                raise ValidationError(f"Invalid {name}: {value!r}") from e

    @property
    def is_fluid(self) -> bool:
        """True when any fluid-mode field is set."""
        return (
            self.max_width is not None
            or self.max_height is not None
            or self.sizes is not None
        )

    def with_format(self, to_format: ImageFormat | str) -> "VariantRequest":
        """Copy of this request with another output format (immutable pattern)."""
        return replace(self, to_format=ImageFormat(to_format))
