"""ImageDescriptor - the computed, ephemeral output for one request."""

from dataclasses import dataclass, field
from enum import Enum

SRC_SET_SEPARATOR = ",\n"


class DescriptorMode(str, Enum):
    """Which planner produced the descriptor."""

    FIXED = "fixed"
    FLUID = "fluid"
    RESIZE = "resize"

    def __str__(self) -> str:
        return self.value


class PlaceholderStrategy(str, Enum):
    """Kind of stand-in shown before the full image loads."""

    BLURRED = "blurred"
    DOMINANT_COLOR = "dominant_color"
    TRACED_SVG = "traced_svg"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SrcSetEntry:
    """One candidate: URL plus density ("2x") or width ("800w") token."""

    url: str
    descriptor: str

    def __str__(self) -> str:
        return f"{self.url} {self.descriptor}"


@dataclass(frozen=True)
class Placeholder:
    """Placeholder payload: base64 data URI, SVG markup or a CSS color."""

    kind: PlaceholderStrategy
    value: str


@dataclass(frozen=True)
class ImageDescriptor:
    """Responsive image descriptor.

    Never mutated after it is returned - use dataclasses.replace() to derive
    a new one (that's what the facade does when attaching placeholders).
    """

    mode: DescriptorMode
    aspect_ratio: float
    base_url: str
    src: str
    src_set: tuple[SrcSetEntry, ...] = field(default_factory=tuple)
    sizes: str | None = None
    width: int | None = None
    height: int | None = None
    placeholder: Placeholder | None = None
    src_webp: str | None = None
    src_set_webp: str | None = None
    object_fit: str | None = None

    @property
    def src_set_string(self) -> str:
        """srcset attribute value, one candidate per line."""
        return SRC_SET_SEPARATOR.join(str(entry) for entry in self.src_set)
