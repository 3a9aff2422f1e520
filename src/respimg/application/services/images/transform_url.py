"""Transformation URL builder for the remote image API.

Future me note:
This is the ONLY place that knows the wire parameter names. Everything else
passes VariantRequest objects around.

Wire contract (query parameters, always in this order):
    w    width
    h    height
    fl   "progressive" (JPEG only)
    q    quality
    fm   output format
    fit  resizing behavior
    f    crop focus
    bg   background color ("rgb:ff0000")

Falsy means unset: width 0, quality 0 and "" formats are dropped, never sent
as empty values. Same (base_url, options) → byte-identical URL.
"""

import math
from urllib.parse import quote, urlencode

from respimg.domain.value_objects import ImageFormat, ResizingBehavior, VariantRequest

# Max size on either axis the API accepts. Bigger requests must be filtered
# out by the planner, the API would silently clamp them.
MAX_IMAGE_DIMENSION = 4000

# CSS object-fit equivalent of each resizing behavior
OBJECT_FIT: dict[ResizingBehavior, str] = {
    ResizingBehavior.PAD: "contain",
    ResizingBehavior.FILL: "cover",
    ResizingBehavior.SCALE: "fill",
    ResizingBehavior.CROP: "cover",
    ResizingBehavior.THUMB: "cover",
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's round() does banker's rounding (round(2.5) == 2), which would
    make 1.5x candidates disagree with what browsers and the API expect.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def object_fit_for(behavior: ResizingBehavior | None) -> str | None:
    """CSS object-fit for a resizing behavior (None when unset)."""
    if behavior is None:
        return None
    return OBJECT_FIT.get(behavior)


def _background_param(background: str | None) -> str | None:
    if not background:
        return None
    # The API wants "rgb:ff0000", CSS users write "#ff0000"
    if background.startswith("#"):
        return "rgb:" + background[1:]
    return background


def build_query(
    request: VariantRequest,
    width: int | None = None,
    height: int | None = None,
) -> dict[str, str]:
    """Map request fields to wire parameters, dropping unset values.

    Args:
        request: Options to encode
        width: Overrides request.width when given
        height: Overrides request.height when given

    Returns:
        Ordered dict of parameter name → value
    """
    width = width if width is not None else request.width
    height = height if height is not None else request.height
    to_format = request.to_format or ImageFormat.NO_CHANGE

    candidates: list[tuple[str, object]] = [
        ("w", width),
        ("h", height),
        (
            "fl",
            "progressive"
            if to_format is ImageFormat.JPG and request.jpeg_progressive
            else None,
        ),
        ("q", request.quality),
        ("fm", to_format.value),
        ("fit", request.resizing_behavior.value if request.resizing_behavior else None),
        ("f", request.crop_focus.value if request.crop_focus else None),
        ("bg", _background_param(request.background)),
    ]
    return {name: str(value) for name, value in candidates if value}


def build_transform_url(
    base_url: str,
    request: VariantRequest | None = None,
    width: int | None = None,
    height: int | None = None,
) -> str:
    """Build the transformation URL for one variant.

    Args:
        base_url: Untransformed asset URL (protocol-relative is fine)
        request: Options for the variant (None = no options)
        width: Width override (the planner passes candidate widths here)
        height: Height override

    Returns:
        base_url plus query string, or base_url alone when nothing is set

    Example:
        >>> build_transform_url("//img/a.jpg", VariantRequest(quality=50), width=400)
        '//img/a.jpg?w=400&q=50'
    """
    query = build_query(request or VariantRequest(), width=width, height=height)
    if not query:
        return base_url
    return f"{base_url}?{urlencode(query, quote_via=quote)}"
