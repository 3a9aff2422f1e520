"""Variant Planner - pure computation of responsive image variants.

Future me note:
No I/O, no shared state, no awaits. Safe to call from anywhere, any number
of times, concurrently.

Two passes per mode:
1. normalize_*(): apply defaults and derive missing dimensions → ResolvedVariant.
   ALL the "if nothing given use 400" logic lives here and nowhere else.
2. resolve_*(): candidate generation + filtering + URL rendering on the
   fully resolved record.

Filtering rule shared by fixed and fluid:
    keep candidate iff width <= 4000
                   and round(width / aspect_ratio) <= 4000
                   and width <= intrinsic width   (never upscale)

Ineligible sources (not a raster type, no geometry) → None from every
public function. That's "field not applicable", NOT an error.
"""

from dataclasses import dataclass, replace

from respimg.application.services.images.transform_url import (
    MAX_IMAGE_DIMENSION,
    build_transform_url,
    object_fit_for,
    round_half_up,
)
from respimg.domain.value_objects import (
    DescriptorMode,
    ImageDescriptor,
    ImageSource,
    ResizingBehavior,
    SrcSetEntry,
    VariantRequest,
)

DEFAULT_FIXED_WIDTH = 400
DEFAULT_FLUID_MAX_WIDTH = 800

# (multiplier, density token) in output order
FIXED_DENSITIES: tuple[tuple[float, str], ...] = (
    (1, "1x"),
    (1.5, "1.5x"),
    (2, "2x"),
    (3, "3x"),
)

FLUID_MULTIPLIERS: tuple[float, ...] = (0.25, 0.5, 1, 1.5, 2, 3)


@dataclass(frozen=True)
class ResolvedVariant:
    """A request after the normalization pass.

    For fluid mode width/height hold max_width/max_height. request is the
    normalized request the URLs are rendered from.
    """

    mode: DescriptorMode
    request: VariantRequest
    aspect_ratio: float
    width: int
    height: int | None = None
    sizes: str | None = None


# === Normalization ===


def _desired_aspect_ratio(
    source: ImageSource, width: int | None, height: int | None
) -> float:
    # Explicit width AND height means cropping to that box
    if width and height:
        return width / height
    return source.width / source.height  # type: ignore[operator]


def _default_behavior(
    request: VariantRequest, width: int | None, height: int | None
) -> ResizingBehavior | None:
    if width and height and not request.resizing_behavior:
        return ResizingBehavior.FILL
    return request.resizing_behavior


def normalize_fixed(source: ImageSource, request: VariantRequest) -> ResolvedVariant:
    """Resolve defaults for fixed mode. Source must be eligible."""
    width = request.width or None
    height = request.height or None
    aspect_ratio = _desired_aspect_ratio(source, width, height)

    if width is None and height is None:
        width = DEFAULT_FIXED_WIDTH
    if width is None:
        width = round_half_up(height * aspect_ratio)  # type: ignore[operator]

    # A derived width still counts as "both given": height-only requests crop too
    aspect_ratio = _desired_aspect_ratio(source, width, height)
    behavior = _default_behavior(request, width, height)

    return ResolvedVariant(
        mode=DescriptorMode.FIXED,
        request=replace(
            request, width=width, height=height, resizing_behavior=behavior
        ),
        aspect_ratio=aspect_ratio,
        width=width,
        height=height,
    )


def normalize_fluid(source: ImageSource, request: VariantRequest) -> ResolvedVariant:
    """Resolve defaults for fluid mode. Source must be eligible."""
    max_width = request.max_width or None
    max_height = request.max_height or None
    aspect_ratio = _desired_aspect_ratio(source, max_width, max_height)

    if max_width is None and max_height is None:
        max_width = DEFAULT_FLUID_MAX_WIDTH
    if max_width is None:
        max_width = round_half_up(max_height * aspect_ratio)  # type: ignore[operator]

    sizes = request.sizes or f"(max-width: {max_width}px) 100vw, {max_width}px"

    # width/height are per-candidate in fluid mode, never taken from the request
    return ResolvedVariant(
        mode=DescriptorMode.FLUID,
        request=replace(
            request,
            width=None,
            height=None,
            max_width=max_width,
            max_height=max_height,
            sizes=sizes,
        ),
        aspect_ratio=aspect_ratio,
        width=max_width,
        height=max_height,
        sizes=sizes,
    )


def normalize_resize(source: ImageSource, request: VariantRequest) -> ResolvedVariant:
    """Resolve defaults for a single resized variant. Source must be eligible."""
    width = request.width or None
    height = request.height or None
    aspect_ratio = _desired_aspect_ratio(source, width, height)
    behavior = _default_behavior(request, width, height)

    if width is None and height is None:
        width = DEFAULT_FIXED_WIDTH

    return ResolvedVariant(
        mode=DescriptorMode.RESIZE,
        request=replace(
            request, width=width, height=height, resizing_behavior=behavior
        ),
        aspect_ratio=aspect_ratio,
        width=width if width is not None else round_half_up(height * aspect_ratio),  # type: ignore[operator]
        height=height if height is not None else round_half_up(width / aspect_ratio),  # type: ignore[operator]
    )


# === Candidate filtering ===


def _fits(source: ImageSource, width: int, aspect_ratio: float) -> bool:
    return (
        0 < width <= MAX_IMAGE_DIMENSION
        and round_half_up(width / aspect_ratio) <= MAX_IMAGE_DIMENSION
        and width <= source.width  # type: ignore[operator]
    )


def _candidate_entry(
    source: ImageSource, resolved: ResolvedVariant, width: int, token: str
) -> SrcSetEntry:
    url = build_transform_url(
        source.base_url,
        resolved.request,
        width=width,
        height=round_half_up(width / resolved.aspect_ratio),
    )
    return SrcSetEntry(url=url, descriptor=token)


# === Public API ===


def resolve_fixed(
    source: ImageSource, request: VariantRequest
) -> ImageDescriptor | None:
    """One display size at 1x / 1.5x / 2x / 3x pixel density.

    Returns:
        Descriptor, or None for ineligible sources

    Example:
        width=400, intrinsic 2000x1000 → 400 1x, 600 1.5x, 800 2x, 1200 3x
    """
    if not source.is_eligible:
        return None

    resolved = normalize_fixed(source, request)
    candidates = [
        (round_half_up(resolved.width * multiplier), token)
        for multiplier, token in FIXED_DENSITIES
    ]
    kept = [
        (width, token)
        for width, token in candidates
        if _fits(source, width, resolved.aspect_ratio)
    ]
    kept.sort(key=lambda candidate: candidate[0])

    return ImageDescriptor(
        mode=DescriptorMode.FIXED,
        aspect_ratio=resolved.aspect_ratio,
        base_url=source.base_url,
        src=build_transform_url(source.base_url, resolved.request),
        src_set=tuple(
            _candidate_entry(source, resolved, width, token) for width, token in kept
        ),
        width=resolved.width,
        height=(
            resolved.height
            if resolved.height is not None
            else round_half_up(resolved.width / resolved.aspect_ratio)
        ),
        object_fit=object_fit_for(resolved.request.resizing_behavior),
    )


def resolve_fluid(
    source: ImageSource, request: VariantRequest
) -> ImageDescriptor | None:
    """A responsive range of widths plus a `sizes` hint.

    The intrinsic width is always offered when it fits the API limits, so
    small originals are available at full resolution.

    Returns:
        Descriptor, or None for ineligible sources
    """
    if not source.is_eligible:
        return None

    resolved = normalize_fluid(source, request)
    candidates = [
        round_half_up(resolved.width * multiplier) for multiplier in FLUID_MULTIPLIERS
    ]
    # dict.fromkeys keeps order and drops duplicates (tiny max widths round together)
    kept = [
        width
        for width in dict.fromkeys(candidates)
        if _fits(source, width, resolved.aspect_ratio)
    ]

    intrinsic_width: int = source.width  # type: ignore[assignment]
    if intrinsic_width not in kept and _fits(
        source, intrinsic_width, resolved.aspect_ratio
    ):
        kept.append(intrinsic_width)
    kept.sort()

    return ImageDescriptor(
        mode=DescriptorMode.FLUID,
        aspect_ratio=resolved.aspect_ratio,
        base_url=source.base_url,
        src=build_transform_url(
            source.base_url,
            resolved.request,
            width=resolved.width,
            height=resolved.height,
        ),
        src_set=tuple(
            _candidate_entry(source, resolved, width, f"{width}w") for width in kept
        ),
        sizes=resolved.sizes,
        object_fit=object_fit_for(resolved.request.resizing_behavior),
    )


def resolve_resize(
    source: ImageSource, request: VariantRequest
) -> ImageDescriptor | None:
    """A single resized variant, no srcset.

    The URL carries only the dimensions the caller asked for (plus the
    default width); the missing one is derived for the reported size.
    """
    if not source.is_eligible:
        return None

    resolved = normalize_resize(source, request)
    return ImageDescriptor(
        mode=DescriptorMode.RESIZE,
        aspect_ratio=resolved.aspect_ratio,
        base_url=source.base_url,
        src=build_transform_url(source.base_url, resolved.request),
        width=resolved.width,
        height=resolved.height,
        object_fit=object_fit_for(resolved.request.resizing_behavior),
    )


PLANNERS = {
    DescriptorMode.FIXED: resolve_fixed,
    DescriptorMode.FLUID: resolve_fluid,
    DescriptorMode.RESIZE: resolve_resize,
}


def plan(
    source: ImageSource, request: VariantRequest, mode: DescriptorMode
) -> ImageDescriptor | None:
    """Dispatch to the planner for mode."""
    return PLANNERS[mode](source, request)
