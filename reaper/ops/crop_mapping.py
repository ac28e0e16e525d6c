"""Display-space to source-pixel mapping for crop selections.

The crop region is expressed against the unscaled, contain-fitted rendering of
the image. The preview zoom/pan only changes what the user sees while aiming
and is never an input here.
"""

from __future__ import annotations

import math

from reaper.logger import get_logger

from .geometry import PixelRect, Rect, Size

_logger = get_logger("crop_mapping")


class InvalidSelectionError(ValueError):
    """Crop selection is empty or lies outside the image after mapping."""


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def contain_scale(natural: Size, container: Size) -> float:
    """Scale that fits `natural` inside `container` preserving aspect ratio."""
    if natural.is_empty or container.is_empty:
        return 0.0
    return min(container.width / natural.width, container.height / natural.height)


def contain_fit(natural: Size, container: Size) -> Rect:
    """Centered rect the image occupies when contain-fitted into `container`."""
    scale = contain_scale(natural, container)
    w = natural.width * scale
    h = natural.height * scale
    return Rect((container.width - w) / 2.0, (container.height - h) / 2.0, w, h)


def map_selection_to_source(region: Rect, *, displayed: Size, natural: Size) -> PixelRect:
    """Map a crop region on the rendered image to integer source pixels.

    Args:
        region: Committed crop region, relative to the rendered image's top-left.
        displayed: Unscaled rendered size of the image element.
        natural: Intrinsic pixel size of the source image.

    Returns:
        Clipped pixel rectangle with positive width and height.

    Raises:
        InvalidSelectionError: If the mapped region has no area inside the image.
    """
    scale = contain_scale(natural, displayed)
    if scale <= 0:
        raise InvalidSelectionError("Image has no displayable area")

    r = region.normalized()
    x = round_half_away(r.x / scale)
    y = round_half_away(r.y / scale)
    w = round_half_away(r.width / scale)
    h = round_half_away(r.height / scale)

    nat_w = int(natural.width)
    nat_h = int(natural.height)
    left = max(0, x)
    top = max(0, y)
    right = min(nat_w, x + w)
    bottom = min(nat_h, y + h)

    if right - left <= 0 or bottom - top <= 0:
        _logger.debug("selection %s maps outside %dx%d", region, nat_w, nat_h)
        raise InvalidSelectionError("Select a region inside the image before cropping")

    mapped = PixelRect(left, top, right - left, bottom - top)
    _logger.debug("selection %s scale=%.4f -> %s", region, scale, mapped)
    return mapped
