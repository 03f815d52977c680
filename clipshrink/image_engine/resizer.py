"""Aspect-preserving downscale for clipboard images.

Target dimensions are computed in two passes: the width cap is applied first,
then the height cap (when set) scales the already width-limited size again,
so both bounds hold at once. Fractional sizes are rounded half away from
zero, then clamped so that rounding never pushes a side past its cap. Every
side is at least 1 px; caps below 1 are rejected when the config is built.
"""

from __future__ import annotations

import math

import pyvips  # type: ignore

from clipshrink.logger import get_logger

from .image_buffer import ImageBuffer

_logger = get_logger("resizer")


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _fit(value: float, cap: float | None) -> int:
    size = round_half_away(value)
    if cap is not None:
        size = min(size, math.floor(cap))
    return max(1, size)


def target_dimensions(
    width: int, height: int, max_width: float, max_height: float | None = None
) -> tuple[int, int] | None:
    """Return the downscaled (width, height), or None when already within bounds."""
    if width <= max_width and (max_height is None or height <= max_height):
        return None

    new_w = float(width)
    new_h = float(height)

    if width > max_width:
        ratio = max_width / width
        new_w = max_width
        new_h = height * ratio

    if max_height is not None and new_h > max_height:
        ratio = max_height / new_h
        new_w *= ratio
        new_h = max_height

    return _fit(new_w, max_width), _fit(new_h, max_height)


def resize_image(image: ImageBuffer, max_width: float, max_height: float | None = None) -> ImageBuffer:
    """Downscale `image` to fit the caps; never upscales.

    Returns the same object when no resize is needed, and also when
    resampling fails (the pipeline carries on with the original pixels).
    """
    target = target_dimensions(image.width, image.height, max_width, max_height)
    if target is None:
        _logger.debug("resize skipped: %dx%d within bounds", image.width, image.height)
        return image

    new_w, new_h = target
    try:
        # thumbnail_image premultiplies alpha and uses a lanczos3 reduce.
        resized = image.to_vips().thumbnail_image(new_w, height=new_h, size=pyvips.Size.FORCE)
        out = ImageBuffer.from_vips(resized, original_size=image.original_size, metadata=image.metadata)
    except (pyvips.Error, ValueError) as e:
        _logger.warning("resize %dx%d -> %dx%d failed, keeping original: %s", image.width, image.height, new_w, new_h, e)
        return image

    _logger.debug("resized %dx%d -> %dx%d", image.width, image.height, out.width, out.height)
    return out
