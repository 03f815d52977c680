"""Encoders for the transcode pipeline.

`compress_image` turns an ImageBuffer into PNG, JPEG or HEIC bytes.
Quality is a float in [0, 1] mapped onto libvips' integer Q scale (1..100);
PNG ignores it. When `strip_metadata` is set every auxiliary block (EXIF,
XMP, IPTC, ICC) is dropped from the container; otherwise the blocks found at
decode time are written back with the orientation reset to upright, since
the decoder has already applied it to the pixels.

`encode_fallback` produces the broadly compatible raster (uncompressed TIFF)
published next to the primary representation.
"""

from __future__ import annotations

from typing import Any

import pyvips  # type: ignore

from clipshrink.config import OutputFormat
from clipshrink.errors import EncodeFailure
from clipshrink.logger import get_logger

from .image_buffer import ImageBuffer

_logger = get_logger("compressor")

FALLBACK_MIME_TYPE = "image/tiff"
PNG_COMPRESSION_LEVEL = 9
_JPEG_BACKGROUND = [255, 255, 255]
_MIN_Q = 1
_MAX_Q = 100


def quality_to_q(quality: float) -> int:
    """Map a [0, 1] quality onto libvips' 1..100 Q parameter."""
    q = round(min(1.0, max(0.0, float(quality))) * _MAX_Q)
    return int(min(_MAX_Q, max(_MIN_Q, q)))


def _strip_options(strip_metadata: bool) -> dict[str, Any]:
    if not strip_metadata:
        return {}
    # libvips 8.15 replaced `strip` with the `keep` flags.
    if pyvips.at_least_libvips(8, 15):
        return {"keep": pyvips.enums.ForeignKeep.NONE}
    return {"strip": True}


def _attach_metadata(image: pyvips.Image, metadata: dict[str, bytes]) -> pyvips.Image:
    if not metadata:
        return image
    image = image.copy()
    for name, value in metadata.items():
        image.set_type(pyvips.GValue.blob_type, name, value)
    # Pixels are already upright; keep a reattached EXIF block from rotating them again.
    image.set_type(pyvips.GValue.gint_type, "orientation", 1)
    return image


def _encode(image: pyvips.Image, fmt: OutputFormat, quality: float, options: dict[str, Any]) -> bytes:
    if fmt in (OutputFormat.PNG, OutputFormat.ORIGINAL):
        return image.pngsave_buffer(compression=PNG_COMPRESSION_LEVEL, **options)
    q = quality_to_q(quality)
    if fmt == OutputFormat.JPEG:
        if image.hasalpha():
            image = image.flatten(background=_JPEG_BACKGROUND)
        return image.jpegsave_buffer(Q=q, optimize_coding=True, **options)
    if fmt == OutputFormat.HEIC:
        return image.heifsave_buffer(Q=q, compression="hevc", **options)
    raise EncodeFailure(f"unsupported output format: {fmt}")


def compress_image(image: ImageBuffer, fmt: OutputFormat, quality: float, strip_metadata: bool) -> bytes:
    """Encode `image` as `fmt`.

    Raises EncodeFailure if the pixel plane cannot be wrapped or the encoder
    fails; no partial output is ever returned.
    """
    try:
        vimg = image.to_vips()
        if not strip_metadata:
            vimg = _attach_metadata(vimg, image.metadata)
        data = _encode(vimg, fmt, quality, _strip_options(strip_metadata))
    except (pyvips.Error, ValueError) as e:
        _logger.error("encode %s failed: %s", fmt.value, e)
        raise EncodeFailure(str(e)) from e

    if not data:
        raise EncodeFailure(f"{fmt.value} encoder produced no output")
    _logger.debug(
        "encoded %dx%d as %s: %d bytes (quality=%.2f strip=%s)",
        image.width,
        image.height,
        fmt.value,
        len(data),
        quality,
        strip_metadata,
    )
    return bytes(data)


def encode_fallback(data: bytes) -> bytes:
    """Decode freshly encoded bytes and re-encode them as uncompressed TIFF."""
    try:
        image = pyvips.Image.new_from_buffer(data, "")
        out = image.tiffsave_buffer(compression="none", **_strip_options(True))
    except pyvips.Error as e:
        raise EncodeFailure(f"fallback raster failed: {e}") from e
    return bytes(out)
