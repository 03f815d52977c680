"""Decoded bitmap model backed by a numpy RGBA plane.

An `ImageBuffer` is what the pipeline passes between stages: an owned,
C-contiguous ``(height, width, 4)`` uint8 array plus the byte length of the
clipboard representation it was decoded from. Auxiliary metadata found at
decode time (ICC profile, EXIF, XMP) rides along so the compressor can
decide whether to keep or drop it. The EXIF orientation is applied to the
pixels at decode, so width and height are always the upright size.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field

import numpy as np
import pyvips  # type: ignore

from clipshrink.errors import DecodeFailure
from clipshrink.logger import get_logger

_logger = get_logger("image_buffer")

RGBA_CHANNELS = 4
RGB_CHANNELS = 3
METADATA_FIELDS = ("icc-profile-data", "exif-data", "xmp-data", "iptc-data")

# Keep pyvips caches small; clipboard images are decoded once and dropped.
with contextlib.suppress(Exception):
    pyvips.cache_set_max(0)
    pyvips.cache_set_max_mem(0)
    pyvips.cache_set_max_files(0)


@dataclass
class ImageBuffer:
    width: int
    height: int
    pixels: np.ndarray
    original_size: int = 0
    metadata: dict[str, bytes] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image dimensions must be positive, got {self.width}x{self.height}")
        expected = (self.height, self.width, RGBA_CHANNELS)
        if self.pixels.dtype != np.uint8 or self.pixels.shape != expected:
            raise ValueError(f"pixel plane must be uint8 {expected}, got {self.pixels.dtype} {self.pixels.shape}")
        self.pixels = np.ascontiguousarray(self.pixels)

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def from_vips(
        cls, image: pyvips.Image, original_size: int = 0, metadata: dict[str, bytes] | None = None
    ) -> ImageBuffer:
        """Flatten a pyvips image into an sRGB RGBA8 buffer."""
        rgba = _to_rgba_uchar(image)
        mem = rgba.write_to_memory()
        array = np.frombuffer(mem, dtype=np.uint8).reshape(rgba.height, rgba.width, RGBA_CHANNELS).copy()
        return cls(
            width=rgba.width,
            height=rgba.height,
            pixels=array,
            original_size=int(original_size),
            metadata=dict(metadata or {}),
        )

    def to_vips(self) -> pyvips.Image:
        """Wrap the pixel plane as a 4-band sRGB pyvips image."""
        image = pyvips.Image.new_from_memory(
            self.pixels.tobytes(), self.width, self.height, RGBA_CHANNELS, "uchar"
        )
        return image.copy(interpretation="srgb")


def _to_rgba_uchar(image: pyvips.Image) -> pyvips.Image:
    with contextlib.suppress(pyvips.Error):
        image = image.colourspace("srgb")
    if not image.hasalpha():
        image = image.bandjoin(255)
    if image.bands > RGBA_CHANNELS:
        image = image.extract_band(0, n=RGBA_CHANNELS)
    elif image.bands < RGBA_CHANNELS:
        # grey + alpha that colourspace() could not expand
        grey = image.extract_band(0)
        alpha = image.extract_band(image.bands - 1)
        image = grey.bandjoin([grey, grey, alpha])
    if image.format != "uchar":
        image = image.cast("uchar")
    return image


def read_metadata(image: pyvips.Image) -> dict[str, bytes]:
    found: dict[str, bytes] = {}
    for name in METADATA_FIELDS:
        if image.get_typeof(name) != 0:
            with contextlib.suppress(pyvips.Error):
                found[name] = bytes(image.get(name))
    return found


def decode_image_bytes(data: bytes, original_size: int | None = None) -> ImageBuffer:
    """Decode encoded image bytes (PNG/TIFF/JPEG/HEIC/...) into an ImageBuffer.

    Raises DecodeFailure when the bytes are empty or unreadable.
    """
    if not data:
        raise DecodeFailure("no image bytes to decode")
    try:
        image = pyvips.Image.new_from_buffer(data, "")
        metadata = read_metadata(image)
        # Bake the EXIF orientation into the pixels; the tag itself is reset on encode.
        image = image.autorot()
        size = len(data) if original_size is None else original_size
        return ImageBuffer.from_vips(image, original_size=size, metadata=metadata)
    except (pyvips.Error, ValueError) as e:
        _logger.debug("decode failed: %s", e)
        raise DecodeFailure(str(e)) from e
