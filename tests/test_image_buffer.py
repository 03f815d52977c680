from __future__ import annotations

import numpy as np
import pytest
import pyvips

from clipshrink.errors import DecodeFailure
from clipshrink.image_engine.image_buffer import ImageBuffer, decode_image_bytes


def test_rejects_non_positive_dimensions():
    with pytest.raises(ValueError):
        ImageBuffer(0, 10, np.zeros((10, 0, 4), dtype=np.uint8))


def test_rejects_mismatched_plane():
    with pytest.raises(ValueError):
        ImageBuffer(10, 10, np.zeros((10, 10, 3), dtype=np.uint8))
    with pytest.raises(ValueError):
        ImageBuffer(10, 10, np.zeros((10, 10, 4), dtype=np.float32))


def test_decode_rgb_png_adds_opaque_alpha(png_bytes):
    data = png_bytes(12, 7, rgb=(10, 20, 30))
    image = decode_image_bytes(data)

    assert image.dimensions == (12, 7)
    assert image.original_size == len(data)
    assert image.pixels.shape == (7, 12, 4)
    assert tuple(image.pixels[3, 5]) == (10, 20, 30, 255)


def test_decode_keeps_alpha(png_bytes):
    image = decode_image_bytes(png_bytes(4, 4, alpha=77))
    assert int(image.pixels[0, 0, 3]) == 77


def test_decode_greyscale():
    data = bytes((pyvips.Image.black(5, 3) + 100).cast("uchar").pngsave_buffer())
    image = decode_image_bytes(data)
    assert tuple(image.pixels[1, 1]) == (100, 100, 100, 255)


def test_decode_empty_and_garbage():
    with pytest.raises(DecodeFailure):
        decode_image_bytes(b"")
    with pytest.raises(DecodeFailure):
        decode_image_bytes(b"not an image at all")


def test_to_vips_round_trip():
    pixels = np.arange(3 * 2 * 4, dtype=np.uint8).reshape(2, 3, 4)
    image = ImageBuffer(3, 2, pixels)
    back = ImageBuffer.from_vips(image.to_vips())
    assert np.array_equal(back.pixels, pixels)
