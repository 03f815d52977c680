from __future__ import annotations

import numpy as np
import pytest

from clipshrink.image_engine.image_buffer import ImageBuffer
from clipshrink.image_engine.resizer import resize_image, round_half_away, target_dimensions

from helpers.fakes import noisy_buffer


def test_round_half_away_from_zero():
    assert round_half_away(2.5) == 3
    assert round_half_away(3.5) == 4
    assert round_half_away(2.4999) == 2
    assert round_half_away(-2.5) == -3


def test_within_bounds_returns_same_object():
    image = noisy_buffer(800, 600)
    assert resize_image(image, 1000) is image
    assert resize_image(image, 800, 600) is image
    assert target_dimensions(800, 600, 800, 600) is None


def test_width_cap_only():
    assert target_dimensions(4000, 3000, 1000) == (1000, 750)


def test_height_cap_applies_after_width_cap():
    # width pass: 1000x750, height pass scales again to fit 500
    assert target_dimensions(4000, 3000, 1000, 500) == (667, 500)


def test_height_cap_alone():
    assert target_dimensions(800, 2000, 1000, 1000) == (400, 1000)


def test_half_pixel_rounds_up():
    # 4x5 at max width 2: height 2.5 -> 3
    assert target_dimensions(4, 5, 2) == (2, 3)


def test_never_collapses_to_zero():
    assert target_dimensions(5000, 2, 100) == (100, 1)


def test_fractional_cap_is_not_exceeded():
    w, h = target_dimensions(2001, 1000, 1000.6)
    assert w <= 1000.6


@pytest.mark.parametrize(
    ("w", "h", "max_w", "max_h"),
    [
        (1920, 1080, 1000, None),
        (3000, 7000, 1000, 800),
        (5120, 2880, 1280, 720),
        (1200, 4000, 2000, 1500),
        (2560, 1600, 640, None),
    ],
)
def test_bounds_and_aspect_ratio(w, h, max_w, max_h):
    out_w, out_h = target_dimensions(w, h, max_w, max_h)
    assert out_w <= max_w
    if max_h is not None:
        assert out_h <= max_h
    assert abs(out_w / out_h - w / h) < 0.01


def test_resize_produces_new_pixel_plane():
    image = noisy_buffer(400, 300)
    image.original_size = 1234
    out = resize_image(image, 100)

    assert out is not image
    assert out.dimensions == (100, 75)
    assert out.pixels.shape == (75, 100, 4)
    assert out.pixels.dtype == np.uint8
    assert out.original_size == 1234


def test_resize_keeps_alpha_channel():
    pixels = np.zeros((40, 80, 4), dtype=np.uint8)
    pixels[:, :, 0] = 255
    pixels[:, :, 3] = 128
    out = resize_image(ImageBuffer(80, 40, pixels), 20)

    assert out.dimensions == (20, 10)
    assert abs(int(out.pixels[5, 10, 3]) - 128) <= 1
    assert int(out.pixels[5, 10, 0]) >= 250


def test_resample_failure_returns_original(monkeypatch):
    image = noisy_buffer(400, 300)

    def broken(self):
        raise ValueError("corrupt pixel plane")

    monkeypatch.setattr(ImageBuffer, "to_vips", broken)
    assert resize_image(image, 100) is image
