"""Tests for emblem overlays."""

import numpy as np
import pytest

from brand import LIME
from errors import InvalidSettings
from stages.overlay import (EMBLEM_PATH, emblem_mask, emblem_points, overlay,
                            registered_modes)


def test_registered_modes():
    assert registered_modes() == sorted(
        ["accent-glow", "mask-negative", "mask-positive", "warped", "watermark"])


def test_emblem_is_centered_and_sized():
    pts = emblem_points(200, 100, 1.0)
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    assert min(xs) == pytest.approx(50.0)
    assert max(xs) == pytest.approx(150.0)
    assert (min(ys) + max(ys)) / 2 == pytest.approx(50.0)
    assert len(pts) == len(EMBLEM_PATH)


def test_emblem_mask_covers_center_not_corners():
    mask = np.asarray(emblem_mask((200, 200), emblem_points(200, 200, 0.8)))
    assert mask[100, 100] == 255
    assert mask[0, 0] == 0
    assert mask[199, 199] == 0


def test_none_is_no_op(solid_buffer):
    buf = solid_buffer(size=(50, 50))
    before = buf.pixels.copy()
    overlay(buf, "none", 0.8)
    assert np.array_equal(buf.pixels, before)


def test_mask_positive_keeps_only_emblem(solid_buffer):
    buf = solid_buffer((40, 80, 120), size=(200, 200))
    overlay(buf, "mask-positive", 0.8)
    assert buf.pixels[100, 100, 3] == 255
    assert buf.pixels[0, 0, 3] == 0
    assert tuple(buf.pixels[100, 100, :3]) == (40, 80, 120)


def test_mask_negative_punches_emblem_out(solid_buffer):
    buf = solid_buffer((40, 80, 120), size=(200, 200))
    overlay(buf, "mask-negative", 0.8)
    assert buf.pixels[100, 100, 3] == 0
    assert buf.pixels[0, 0, 3] == 255


def test_watermark_is_near_white(solid_buffer):
    buf = solid_buffer((0, 0, 0), size=(200, 200))
    overlay(buf, "watermark", 0.8)
    assert (buf.pixels[100, 100, :3] >= 235).all()
    assert tuple(buf.pixels[0, 0]) == (0, 0, 0, 255)


def test_accent_glow_fills_lime(solid_buffer):
    buf = solid_buffer((0, 0, 0), size=(200, 200))
    overlay(buf, "accent-glow", 0.8)
    assert tuple(buf.pixels[100, 100, :3]) == LIME
    # the halo fades out well before the corners
    assert buf.pixels[0, 0, 1] < 20


def test_warped_changes_image(solid_buffer):
    buf = solid_buffer((0, 0, 0), size=(120, 80))
    before = buf.pixels.copy()
    overlay(buf, "warped", 0.8)
    assert not np.array_equal(buf.pixels, before)
    assert buf.pixels.shape == before.shape


def test_unknown_mode(solid_buffer):
    with pytest.raises(InvalidSettings):
        overlay(solid_buffer(), "sparkle", 1.0)
