"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from raster import RasterBuffer, SourceImage
from settings import Settings


@pytest.fixture
def solid_source():
    def make(color=(128, 128, 128), size=(64, 48)):
        return SourceImage.from_image(Image.new("RGBA", size, tuple(color) + (255,)))
    return make


@pytest.fixture
def solid_buffer():
    def make(color=(128, 128, 128), size=(32, 24), alpha=255):
        return RasterBuffer.new(size[0], size[1], tuple(color) + (alpha,))
    return make


@pytest.fixture
def gradient_buffer():
    def make(width=40, height=30):
        ys, xs = np.mgrid[0:height, 0:width]
        px = np.zeros((height, width, 4), dtype=np.uint8)
        px[..., 0] = (xs * 255 // max(1, width - 1)).astype(np.uint8)
        px[..., 1] = (ys * 255 // max(1, height - 1)).astype(np.uint8)
        px[..., 2] = ((xs + ys) % 256).astype(np.uint8)
        px[..., 3] = 255
        return RasterBuffer(px)
    return make


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def plain_settings():
    """Settings that leave the image alone apart from color mapping."""
    return Settings(symmetry="off", overlay="none", noise_amount=0, accent_percent=0)
