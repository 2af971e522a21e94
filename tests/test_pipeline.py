"""End-to-end tests for the render pipeline."""

import numpy as np
import pytest

from brand import BLUE
from errors import InvalidDimensions
from pipeline import composite_camera, fit_inside, render, render_background
from raster import SourceImage
from settings import Settings
from stages.segmentation import ForegroundClassifier, SegmentationResult, SelfieSegmenter


class FullMask:
    def segment(self, frame):
        return np.full((frame.height, frame.width), 255, dtype=np.uint8)


def test_fit_inside():
    assert fit_inside(10, 10, 40, 20) == (10, 0, 20, 20)
    assert fit_inside(40, 10, 20, 20) == (0, 7, 20, 5)


def test_gray_renders_brand_blue(solid_source, plain_settings):
    out = render(solid_source(size=(100, 100)), settings=plain_settings, out_w=100, out_h=100)
    assert out.size == (100, 100)
    assert (out.pixels == list(BLUE) + [255]).all()


def test_black_without_mapping_stays_black(solid_source):
    s = Settings(symmetry="off", overlay="none", contrast=0, color_mix=0)
    out = render(solid_source((0, 0, 0)), settings=s, out_w=16, out_h=16)
    assert (out.pixels == [0, 0, 0, 255]).all()


def test_default_settings_punch_emblem(solid_source):
    out = render(solid_source(), out_w=64, out_h=64, rng=np.random.default_rng(0))
    assert out.pixels[32, 32, 3] == 0
    assert out.pixels[0, 0, 3] == 255


def test_seeded_render_is_repeatable(gradient_buffer):
    base = SourceImage.from_buffer(gradient_buffer(50, 40))
    s = Settings(noise_amount=40, distortion_x=20, pixel_sort_threshold=30, scanlines=40)
    a = render(base, settings=s, out_w=40, out_h=30, rng=np.random.default_rng(21))
    b = render(base, settings=s, out_w=40, out_h=30, rng=np.random.default_rng(21))
    assert np.array_equal(a.pixels, b.pixels)


def test_deterministic_settings_need_no_seed(solid_source, plain_settings):
    a = render(solid_source(), settings=plain_settings, out_w=20, out_h=20)
    b = render(solid_source(), settings=plain_settings, out_w=20, out_h=20)
    assert np.array_equal(a.pixels, b.pixels)


@pytest.mark.parametrize("w,h", [(0, 10), (10, 0), (-4, -4)])
def test_invalid_dimensions(solid_source, w, h):
    with pytest.raises(InvalidDimensions):
        render(solid_source(), out_w=w, out_h=h)


def test_camera_enabled_without_frame_is_background(solid_source, plain_settings):
    cam = plain_settings.replace(camera_enabled=True)
    a = render(solid_source(), settings=cam, out_w=20, out_h=20)
    b = render(solid_source(), settings=plain_settings, out_w=20, out_h=20)
    assert np.array_equal(a.pixels, b.pixels)


def test_camera_frame_ignored_when_disabled(solid_source, solid_buffer, plain_settings):
    frame = solid_buffer((255, 0, 0), size=(10, 10))
    out = render(solid_source(), camera_frame=frame, settings=plain_settings, out_w=40, out_h=20)
    assert tuple(out.pixels[10, 20]) == BLUE + (255,)


def test_camera_is_letterboxed_with_model(solid_source, solid_buffer, plain_settings):
    frame = solid_buffer((255, 0, 0), size=(10, 10))
    out = render(solid_source(), camera_frame=frame,
                 settings=plain_settings.replace(camera_enabled=True), out_w=40, out_h=20,
                 classifier=ForegroundClassifier(FullMask()))
    assert tuple(out.pixels[10, 20]) == (255, 0, 0, 255)
    # outside the 20x20 box the background shows
    assert tuple(out.pixels[10, 5]) == BLUE + (255,)


def test_raw_camera_is_mostly_opaque(solid_buffer):
    bg = solid_buffer((0, 0, 0), size=(40, 20))
    composite_camera(bg, solid_buffer((255, 0, 0), size=(10, 10)), None)
    assert abs(int(bg.pixels[10, 20, 0]) - 230) <= 2
    assert tuple(bg.pixels[10, 5]) == (0, 0, 0, 255)


def test_segmented_background_is_dropped(solid_buffer):
    bg = solid_buffer((0, 0, 255), size=(20, 20))
    alpha = np.zeros((10, 10), dtype=np.uint8)
    composite_camera(bg, solid_buffer((255, 0, 0), size=(10, 10)), SegmentationResult(alpha))
    assert (bg.pixels == [0, 0, 255, 255]).all()


def test_caption_is_drawn(solid_source, plain_settings):
    s = plain_settings.replace(color_mix=0, contrast=0)
    out = render(solid_source((0, 0, 0)), settings=s, out_w=200, out_h=100, caption="HELLO")
    assert out.pixels[50:, :, 0].max() > 0
    assert out.pixels[:40, :, 0].max() == 0


def test_background_does_not_touch_inputs(solid_source):
    src = solid_source()
    before = np.asarray(src.image).copy()
    render_background(src, None, Settings(), 16, 16, np.random.default_rng(1))
    assert np.array_equal(np.asarray(src.image), before)


def test_unopened_model_falls_back_to_raw_frame(solid_source, solid_buffer, plain_settings):
    frame = solid_buffer((255, 0, 0), size=(10, 10))
    out = render(solid_source(), camera_frame=frame,
                 settings=plain_settings.replace(camera_enabled=True), out_w=40, out_h=20,
                 classifier=ForegroundClassifier(SelfieSegmenter()))
    r, g, b, a = (int(v) for v in out.pixels[10, 20])
    # red at 90% over brand blue: mostly red, a little blue showing through
    assert 225 <= r <= 245
    assert 10 <= b <= 40
    assert a == 255
    assert tuple(out.pixels[10, 5]) == BLUE + (255,)
