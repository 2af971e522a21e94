"""Tests for caption drawing."""

import numpy as np

from stages.caption import draw_caption


def test_empty_caption_is_no_op(solid_buffer):
    buf = solid_buffer((0, 0, 0), size=(80, 40))
    draw_caption(buf, "")
    assert (buf.pixels[..., :3] == 0).all()


def test_caption_sits_at_the_bottom_center(solid_buffer):
    buf = solid_buffer((0, 0, 0), size=(300, 200))
    draw_caption(buf, "TSEKH")
    lit = np.argwhere(buf.pixels[..., 0] > 0)
    assert len(lit) > 0
    assert lit[:, 0].min() > 150
    xs = lit[:, 1]
    assert abs((xs.min() + xs.max()) / 2 - 150) < 10
