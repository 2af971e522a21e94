"""Kaleidoscope compositing: mirror and radial tilings of a centered square crop.

All modes read from the processed buffer and write into a separate
destination, so no stage ever samples pixels it has already overwritten.
"""
from __future__ import annotations
import logging
import math
import numpy as np
from PIL import Image

from brand import BACKDROP
from errors import InvalidSettings
from raster import RasterBuffer
from settings import SYMMETRY_OFF, SYMMETRY_2, SYMMETRY_4, SYMMETRY_8

logger = logging.getLogger(__name__)

MIRROR_OPACITY = 0.5
RADIAL_WEDGES = 8

# rounded so that wedge k+2 is exactly wedge k turned a quarter
_WEDGE_ANGLES = np.arange(RADIAL_WEDGES) * (2 * math.pi / RADIAL_WEDGES)
_WEDGE_COS = np.round(np.cos(_WEDGE_ANGLES), 12)
_WEDGE_SIN = np.round(np.sin(_WEDGE_ANGLES), 12)


def center_crop(px: np.ndarray) -> np.ndarray:
    """Centered square of side min(W, H)."""
    h, w = px.shape[:2]
    c = min(w, h)
    x0, y0 = (w - c) // 2, (h - c) // 2
    return px[y0:y0 + c, x0:x0 + c]

def _over_backdrop(layer: np.ndarray) -> Image.Image:
    h, w = layer.shape[:2]
    bg = Image.new("RGBA", (w, h), BACKDROP + (255,))
    return Image.alpha_composite(bg, Image.fromarray(layer, "RGBA"))

def mirror_pair(src: RasterBuffer) -> Image.Image:
    """The frame with a half-opacity left-right flipped copy laid over it."""
    base = src.to_image()
    flipped = src.pixels[:, ::-1].copy()
    flipped[..., 3] = np.rint(flipped[..., 3] * MIRROR_OPACITY).astype(np.uint8)
    return Image.alpha_composite(base, Image.fromarray(flipped, "RGBA"))

def carpet(src: RasterBuffer) -> np.ndarray:
    """4-fold mirror tiling from the top-left quadrant of the center crop."""
    w, h = src.size
    crop = center_crop(src.pixels)
    q = max(1, crop.shape[0] // 2)
    quad = Image.fromarray(np.ascontiguousarray(crop[:q, :q]), "RGBA")
    # odd sides share their middle column/row between the two halves
    tw, th = (w + 1) // 2, (h + 1) // 2
    tile = np.asarray(quad.resize((tw, th), Image.Resampling.BILINEAR))
    top = np.concatenate([tile, tile[:, ::-1][:, w % 2:]], axis=1)
    return np.concatenate([top, top[::-1][h % 2:]], axis=0)

def radial(src: RasterBuffer) -> np.ndarray:
    """8 wedges of 45 degrees; wedge i is the crop turned by i*45, flipped on odd i."""
    w, h = src.size
    crop = center_crop(src.pixels)
    c = crop.shape[0]
    slice_angle = 2 * math.pi / RADIAL_WEDGES

    ys, xs = np.mgrid[0:h, 0:w]
    dx = xs + 0.5 - w / 2.0
    dy = ys + 0.5 - h / 2.0
    wedge = np.rint(np.arctan2(dy, dx) / slice_angle).astype(np.int64) % RADIAL_WEDGES
    cos, sin = _WEDGE_COS[wedge], _WEDGE_SIN[wedge]
    # undo the wedge rotation, then the flip, to land in crop space
    u = dx * cos + dy * sin
    v = -dx * sin + dy * cos
    v = np.where(wedge % 2 == 1, -v, v)

    sx = np.floor(u).astype(np.int64)
    sy = np.floor(v + c / 2.0).astype(np.int64)
    inside = (sx >= 0) & (sx < c) & (sy >= 0) & (sy < c)
    out = np.zeros((h, w, 4), dtype=np.uint8)
    out[inside] = crop[sy[inside], sx[inside]]
    return out

def compose(dest: RasterBuffer, processed: RasterBuffer, mode: str, mirror: bool = False) -> None:
    if dest.size != processed.size:
        raise ValueError(f"destination {dest.size} does not match processed {processed.size}")
    if mode == SYMMETRY_OFF:
        dest.pixels[...] = processed.pixels
    elif mode == SYMMETRY_2:
        if mirror:
            dest.assign(mirror_pair(processed))
        else:
            dest.pixels[...] = processed.pixels
    elif mode == SYMMETRY_4:
        dest.assign(_over_backdrop(carpet(processed)))
    elif mode == SYMMETRY_8:
        dest.assign(_over_backdrop(radial(processed)))
    else:
        raise InvalidSettings(f"unknown symmetry mode: {mode!r}")
    logger.debug("compose: mode=%s mirror=%s", mode, mirror)
