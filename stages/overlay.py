from __future__ import annotations
import logging
import math
from typing import Callable, Dict, List, Sequence, Tuple
import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFilter

from brand import BLUE, LIME, WHITE
from errors import InvalidSettings
from raster import RasterBuffer
from settings import (OVERLAY_NONE, OVERLAY_WATERMARK, OVERLAY_MASK_POSITIVE,
                      OVERLAY_MASK_NEGATIVE, OVERLAY_ACCENT_GLOW, OVERLAY_WARPED)

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# The crossing "X" emblem in its native 231x123 box (straight segments only).
EMBLEM_W, EMBLEM_H = 231.0, 123.0
EMBLEM_PATH: Sequence[Point] = (
    (177.342, 0.0), (113.341, 37.6405), (49.3449, 0.0), (0.0, 0.0),
    (0.0, 33.446), (24.9079, 33.446), (72.6891, 61.5485), (25.0779, 89.5539),
    (0.0, 89.5539), (0.0, 123.0), (49.5149, 123.0), (113.341, 85.4566),
    (177.173, 123.0), (231.0, 123.0), (231.0, 89.554), (201.605, 89.5539),
    (153.993, 61.5485), (201.775, 33.446), (231.0, 33.446), (231.0, 0.0000696101),
)

SUPERSAMPLE = 2
WATERMARK_OPACITY = 0.95      # source-over, not additive: flat near-white like the web canvas
GLOW_RADIUS = 20          # px, gaussian sigma of the accent halo
GLOW_OPACITY = 0.8
WARP_PASSES = 6
WARP_DRIFT = 0.02         # sinusoidal drift, fraction of width/height
WARP_TWIST = 0.35         # radians across all passes
STROKE_OPACITY = 0.9


def emblem_points(width: int, height: int, scale: float, angle: float = 0.0,
                  offset: Point = (0.0, 0.0)) -> List[Point]:
    """Emblem outline in destination pixels: centered, sized to min(W, H), turned by ``angle`` rad."""
    rs = min(width, height) / EMBLEM_W * scale
    cx, cy = width / 2.0 + offset[0], height / 2.0 + offset[1]
    cos, sin = math.cos(angle), math.sin(angle)
    pts = []
    for px, py in EMBLEM_PATH:
        x = (px - EMBLEM_W / 2) * rs
        y = (py - EMBLEM_H / 2) * rs
        pts.append((cx + x*cos - y*sin, cy + x*sin + y*cos))
    return pts

def _rasterize(size: Tuple[int, int], draw_fn: Callable[[ImageDraw.ImageDraw, float], None]) -> Image.Image:
    w, h = size
    big = Image.new("L", (w * SUPERSAMPLE, h * SUPERSAMPLE), 0)
    draw_fn(ImageDraw.Draw(big), SUPERSAMPLE)
    return big.resize((w, h), Image.Resampling.BOX)

def emblem_mask(size: Tuple[int, int], points: Sequence[Point]) -> Image.Image:
    """Antialiased coverage mask ('L') of the filled emblem."""
    def fill(d, ss):
        d.polygon([(x * ss, y * ss) for x, y in points], fill=255)
    return _rasterize(size, fill)

def emblem_outline(size: Tuple[int, int], points: Sequence[Point], width: float) -> Image.Image:
    def stroke(d, ss):
        pts = [(x * ss, y * ss) for x, y in points]
        d.line(pts + pts[:1], fill=255, width=max(1, int(round(width * ss))), joint="curve")
    return _rasterize(size, stroke)

def _scaled(mask: Image.Image, opacity: float) -> Image.Image:
    return mask.point(lambda v: int(round(v * opacity)))

def _paint(im: Image.Image, mask: Image.Image, color, opacity: float) -> Image.Image:
    """Source-over a solid color through ``mask`` at ``opacity``."""
    layer = Image.new("RGBA", im.size, tuple(color) + (255,))
    layer.putalpha(_scaled(mask, opacity))
    return Image.alpha_composite(im, layer)


# ---------------- mode registry ----------------
_MODES: Dict[str, Callable[[Image.Image, float], Image.Image]] = {}

def overlay_mode(name: str):
    def deco(fn: Callable[[Image.Image, float], Image.Image]):
        _MODES[name] = fn
        return fn
    return deco

def registered_modes() -> List[str]:
    return sorted(_MODES)


@overlay_mode(OVERLAY_MASK_POSITIVE)
def _mask_positive(im: Image.Image, scale: float) -> Image.Image:
    # destination-in: keep content only under the emblem
    mask = emblem_mask(im.size, emblem_points(im.width, im.height, scale))
    im.putalpha(ImageChops.multiply(im.getchannel("A"), mask))
    return im

@overlay_mode(OVERLAY_MASK_NEGATIVE)
def _mask_negative(im: Image.Image, scale: float) -> Image.Image:
    # destination-out: punch the emblem out of the content
    mask = emblem_mask(im.size, emblem_points(im.width, im.height, scale))
    im.putalpha(ImageChops.multiply(im.getchannel("A"), ImageChops.invert(mask)))
    return im

@overlay_mode(OVERLAY_WATERMARK)
def _watermark(im: Image.Image, scale: float) -> Image.Image:
    mask = emblem_mask(im.size, emblem_points(im.width, im.height, scale))
    return _paint(im, mask, WHITE, WATERMARK_OPACITY)

@overlay_mode(OVERLAY_ACCENT_GLOW)
def _accent_glow(im: Image.Image, scale: float) -> Image.Image:
    mask = emblem_mask(im.size, emblem_points(im.width, im.height, scale))
    halo = mask.filter(ImageFilter.GaussianBlur(GLOW_RADIUS))
    im = _paint(im, halo, LIME, GLOW_OPACITY)
    return _paint(im, mask, LIME, 1.0)

@overlay_mode(OVERLAY_WARPED)
def _warped(im: Image.Image, scale: float) -> Image.Image:
    w, h = im.size
    solid = Image.new("RGB", im.size, BLUE)
    for i in range(WARP_PASSES):
        t = i / (WARP_PASSES - 1)
        offset = (math.sin(t * 2 * math.pi) * w * WARP_DRIFT,
                  math.cos(t * 2 * math.pi) * h * WARP_DRIFT)
        pts = emblem_points(w, h, scale * (0.8 + 0.15 * i), (t - 0.5) * WARP_TWIST, offset)
        coverage = _scaled(emblem_mask(im.size, pts), min(1.0, 0.25 + 0.1 * i))

        rgb = im.convert("RGB")
        blended = ImageChops.screen(rgb, solid) if i % 2 == 0 else ImageChops.overlay(rgb, solid)
        rgb = Image.composite(blended, rgb, coverage)
        alpha = ImageChops.screen(im.getchannel("A"), coverage)  # a + A - a*A
        im = Image.merge("RGBA", (*rgb.split(), alpha))

        if i == WARP_PASSES - 1:
            im = _paint(im, emblem_outline(im.size, pts, 2 * scale), LIME, STROKE_OPACITY)
    return im


def overlay(dest: RasterBuffer, mode: str, scale: float) -> None:
    """Draw the emblem over ``dest`` with the compositing ``mode``."""
    if mode == OVERLAY_NONE:
        return
    fn = _MODES.get(mode)
    if fn is None:
        raise InvalidSettings(f"unknown overlay mode: {mode!r}")
    dest.assign(fn(dest.to_image(), scale))
    logger.debug("overlay: mode=%s scale=%.2f", mode, scale)
