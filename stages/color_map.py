from __future__ import annotations
import logging
from typing import Optional
import numpy as np

from brand import BLUE, LIME, SHADOW, WHITE
from raster import RasterBuffer
from settings import Settings

logger = logging.getLogger(__name__)

SHADOW_CEIL = 50.0       # luma below this ramps from soft black to dim blue
HIGHLIGHT_FLOOR = 180.0  # luma at or above this maps to white
ACCENT_FLOOR = 220.0     # highlight accent only fires above this
GRAIN_FLOOR = 100.0      # noise accent only fires above this

_BLUE = np.array(BLUE, dtype=np.float32)
_LIME = np.array(LIME, dtype=np.float32)
_WHITE = np.array(WHITE, dtype=np.float32)
_SHADOW = np.array(SHADOW, dtype=np.float32)


def contrast_factor(contrast: float) -> float:
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))

def luma(rgb: np.ndarray) -> np.ndarray:
    return 0.299*rgb[...,0] + 0.587*rgb[...,1] + 0.114*rgb[...,2]

def correct(rgb: np.ndarray, contrast: float, brightness: float) -> np.ndarray:
    """Contrast about mid-gray plus a brightness offset, clamped to [0, 255]."""
    f = contrast_factor(contrast)
    out = f * (rgb.astype(np.float32) - 128.0) + 128.0 + (brightness - 100.0)
    return np.clip(out, 0.0, 255.0)

def modulate_detail(rgb: np.ndarray, pattern_rgb: np.ndarray, detail_mix: float) -> np.ndarray:
    """Pattern brightness darkens or lifts the base by up to +/- detail_mix."""
    factor = 1.0 + ((luma(pattern_rgb.astype(np.float32)) - 128.0) / 128.0) * detail_mix
    return rgb * factor[..., None]

def gradient_map(l: np.ndarray) -> np.ndarray:
    """Luma buckets -> brand palette: shadow ramp, flat blue mids, white highlights."""
    t = np.clip(l / SHADOW_CEIL, 0.0, 1.0)[..., None]
    shadow = _SHADOW * (1.0 - t) + _BLUE * 0.2 * t
    lv = l[..., None]
    return np.where(lv < SHADOW_CEIL, shadow, np.where(lv < HIGHLIGHT_FLOOR, _BLUE, _WHITE))

def accent_mask(l: np.ndarray, noise_amount: float, accent_percent: float,
                rng: np.random.Generator) -> np.ndarray:
    """Pixels whose target is swapped for lime; independent uniform draw per pixel."""
    hit = np.zeros(l.shape, dtype=bool)
    if noise_amount > 0:
        hit |= (rng.random(l.shape) * 100.0 < noise_amount * 0.5) & (l > GRAIN_FLOOR)
    if accent_percent > 0:
        hit |= (l > ACCENT_FLOOR) & (rng.random(l.shape) * 100.0 < accent_percent)
    return hit

def map_colors(buf: RasterBuffer, settings: Settings, pattern: Optional[RasterBuffer] = None,
               rng: Optional[np.random.Generator] = None) -> None:
    """Brand color mapping of ``buf`` in place. Alpha is left untouched."""
    if pattern is not None and pattern.size != buf.size:
        raise ValueError(f"pattern size {pattern.size} does not match buffer {buf.size}")
    rng = rng if rng is not None else np.random.default_rng()

    rgb = correct(buf.pixels[..., :3], settings.contrast, settings.brightness)
    pattern_rgb = pattern.pixels[..., :3].astype(np.float32) if pattern is not None else None

    detail_mix = settings.pattern_detail_mix / 100.0
    if pattern_rgb is not None and detail_mix > 0:
        rgb = modulate_detail(rgb, pattern_rgb, detail_mix)

    mix = settings.color_mix / 100.0
    if mix > 0:
        l = luma(rgb)
        target = gradient_map(l)
        accent = accent_mask(l, settings.noise_amount, settings.accent_percent, rng)
        target[accent] = _LIME
        rgb = rgb * (1.0 - mix) + target * mix

    texture_mix = settings.pattern_texture_mix / 100.0
    if pattern_rgb is not None and texture_mix > 0:
        rgb = rgb * (1.0 - texture_mix) + pattern_rgb * texture_mix

    buf.pixels[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    logger.debug("map_colors: mix=%.2f detail=%.2f texture=%.2f pattern=%s",
                 mix, detail_mix, texture_mix, pattern is not None)
