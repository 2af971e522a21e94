from __future__ import annotations
import logging
from typing import Optional
import numpy as np

from raster import RasterBuffer

logger = logging.getLogger(__name__)

SLICES = 20             # horizontal slices for XY displacement
BAND_MAX_H = 0.05       # smear band height, fraction of height
STRETCH_MAX_W = 0.5     # column stretch length, fraction of width
STRIP_SHIFT = 50        # strip offsets fall in [-STRIP_SHIFT/2, STRIP_SHIFT/2]


def blit(dst: np.ndarray, src: np.ndarray, x: int, y: int) -> None:
    """Copy ``src`` into ``dst`` with its top-left at (x, y), clipped to ``dst``."""
    h, w = dst.shape[:2]
    sh, sw = src.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(w, x + sw), min(h, y + sh)
    if x1 <= x0 or y1 <= y0:
        return
    dst[y0:y1, x0:x1] = src[y0 - y:y1 - y, x0 - x:x1 - x]

def pixel_sort(buf: RasterBuffer, threshold_percent: float,
               rng: Optional[np.random.Generator] = None) -> None:
    """Random strip smears: stretched single columns or sideways-shifted bands."""
    cycles = int(threshold_percent // 2)
    if cycles <= 0:
        return
    rng = rng if rng is not None else np.random.default_rng()
    px = buf.pixels
    h, w = px.shape[:2]
    for _ in range(cycles):
        y = int(rng.random() * h)
        length = int(rng.random() * w * STRETCH_MAX_W)
        band_h = max(1, int(rng.random() * h * BAND_MAX_H))
        # every write below reads only these rows, so a band snapshot is enough
        band = px[y:y + band_h].copy()
        if rng.random() > 0.5:
            x = int(rng.random() * w)
            if length > 0:
                x1 = min(w, x + length)
                px[y:y + band_h, x:x1] = band[:, x:x + 1]
        else:
            offset = int(round((rng.random() - 0.5) * STRIP_SHIFT))
            blit(px, band, offset, y)
    logger.debug("pixel_sort: %d cycles", cycles)

def displace(buf: RasterBuffer, distortion_x: float, distortion_y: float,
             rng: Optional[np.random.Generator] = None) -> None:
    """Redraw 20 horizontal slices at independent random (dx, dy) offsets."""
    if distortion_x <= 0 and distortion_y <= 0:
        return
    rng = rng if rng is not None else np.random.default_rng()
    px = buf.pixels
    h = px.shape[0]
    snapshot = px.copy()
    for i in range(SLICES):
        dx = int(round((rng.random() - 0.5) * distortion_x * 2))
        dy = int(round((rng.random() - 0.5) * distortion_y * 2))
        y0 = (i * h) // SLICES
        y1 = ((i + 1) * h) // SLICES
        if y1 > y0:
            blit(px, snapshot[y0:y1], dx, y0 + dy)
    logger.debug("displace: dx<=%.1f dy<=%.1f", distortion_x, distortion_y)
