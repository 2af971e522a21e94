from __future__ import annotations
import logging
import math
import numpy as np

from raster import RasterBuffer

logger = logging.getLogger(__name__)

BAND_OPACITY = 0.5

def scanline_step(intensity: float) -> int:
    """Row pitch between band starts; denser as intensity grows."""
    return max(2, int(math.floor(400.0 / (intensity * 4.0 + 1.0))))

def band_coverage(height: int, step: int) -> np.ndarray:
    # A band covers [k*step, k*step + step/2); row r covers [r, r+1).
    phase = np.arange(height, dtype=np.float32) % step
    return np.clip(step / 2.0 - phase, 0.0, 1.0)

def apply_scanlines(buf: RasterBuffer, intensity: float) -> None:
    """Composite 50% black bands over ``buf`` (source-over)."""
    if intensity <= 0:
        return
    step = scanline_step(intensity)
    a = (BAND_OPACITY * band_coverage(buf.height, step))[:, None]
    px = buf.pixels.astype(np.float32)
    px[..., :3] *= (1.0 - a)[..., None]
    px[..., 3] = a * 255.0 + px[..., 3] * (1.0 - a)
    buf.pixels[...] = np.clip(np.rint(px), 0, 255).astype(np.uint8)
    logger.debug("scanlines: intensity=%.1f step=%d", intensity, step)
