from __future__ import annotations
import logging
import math
from typing import Optional, Tuple
from PIL import Image

from brand import BACKDROP
from raster import RasterBuffer, SourceImage
from settings import AnimationOffset

logger = logging.getLogger(__name__)

MIN_ZOOM = 0.01

def cover_scale(dest_w: int, dest_h: int, src_w: int, src_h: int, zoom: float) -> float:
    """Scale at which the source covers the destination, times zoom."""
    return max(dest_w / src_w, dest_h / src_h) * zoom

def _inverse_affine(dest_w: int, dest_h: int, src_w: int, src_h: int,
                    scale: float, angle_deg: float, offset_x: float, offset_y: float) -> Tuple[float, ...]:
    # PIL's AFFINE maps output (x, y) -> input (a*x + b*y + c, d*x + e*y + f).
    # Forward: scale about the source center, rotate, then move to the pivot.
    px = dest_w / 2 + offset_x
    py = dest_h / 2 + offset_y
    th = math.radians(angle_deg)
    cos, sin = math.cos(th), math.sin(th)
    a, b = cos / scale, sin / scale
    d, e = -sin / scale, cos / scale
    c = src_w / 2 - (a * px + b * py)
    f = src_h / 2 - (d * px + e * py)
    return (a, b, c, d, e, f)

def place(dest: RasterBuffer, src: SourceImage, zoom: float = 1.0, rotation_deg: float = 0.0,
          pan_x_percent: float = 0.0, pan_y_percent: float = 0.0,
          anim: Optional[AnimationOffset] = None) -> None:
    """Draw ``src`` into ``dest`` centered, cover-scaled, rotated about the panned center.

    Overwrites every pixel of ``dest``; whatever the transformed image leaves
    uncovered becomes opaque backdrop.
    """
    if anim is not None:
        zoom += anim.zoom
        rotation_deg += anim.rotation
        pan_x_percent += anim.pan_x
        pan_y_percent += anim.pan_y
    zoom = max(MIN_ZOOM, zoom)

    w, h = dest.size
    scale = cover_scale(w, h, src.width, src.height, zoom)
    ox = pan_x_percent / 100.0 * w
    oy = pan_y_percent / 100.0 * h
    coeffs = _inverse_affine(w, h, src.width, src.height, scale, rotation_deg, ox, oy)
    logger.debug("place: %dx%d -> %dx%d scale=%.4f rot=%.2f pan=(%.1f, %.1f)",
                 src.width, src.height, w, h, scale, rotation_deg, ox, oy)
    out = src.image.transform(
        (w, h), Image.Transform.AFFINE, coeffs,
        resample=Image.Resampling.BILINEAR, fillcolor=BACKDROP + (255,),
    )
    dest.assign(out)

def place_pattern(dest: RasterBuffer, pattern: SourceImage, zoom: float = 1.0) -> None:
    """Second source follows the zoom only; it is never rotated or panned."""
    place(dest, pattern, zoom=zoom)
