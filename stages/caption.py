from __future__ import annotations
from typing import Optional
from PIL import ImageDraw, ImageFont

from brand import WHITE
from raster import RasterBuffer

MARGIN_H = 0.04     # bottom margin, fraction of height
FONT_H = 0.045      # font size, fraction of height

def draw_caption(buf: RasterBuffer, text: str, size: Optional[int] = None) -> None:
    """Bottom-anchored, centered caption drawn over ``buf``."""
    if not text:
        return
    w, h = buf.size
    font = ImageFont.load_default(size=size or max(8, int(h * FONT_H)))
    im = buf.to_image()
    d = ImageDraw.Draw(im)
    left, top, right, bottom = d.multiline_textbbox((0, 0), text, font=font, align="center")
    x = (w - (right - left)) / 2 - left
    y = h - int(h * MARGIN_H) - (bottom - top) - top
    d.multiline_text((x, y), text, font=font, fill=WHITE + (255,), align="center")
    buf.assign(im)
