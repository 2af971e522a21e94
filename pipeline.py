from __future__ import annotations
import concurrent.futures as cf
import logging
import time
from typing import Optional, Tuple
import numpy as np
from PIL import Image

from raster import RasterBuffer, SourceImage, check_dimensions
from settings import Settings
from stages.caption import draw_caption
from stages.color_map import map_colors
from stages.geometry import place, place_pattern
from stages.glitch import pixel_sort, displace
from stages.overlay import overlay
from stages.scanlines import apply_scanlines
from stages.segmentation import ForegroundClassifier, SegmentationResult
from stages.symmetry import compose

logger = logging.getLogger(__name__)

RAW_CAMERA_OPACITY = 0.9


def fit_inside(frame_w: int, frame_h: int, out_w: int, out_h: int) -> Tuple[int, int, int, int]:
    """Letterbox box (x, y, w, h) that fits the frame without cropping."""
    scale = min(out_w / frame_w, out_h / frame_h)
    w = max(1, int(round(frame_w * scale)))
    h = max(1, int(round(frame_h * scale)))
    return ((out_w - w) // 2, (out_h - h) // 2, w, h)

def render_background(base: SourceImage, pattern: Optional[SourceImage], settings: Settings,
                      out_w: int, out_h: int, rng: Optional[np.random.Generator] = None) -> RasterBuffer:
    """Placement, color mapping, glitch, scanlines, symmetry and emblem."""
    check_dimensions(out_w, out_h)
    rng = rng if rng is not None else np.random.default_rng()

    work = RasterBuffer.new(out_w, out_h)
    place(work, base, settings.zoom, settings.rotation, settings.pan_x, settings.pan_y, settings.animation)

    pattern_buf = None
    if pattern is not None and (settings.pattern_texture_mix > 0 or settings.pattern_detail_mix > 0):
        pattern_buf = RasterBuffer.new(out_w, out_h)
        place_pattern(pattern_buf, pattern, settings.zoom)

    map_colors(work, settings, pattern_buf, rng)
    pixel_sort(work, settings.pixel_sort_threshold, rng)
    displace(work, settings.distortion_x, settings.distortion_y, rng)
    apply_scanlines(work, settings.scanlines)

    dest = RasterBuffer.new(out_w, out_h)
    compose(dest, work, settings.symmetry, settings.mirror)
    overlay(dest, settings.overlay, settings.overlay_scale)
    return dest

def composite_camera(background: RasterBuffer, frame: RasterBuffer,
                     segmentation: Optional[SegmentationResult]) -> None:
    """Letterbox ``frame`` over ``background``; raw at 90% when unsegmented."""
    if segmentation is not None:
        cam = segmentation.apply(frame)
    else:
        cam = frame.copy()
        cam.pixels[..., 3] = np.rint(cam.pixels[..., 3] * RAW_CAMERA_OPACITY).astype(np.uint8)
    x, y, w, h = fit_inside(frame.width, frame.height, background.width, background.height)
    layer = cam.to_image()
    if layer.size != (w, h):
        layer = layer.resize((w, h), Image.Resampling.BILINEAR)
    im = background.to_image()
    im.alpha_composite(layer, dest=(x, y))
    background.assign(im)

def render(base: SourceImage, pattern: Optional[SourceImage] = None,
           camera_frame: Optional[RasterBuffer] = None, settings: Optional[Settings] = None,
           out_w: int = 1920, out_h: int = 1080, *,
           classifier: Optional[ForegroundClassifier] = None,
           rng: Optional[np.random.Generator] = None,
           caption: Optional[str] = None) -> RasterBuffer:
    """Render one frame. Pure in (inputs, settings, rng); keeps no state between calls."""
    check_dimensions(out_w, out_h)
    settings = settings if settings is not None else Settings()
    t0 = time.perf_counter()

    if settings.camera_enabled and camera_frame is not None:
        classifier = classifier if classifier is not None else ForegroundClassifier()
        # disjoint buffers: background and camera classification run side by side
        with cf.ThreadPoolExecutor(max_workers=2, thread_name_prefix="render") as ex:
            bg_future = ex.submit(render_background, base, pattern, settings, out_w, out_h, rng)
            seg_future = ex.submit(classifier.classify, camera_frame)
            out = bg_future.result()
            segmentation = seg_future.result()
        composite_camera(out, camera_frame, segmentation)
    else:
        if settings.camera_enabled:
            logger.debug("camera compositing enabled but no frame supplied; skipping")
        out = render_background(base, pattern, settings, out_w, out_h, rng)

    if caption:
        draw_caption(out, caption)
    logger.debug("render %dx%d in %.1f ms", out_w, out_h, (time.perf_counter() - t0) * 1000.0)
    return out
