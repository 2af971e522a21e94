"""Clock-driven parameters and multi-frame rendering.

Nothing here keeps a timer: every value is a function of elapsed seconds,
so the same (inputs, settings, t) always yields the same geometry.
"""
from __future__ import annotations
import concurrent.futures as cf
import logging
import math
import threading
from collections import deque
from typing import Iterator, Optional, Tuple
import numpy as np

from pipeline import render
from raster import RasterBuffer, SourceImage, check_dimensions
from settings import AnimationOffset, Settings
from stages.segmentation import ForegroundClassifier

logger = logging.getLogger(__name__)

ROTATION_SWING = 15.0    # degrees at full intensity
ZOOM_SWING = 0.2
PAN_SWING = 10.0         # percent at full intensity
TYPEWRITER_RATE = 0.2    # characters per second per speed point


def animation_offset(elapsed: float, speed: float, intensity: float) -> AnimationOffset:
    phase = elapsed * speed / 50.0
    amp = intensity / 100.0
    return AnimationOffset(
        rotation=ROTATION_SWING * amp * math.sin(phase),
        zoom=ZOOM_SWING * amp * (0.5 + 0.5 * math.sin(phase * 0.7)),
        pan_x=PAN_SWING * amp * math.sin(phase * 0.5),
        pan_y=PAN_SWING * amp * math.cos(phase * 0.5),
    )

def typewriter_text(text: str, elapsed: float, speed: float) -> str:
    """Prefix of ``text`` revealed after ``elapsed`` seconds; speed 0 shows it all."""
    if speed <= 0:
        return text
    n = int(math.floor(max(0.0, elapsed) * speed * TYPEWRITER_RATE))
    return text[:n]

def render_frames(base: SourceImage, pattern: Optional[SourceImage], settings: Settings,
                  out_w: int, out_h: int, frame_count: int, fps: float = 24.0, *,
                  cancel: Optional[threading.Event] = None, workers: int = 1,
                  seed: Optional[int] = None,
                  caption: Optional[str] = None,
                  camera_frame: Optional[RasterBuffer] = None,
                  classifier: Optional[ForegroundClassifier] = None) -> Iterator[Tuple[int, RasterBuffer]]:
    """Yield ``(index, frame)`` in order; stops between frames once ``cancel`` is set.

    A still ``camera_frame`` is composited into every frame the same way
    ``render`` does it for a single pass.
    """
    check_dimensions(out_w, out_h)
    if fps <= 0:
        raise ValueError("fps must be positive")
    cancel = cancel if cancel is not None else threading.Event()
    workers = max(1, int(workers))

    def job(i: int) -> RasterBuffer:
        t = i / fps
        snap = settings.at_time(t)
        text = caption
        if caption and settings.typewriter_enabled:
            text = typewriter_text(caption, t, settings.typewriter_speed)
        rng = np.random.default_rng(None if seed is None else (seed, i))
        return render(base, pattern, camera_frame, snap, out_w, out_h,
                      classifier=classifier, rng=rng, caption=text)

    with cf.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="frames") as ex:
        pending: deque = deque()
        next_i = 0
        while next_i < frame_count or pending:
            while not cancel.is_set() and next_i < frame_count and len(pending) < workers:
                pending.append((next_i, ex.submit(job, next_i)))
                next_i += 1
            if cancel.is_set():
                for _, fut in pending:
                    fut.cancel()
                logger.info("Frame batch cancelled after %d of %d frames", next_i - len(pending), frame_count)
                return
            i, fut = pending.popleft()
            yield i, fut.result()
