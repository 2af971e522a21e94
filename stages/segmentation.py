"""Foreground/background classification of camera frames.

The built-in classifier is a coarse color-statistics heuristic: it samples the
frame center as the subject color and drops pixels that are too bright, too
dark, or far from that color and grey. It is cheap and will misclassify under
uneven lighting or when the subject is off-center; that is a known limitation.
A real model can be plugged in through an explicit caller-owned handle.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional
import numpy as np

from errors import ModelNotReady, VLabError
from raster import RasterBuffer

logger = logging.getLogger(__name__)

SAMPLE_FRACTION = 0.1     # sample square side, fraction of width
SAMPLE_MAX = 100          # px
SAMPLE_MIN_BRIGHT, SAMPLE_MAX_BRIGHT = 50.0, 200.0
EDGE_FALLOFF = 60.0       # color distance at which foreground reaches its floor
EDGE_FLOOR = 0.3          # max alpha loss at the soft edge


@dataclass
class SegmentationResult:
    """Per-pixel alpha (uint8, H x W) for one camera frame."""
    alpha: np.ndarray

    @property
    def width(self) -> int:
        return self.alpha.shape[1]

    @property
    def height(self) -> int:
        return self.alpha.shape[0]

    def coverage(self) -> float:
        """Fraction of pixels kept as foreground."""
        return float(np.count_nonzero(self.alpha)) / self.alpha.size

    def apply(self, frame: RasterBuffer) -> RasterBuffer:
        """The frame with its alpha scaled by the segmentation alpha."""
        if (frame.width, frame.height) != (self.width, self.height):
            raise ValueError("segmentation does not match frame size")
        out = frame.copy()
        a = out.pixels[..., 3].astype(np.uint16) * self.alpha
        out.pixels[..., 3] = ((a + 127) // 255).astype(np.uint8)
        return out


def sample_subject_color(rgb: np.ndarray) -> Optional[np.ndarray]:
    """Mean RGB of mid-brightness pixels in the centered sample square, or None."""
    h, w = rgb.shape[:2]
    size = min(SAMPLE_MAX, int(w * SAMPLE_FRACTION))
    if size <= 0:
        return None
    x0 = max(0, w // 2 - size // 2)
    y0 = max(0, h // 2 - size // 2)
    patch = rgb[y0:y0 + size, x0:x0 + size].reshape(-1, 3)
    bright = patch.mean(axis=1)
    sel = (bright > SAMPLE_MIN_BRIGHT) & (bright < SAMPLE_MAX_BRIGHT)
    if not sel.any():
        return None
    return patch[sel].mean(axis=0)

def classify_heuristic(frame: RasterBuffer) -> SegmentationResult:
    rgb = frame.pixels[..., :3].astype(np.float32)
    subject = sample_subject_color(rgb)
    if subject is None:
        logger.debug("classify: no usable samples, treating frame as background")
        return SegmentationResult(np.zeros((frame.height, frame.width), dtype=np.uint8))

    brightness = rgb.mean(axis=-1)
    mx = rgb.max(axis=-1)
    mn = rgb.min(axis=-1)
    saturation = np.divide(mx - mn, mx, out=np.zeros_like(mx), where=mx > 0)
    distance = np.sqrt(((rgb - subject) ** 2).sum(axis=-1))

    background = ((brightness > 220) | (brightness < 25)
                  | ((distance > 80) & (saturation < 0.3))
                  | ((brightness > 180) & (saturation < 0.2)))
    soft = 255.0 * (1.0 - np.minimum(1.0, distance / EDGE_FALLOFF) * EDGE_FLOOR)
    alpha = np.where(background, 0.0, np.rint(soft)).astype(np.uint8)
    logger.debug("classify: subject=%s foreground=%.3f", np.round(subject, 1).tolist(),
                 float(np.count_nonzero(alpha)) / alpha.size)
    return SegmentationResult(alpha)


class SelfieSegmenter:
    """MediaPipe selfie segmentation as an explicit handle (``camera`` extra).

    The caller owns its lifetime: ``open()`` loads the model, ``close()``
    releases it; also usable as a context manager.
    """

    def __init__(self, model_selection: int = 1):
        self.model_selection = model_selection
        self._seg = None

    @property
    def is_open(self) -> bool:
        return self._seg is not None

    def open(self) -> "SelfieSegmenter":
        if self._seg is None:
            import mediapipe as mp
            self._seg = mp.solutions.selfie_segmentation.SelfieSegmentation(model_selection=self.model_selection)
            logger.info("Selfie segmentation model loaded (selection=%d)", self.model_selection)
        return self

    def close(self) -> None:
        if self._seg is not None:
            self._seg.close()
            self._seg = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()

    def segment(self, frame: RasterBuffer) -> Optional[np.ndarray]:
        if self._seg is None:
            raise ModelNotReady("SelfieSegmenter used before open()")
        results = self._seg.process(np.ascontiguousarray(frame.pixels[..., :3]))
        mask = results.segmentation_mask
        if mask is None:
            return None
        return np.clip(np.rint(mask * 255.0), 0, 255).astype(np.uint8)


class ForegroundClassifier:
    """Classifies camera frames with ``model`` when given, else with the heuristic."""

    def __init__(self, model=None):
        self.model = model

    def classify(self, frame: RasterBuffer) -> Optional[SegmentationResult]:
        if self.model is None:
            return classify_heuristic(frame)
        try:
            alpha = self.model.segment(frame)
        except (VLabError, RuntimeError):
            logger.warning("classify: segmentation model failed, using the raw frame", exc_info=True)
            return None
        if alpha is None:
            logger.debug("classify: model produced no mask")
            return None
        return SegmentationResult(alpha)
