from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import numpy as np
from PIL import Image

from errors import InvalidDimensions, InvalidImage

RGBA = Tuple[int, int, int, int]


def check_dimensions(width: int, height: int) -> None:
    if int(width) <= 0 or int(height) <= 0:
        raise InvalidDimensions(f"raster must have positive size, got {width}x{height}")


@dataclass
class RasterBuffer:
    """RGBA8 pixels, row-major, top-to-bottom: an ``(H, W, 4)`` uint8 array.

    Stages either mutate ``pixels`` in place or write into a fresh buffer; a
    buffer is never handed to two render passes at once.
    """
    pixels: np.ndarray

    def __post_init__(self):
        a = self.pixels
        if a.ndim != 3 or a.shape[2] != 4 or a.dtype != np.uint8:
            raise ValueError(f"expected (H, W, 4) uint8 pixels, got {a.shape} {a.dtype}")
        check_dimensions(a.shape[1], a.shape[0])

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def new(cls, width: int, height: int, fill: RGBA = (0, 0, 0, 0)) -> "RasterBuffer":
        check_dimensions(width, height)
        px = np.empty((int(height), int(width), 4), dtype=np.uint8)
        px[...] = fill
        return cls(px)

    @classmethod
    def from_image(cls, img: Image.Image) -> "RasterBuffer":
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(np.array(img, dtype=np.uint8))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "RasterBuffer":
        check_dimensions(width, height)
        arr = np.frombuffer(data, dtype=np.uint8)
        if arr.size != width * height * 4:
            raise ValueError(f"expected {width*height*4} bytes for {width}x{height} RGBA, got {arr.size}")
        return cls(arr.reshape(height, width, 4).copy())

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels, "RGBA")

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.pixels.copy())

    def assign(self, img: Image.Image) -> None:
        """Overwrite the pixels with a same-sized PIL image."""
        if img.size != self.size:
            raise ValueError(f"size mismatch: {img.size} vs {self.size}")
        self.pixels[...] = np.asarray(img.convert("RGBA"))


@dataclass(frozen=True)
class SourceImage:
    """A decoded caller-owned picture; the pipeline only reads from it."""
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @classmethod
    def from_image(cls, img: Image.Image) -> "SourceImage":
        if img.width <= 0 or img.height <= 0:
            raise InvalidImage(f"image has no pixels: {img.width}x{img.height}")
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(img)

    @classmethod
    def from_buffer(cls, buf: RasterBuffer) -> "SourceImage":
        return cls(buf.to_image())
