from __future__ import annotations
from io import BytesIO
from typing import Optional
from PIL import Image, ImageOps, ImageCms, UnidentifiedImageError
import os
import math
import logging

from errors import InvalidImage
from raster import RasterBuffer, SourceImage

logger = logging.getLogger(__name__)

def ensure_srgb(img: Image.Image) -> Image.Image:
    icc = img.info.get("icc_profile")
    if not icc or img.mode not in ("RGB", "RGBA"):
        return img
    try:
        srgb = ImageCms.createProfile("sRGB")
        src = ImageCms.ImageCmsProfile(BytesIO(icc))
        return ImageCms.profileToProfile(img, src, srgb, outputMode=img.mode)
    except (ImageCms.PyCMSError, OSError) as e:
        logger.debug("Keeping embedded color profile as-is: %s", e)
        return img


def _open(path: str) -> Image.Image:
    try:
        img = Image.open(path)
        img = ImageOps.exif_transpose(img)
        # Pillow lazy loads; decode now so corrupt data fails here
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImage(f"cannot decode {path}: {e}") from e
    return img


def downscale(img: Image.Image, max_dim: int) -> Image.Image:
    w, h = img.size
    scale = min(max_dim / max(w, h), 1.0)
    if scale < 1.0:
        nw = max(1, int(math.floor(w * scale)))
        nh = max(1, int(math.floor(h * scale)))
        return img.resize((nw, nh), Image.Resampling.LANCZOS)
    return img


def load_source(path: str, max_dim: Optional[int] = None) -> SourceImage:
    img = _open(path)
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    img = ensure_srgb(img)
    if max_dim:
        img = downscale(img, max_dim)
    logger.debug("Loaded %s (%dx%d %s)", path, img.width, img.height, img.mode)
    return SourceImage.from_image(img)


def load_frame(path: str) -> RasterBuffer:
    return RasterBuffer.from_image(_open(path))


def save_png(buf: RasterBuffer, path: str, overwrite: bool = True) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    if os.path.exists(path) and not overwrite:
        raise FileExistsError(path)
    buf.to_image().save(path, format="PNG")


def make_output_path(out_dir: str, in_path: str, tag: str, ext: str = "png") -> str:
    base = os.path.splitext(os.path.basename(in_path))[0]
    filename = f"{base}_{tag}.{ext}"
    return os.path.join(out_dir, filename)
