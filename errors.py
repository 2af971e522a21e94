from __future__ import annotations
import faulthandler
import os
import sys
import threading
import traceback
from datetime import datetime, timezone
from typing import Optional
import logging

from logconf import log_dir

logger = logging.getLogger("Errors")

# Keep a strong ref so the faulthandler file isn't GC'd
_faulthandler_file: Optional[object] = None


class VLabError(Exception):
    """Base class for every error raised by the render pipeline."""


class InvalidImage(VLabError):
    """Source image is undecodable or has no pixels."""


class InvalidDimensions(VLabError, ValueError):
    """Requested raster has a zero or negative side."""


class InvalidSettings(VLabError, ValueError):
    """A settings value names an unknown mode or has the wrong type."""


class ModelNotReady(VLabError, RuntimeError):
    """A segmentation model handle was used before open() or after close()."""


def _ensure_dirs() -> str:
    d = log_dir()
    os.makedirs(d, exist_ok=True)
    return d

def _write_dump(prefix: str, exc_text: str) -> None:
    d = _ensure_dirs()
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    path = os.path.join(d, f"{prefix}_{ts}.dump")
    with open(path, "w", encoding="utf-8") as f:
        f.write(exc_text)
    logger.error("Wrote exception dump: %s", path)

def install_global_exception_hooks() -> None:
    """
    Capture: sys.excepthook, threading.excepthook, sys.unraisablehook,
    and native crashes via faulthandler.
    """
    global _faulthandler_file
    crash_dump = os.path.join(_ensure_dirs(), "crash.dump")

    # 1) Python uncaught exceptions
    def excepthook(exc_type, exc, tb):
        buf = "".join(traceback.format_exception(exc_type, exc, tb))
        logger.critical("Uncaught exception:\n%s", buf)
        _write_dump("uncaught", buf)
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = excepthook

    # 2) Worker thread exceptions (frame batches, camera classification)
    def threading_hook(args: threading.ExceptHookArgs):
        buf = "".join(traceback.format_exception(args.exc_type, args.exc_value, args.exc_traceback))
        logger.critical("Thread exception in %s:\n%s", getattr(args.thread, "name", "<unknown>"), buf)
        _write_dump("thread", buf)

    threading.excepthook = threading_hook

    # 3) Unraisable exceptions
    def unraisable_hook(unraisable):
        buf = "".join(traceback.format_exception(unraisable.exc_type, unraisable.exc_value, unraisable.exc_traceback))
        where = getattr(unraisable, "object", None)
        logger.error("Unraisable exception in %r:\n%s", where, buf)
        _write_dump("unraisable", buf)

    sys.unraisablehook = unraisable_hook

    # 4) Faulthandler for native crashes: requires a *binary* file kept alive
    try:
        _faulthandler_file = open(crash_dump, "ab", buffering=0)
        faulthandler.enable(file=_faulthandler_file, all_threads=True)
        logger.info("Faulthandler enabled: %s", crash_dump)
    except OSError as e:
        logger.warning("Failed to enable faulthandler: %s", e)
