#!/usr/bin/env python3
from __future__ import annotations
import argparse
import logging
import os
import signal
import threading
from typing import Dict, List, Tuple
import numpy as np

from animation import render_frames
from errors import VLabError, InvalidSettings, install_global_exception_hooks
from io_utils import load_source, load_frame, save_png, make_output_path
from logconf import setup_logging, parse_level, log_path
from pipeline import render
from settings import Settings, option_for

logger = logging.getLogger("render")


def parse_size(text: str) -> Tuple[int, int]:
    try:
        w, h = (int(v) for v in text.lower().split("x", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"size must look like 1920x1080, got {text!r}")
    return w, h

def parse_overrides(items: List[str]) -> Dict[str, object]:
    out: Dict[str, object] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep:
            raise InvalidSettings(f"--set expects key=value, got {item!r}")
        key = key.strip()
        option_for(key)  # unknown keys fail here
        out[key] = value.strip()
    return out

def build_settings(path: str, overrides: List[str]) -> Settings:
    settings = Settings()
    if path:
        with open(path, "r", encoding="utf-8") as f:
            settings = Settings.from_json(f.read())
    changes = parse_overrides(overrides)
    return settings.replace(**changes) if changes else settings

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Brand-stylized glitch/kaleidoscope renderer (writes PNG).")
    ap.add_argument("base", help="base photo")
    ap.add_argument("--pattern", help="second image for texture/detail mixing")
    ap.add_argument("--camera", help="still image used as the camera frame")
    ap.add_argument("--settings", default="", help="settings JSON (snake_case or web-generator keys)")
    ap.add_argument("--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
                    help="override one setting, repeatable")
    ap.add_argument("--size", type=parse_size, default=(1920, 1080), help="output WxH")
    ap.add_argument("--out", default="_Renders", help="output directory")
    ap.add_argument("--frames", type=int, default=1, help="render an animated sequence of N frames")
    ap.add_argument("--fps", type=float, default=24.0)
    ap.add_argument("--workers", type=int, default=4, help="threads for frame batches")
    ap.add_argument("--seed", type=int, default=None, help="fix the noise/glitch pattern")
    ap.add_argument("--caption", default="", help="bottom caption text")
    ap.add_argument("--max-dim", type=int, default=4096, help="downscale larger inputs")
    ap.add_argument("--log-level", type=parse_level, default="INFO")
    ap.add_argument("--no-log-file", action="store_true", help="console logging only")
    args = ap.parse_args(argv)

    setup_logging(args.log_level, to_file=not args.no_log_file)
    if not args.no_log_file:
        logger.debug("Logging to %s", log_path())
    install_global_exception_hooks()

    try:
        settings = build_settings(args.settings, args.overrides)
        base = load_source(args.base, max_dim=args.max_dim)
        pattern = load_source(args.pattern, max_dim=args.max_dim) if args.pattern else None
        camera = load_frame(args.camera) if args.camera else None
    except (VLabError, OSError, ValueError) as e:
        logger.error("%s", e)
        return 2

    out_w, out_h = args.size
    os.makedirs(args.out, exist_ok=True)

    if args.frames <= 1:
        rng = np.random.default_rng(args.seed)
        img = render(base, pattern, camera, settings, out_w, out_h, rng=rng, caption=args.caption or None)
        dst = make_output_path(args.out, args.base, "render")
        save_png(img, dst)
        logger.info("Wrote %s", dst)
        return 0

    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    written = 0
    try:
        for i, frame in render_frames(base, pattern, settings, out_w, out_h, args.frames, args.fps,
                                      cancel=cancel, workers=args.workers, seed=args.seed,
                                      caption=args.caption or None, camera_frame=camera):
            dst = make_output_path(args.out, args.base, f"frame{i:05d}")
            save_png(frame, dst)
            written += 1
    finally:
        signal.signal(signal.SIGINT, previous)
    logger.info("Wrote %d frame(s) -> %s", written, args.out)
    return 130 if cancel.is_set() else 0

if __name__ == "__main__":
    raise SystemExit(main())
