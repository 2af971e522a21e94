import logging
import os
from logging.handlers import RotatingFileHandler
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_MAX_BYTES = 5_000_000
LOG_BACKUPS = 3

def log_dir() -> str:
    """Directory for app.log and crash dumps; ``TSEKH_LOG_DIR`` overrides ./logs."""
    return os.path.abspath(os.environ.get("TSEKH_LOG_DIR", "logs"))

def log_path() -> str:
    return os.path.join(log_dir(), "app.log")

def setup_logging(level=logging.INFO, to_file: bool = True) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if to_file else level)

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler(stream=sys.stdout)
    ch.setFormatter(fmt)
    ch.setLevel(level)
    root.addHandler(ch)

    # the file keeps per-stage DEBUG detail whatever the console level
    if to_file:
        os.makedirs(log_dir(), exist_ok=True)
        fh = RotatingFileHandler(log_path(), maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
        fh.setFormatter(fmt)
        fh.setLevel(logging.DEBUG)
        root.addHandler(fh)

    # Tame noisy libs
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("absl").setLevel(logging.WARNING)  # mediapipe

def parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level
