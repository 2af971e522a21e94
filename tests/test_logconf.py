"""Tests for logging setup and crash hooks."""

import logging
import os
import sys
import threading

import pytest

import errors
from errors import InvalidDimensions, InvalidSettings, ModelNotReady, VLabError
from logconf import log_path, parse_level, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("WARNING") == logging.WARNING
    with pytest.raises(ValueError):
        parse_level("chatty")


def test_log_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TSEKH_LOG_DIR", str(tmp_path))
    assert log_path() == os.path.join(str(tmp_path), "app.log")


def test_setup_logging_writes_file(tmp_path, monkeypatch, root_logger):
    monkeypatch.setenv("TSEKH_LOG_DIR", str(tmp_path))
    setup_logging(logging.WARNING)
    logging.getLogger("stages.test").debug("fine detail")
    for h in root_logger.handlers:
        h.flush()
    with open(log_path(), encoding="utf-8") as f:
        assert "fine detail" in f.read()


def test_console_only(tmp_path, monkeypatch, root_logger):
    monkeypatch.setenv("TSEKH_LOG_DIR", str(tmp_path / "unused"))
    setup_logging(logging.INFO, to_file=False)
    assert len(root_logger.handlers) == 1
    assert not (tmp_path / "unused").exists()


def test_error_hierarchy():
    assert issubclass(InvalidDimensions, VLabError) and issubclass(InvalidDimensions, ValueError)
    assert issubclass(InvalidSettings, ValueError)
    assert issubclass(ModelNotReady, RuntimeError)


def test_write_dump(tmp_path, monkeypatch):
    monkeypatch.setenv("TSEKH_LOG_DIR", str(tmp_path))
    errors._write_dump("thread", "Traceback: boom")
    dumps = list(tmp_path.glob("thread_*.dump"))
    assert len(dumps) == 1
    assert dumps[0].read_text(encoding="utf-8") == "Traceback: boom"


def test_install_hooks(tmp_path, monkeypatch):
    monkeypatch.setenv("TSEKH_LOG_DIR", str(tmp_path))
    previous = sys.excepthook
    monkeypatch.setattr(sys, "excepthook", previous)
    monkeypatch.setattr(sys, "unraisablehook", sys.unraisablehook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    monkeypatch.setattr(errors, "_faulthandler_file", None)
    monkeypatch.setattr(errors.faulthandler, "enable", lambda **kw: None)
    errors.install_global_exception_hooks()
    assert sys.excepthook is not previous
    assert (tmp_path / "crash.dump").exists()
    errors._faulthandler_file.close()
