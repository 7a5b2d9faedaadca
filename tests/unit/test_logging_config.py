from __future__ import annotations

import logging
from pathlib import Path

import pytest

from shared import logging_config


def _flush_managed_handlers() -> None:
    for handler in logging.getLogger().handlers:
        if getattr(handler, logging_config._HANDLER_TAG, False):  # type: ignore[attr-defined]
            handler.flush()


def _managed_handlers() -> list[logging.Handler]:
    return [
        handler
        for handler in logging.getLogger().handlers
        if getattr(handler, logging_config._HANDLER_TAG, False)  # type: ignore[attr-defined]
    ]


@pytest.fixture(autouse=True)
def reset_logging():
    logging_config._reset_for_tests()
    try:
        yield
    finally:
        logging_config._reset_for_tests()


def test_logging_creates_file_in_configured_directory(tmp_path, monkeypatch):
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path))

    log_path = logging_config.ensure_app_logging()
    assert log_path == tmp_path / "stud.log"
    assert logging_config.get_file_log_verbosity() == logging_config.LogVerbosity.INFO
    logging.getLogger("services.update.service").debug("debug message")
    logging.getLogger("services.update.service").warning("warning message")
    _flush_managed_handlers()

    contents = log_path.read_text(encoding="utf-8")
    assert "debug message" not in contents
    assert "warning message" in contents


def test_log_file_variable_takes_precedence(tmp_path, monkeypatch):
    target = tmp_path / "custom" / "update.log"
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path / "ignored"))
    monkeypatch.setenv("STUD_LOG_FILE", str(target))

    assert logging_config.ensure_app_logging() == target
    assert target.parent.is_dir()


def test_logging_configuration_is_idempotent(tmp_path, monkeypatch):
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path))

    first_path = logging_config.ensure_app_logging()
    second_path = logging_config.ensure_app_logging()

    assert first_path == second_path
    managed_handlers = _managed_handlers()
    assert len(managed_handlers) == 1
    assert isinstance(managed_handlers[0], logging.FileHandler)
    assert Path(managed_handlers[0].baseFilename) == first_path


def test_verbose_adds_a_single_stderr_handler(tmp_path, monkeypatch):
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path))

    logging_config.ensure_app_logging()
    logging_config.ensure_app_logging(verbose=True)
    logging_config.ensure_app_logging(verbose=True)

    stream_handlers = [
        handler for handler in _managed_handlers() if not isinstance(handler, logging.FileHandler)
    ]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].level == logging.DEBUG


def test_can_adjust_file_log_verbosity(tmp_path, monkeypatch):
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path))

    log_path = logging_config.ensure_app_logging()
    logging_config.set_file_log_verbosity("verbose")
    logging.getLogger("tests.logging").debug("debug message")
    logging.getLogger("tests.logging").error("error message")
    _flush_managed_handlers()

    contents = log_path.read_text(encoding="utf-8")
    assert "debug message" in contents
    assert "error message" in contents
    assert logging_config.get_file_log_verbosity() == logging_config.LogVerbosity.VERBOSE


def test_unknown_verbosity_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path))

    with pytest.raises(ValueError):
        logging_config.set_file_log_verbosity("chatty")


def test_disabling_file_logging_suppresses_output(tmp_path, monkeypatch):
    monkeypatch.setenv("STUD_LOG_DIR", str(tmp_path))

    log_path = logging_config.ensure_app_logging()
    logging_config.set_file_log_verbosity(logging_config.LogVerbosity.DISABLED)
    _flush_managed_handlers()
    initial_size = log_path.stat().st_size

    logging.getLogger("tests.logging").critical("critical message")
    _flush_managed_handlers()

    assert log_path.stat().st_size == initial_size
