"""Central logging configuration for the command line tool.

Every invocation appends diagnostics to a log file so that failed updates and
migrations can be investigated after the fact.  Configuration is idempotent:
repeated calls (as happen in tests) never register duplicate handlers.

Two environment variables allow customising where the log file is written:

``STUD_LOG_FILE``
    Absolute path to the log file that should be created.

``STUD_LOG_DIR``
    Directory where the default log file name will be created.  Ignored when
    ``STUD_LOG_FILE`` is present.
"""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from pathlib import Path

_LOG_FILE_ENV = "STUD_LOG_FILE"
_LOG_DIR_ENV = "STUD_LOG_DIR"
_DEFAULT_DIRNAME = ".cache/stud"
_DEFAULT_LOGNAME = "stud.log"
_CONFIGURED = False
_LOG_PATH: Path | None = None
_HANDLER_TAG = "_stud_logging_handler"
_FILE_HANDLER: logging.FileHandler | None = None
_STDERR_HANDLER: logging.StreamHandler | None = None

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the log file."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.INFO
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def ensure_app_logging(*, verbose: bool = False) -> Path:
    """Configure the root logger for the command line tool.

    The first invocation installs a file handler; ``verbose`` additionally
    mirrors DEBUG output to stderr.  Subsequent calls only add the stderr
    handler when it was not requested before.

    Returns
    -------
    Path
        Location of the log file that records diagnostics.
    """

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER

    if not (_CONFIGURED and _LOG_PATH is not None):
        log_path = _resolve_log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        root = logging.getLogger()
        root.setLevel(logging.DEBUG)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
        file_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)
        _FILE_HANDLER = file_handler

        _CONFIGURED = True
        _LOG_PATH = log_path
        logging.getLogger(__name__).debug(
            "Writing logs to %s (verbosity=%s)", log_path, _CURRENT_VERBOSITY.value
        )

    if verbose:
        _ensure_stderr_handler()
    return _LOG_PATH


def set_file_log_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity recorded in the log file."""

    global _CURRENT_VERBOSITY

    if isinstance(verbosity, str):
        try:
            verbosity = LogVerbosity(verbosity.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc

    ensure_app_logging()
    _CURRENT_VERBOSITY = verbosity
    if _FILE_HANDLER is not None:
        _FILE_HANDLER.setLevel(_VERBOSITY_LEVELS[verbosity])
    logging.getLogger(__name__).debug("File log verbosity set to %s", verbosity.value)


def get_file_log_verbosity() -> LogVerbosity:
    """Return the current verbosity level for the log file."""

    return _CURRENT_VERBOSITY


def _ensure_stderr_handler() -> None:
    global _STDERR_HANDLER

    if _STDERR_HANDLER is not None:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
    setattr(handler, _HANDLER_TAG, True)
    logging.getLogger().addHandler(handler)
    _STDERR_HANDLER = handler


def _resolve_log_path() -> Path:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    env_dir = os.environ.get(_LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser() / _DEFAULT_LOGNAME

    return Path.home() / _DEFAULT_DIRNAME / "logs" / _DEFAULT_LOGNAME


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_app_logging`."""

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _STDERR_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _CONFIGURED = False
    _LOG_PATH = None
    _FILE_HANDLER = None
    _STDERR_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


__all__ = [
    "LogVerbosity",
    "ensure_app_logging",
    "get_file_log_verbosity",
    "set_file_log_verbosity",
]
