"""Execution context assembled once at process start."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from app.config import GLOBAL_CONFIG_FILENAME, ConfigStore, global_config_path, project_config_path
from app.version import get_app_version

_LOGGER = logging.getLogger(__name__)

CONFIG_DIR_ENV = "STUD_CONFIG_DIR"
CACHE_DIR_ENV = "STUD_CACHE_DIR"
BINARY_PATH_ENV = "STUD_BINARY_PATH"

_DEFAULT_CACHE_DIRNAME = ".cache/stud"


@dataclass(frozen=True)
class ExecutionContext:
    """Storage roots and flags for one invocation of the tool.

    Everything that would otherwise be inferred from the process state (where
    the config lives, whether we are inside a repository, which file is the
    installed binary) is resolved here and passed explicitly to services.
    """

    config_dir: Path
    cache_dir: Path
    binary_path: Path
    current_version: str
    git_dir: Path | None = None
    verbose: bool = False

    @property
    def global_config_path(self) -> Path:
        return self.config_dir / GLOBAL_CONFIG_FILENAME

    @property
    def project_config_path(self) -> Path | None:
        if self.git_dir is None:
            return None
        return project_config_path(self.git_dir)

    @property
    def in_project(self) -> bool:
        return self.git_dir is not None

    def global_store(self) -> ConfigStore:
        return ConfigStore(self.global_config_path)

    def project_store(self) -> ConfigStore | None:
        path = self.project_config_path
        if path is None:
            return None
        return ConfigStore(path)

    @classmethod
    def from_environment(cls, *, verbose: bool = False, cwd: Path | None = None) -> "ExecutionContext":
        """Build the context for the running process."""

        config_dir = _env_path(CONFIG_DIR_ENV) or global_config_path().parent
        cache_dir = _env_path(CACHE_DIR_ENV) or Path.home() / _DEFAULT_CACHE_DIRNAME
        binary_path = resolve_binary_path()
        git_dir = find_git_dir(cwd)
        context = cls(
            config_dir=config_dir,
            cache_dir=cache_dir,
            binary_path=binary_path,
            current_version=get_app_version(),
            git_dir=git_dir,
            verbose=verbose,
        )
        _LOGGER.debug(
            "Execution context: config=%s cache=%s binary=%s version=%s git_dir=%s",
            context.config_dir,
            context.cache_dir,
            context.binary_path,
            context.current_version,
            context.git_dir,
        )
        return context


def resolve_binary_path() -> Path:
    """Return the path of the installed executable for this process."""

    override = _env_path(BINARY_PATH_ENV)
    if override is not None:
        return override
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if argv0:
        candidate = Path(argv0)
        if candidate.is_file():
            return candidate.resolve()
    return Path(sys.executable).resolve()


def find_git_dir(cwd: Path | None = None) -> Path | None:
    """Return the ``.git`` directory of the enclosing repository, if any."""

    try:
        output = subprocess.check_output(
            ["git", "rev-parse", "--git-dir"],
            cwd=str(cwd) if cwd is not None else None,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    git_dir = Path(output.strip())
    if not git_dir.is_absolute():
        git_dir = (cwd or Path.cwd()) / git_dir
    return git_dir if git_dir.is_dir() else None


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    if not value:
        return None
    return Path(value).expanduser()


__all__ = [
    "BINARY_PATH_ENV",
    "CACHE_DIR_ENV",
    "CONFIG_DIR_ENV",
    "ExecutionContext",
    "find_git_dir",
    "resolve_binary_path",
]
