from __future__ import annotations

"""Application version helpers."""

from functools import lru_cache
import os
import subprocess
from importlib import resources

_FALLBACK_VERSION = "0.0.0-dev"


def _read_version_file() -> str | None:
    try:
        text = resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8")
    except (OSError, ModuleNotFoundError):
        return None
    version = text.strip()
    return version or None


def _version_from_env() -> str | None:
    env_version = os.environ.get("STUD_APP_VERSION")
    if not env_version:
        return None
    return normalize_version(env_version)


def _version_from_git() -> str | None:
    try:
        output = subprocess.check_output(
            ["git", "describe", "--tags", "--abbrev=0"],
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return normalize_version(output.strip()) or None


def normalize_version(raw_version: str) -> str:
    """Strip whitespace and a leading ``v`` from a tag or version string."""

    version = raw_version.strip()
    if version[:1] in {"v", "V"}:
        version = version[1:]
    return version


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the installed tool version.

    The order of precedence is:
    1. The ``STUD_APP_VERSION`` environment variable.
    2. Embedded ``VERSION`` file packaged with the app.
    3. The most recent tag reported by ``git describe`` in a source checkout.
    4. A fallback development version string.
    """

    for resolver in (_version_from_env, _read_version_file, _version_from_git):
        version = resolver()
        if version:
            return version
    return _FALLBACK_VERSION


__all__ = ["get_app_version", "normalize_version"]
