"""Cached check for a newer published release."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable

from services.update.constants import VERSION_CHECK_CACHE_FILENAME, VERSION_CHECK_TTL_SECONDS
from services.update.providers import ReleaseSource
from services.update.versioning import is_version_newer, strip_version_prefix


_LOGGER = logging.getLogger(__name__)


class VersionCheckService:
    """Report a newer release at most once per cache period.

    The latest known version is stored in a small JSON document so that the
    release source is queried no more than once every
    ``VERSION_CHECK_TTL_SECONDS``.  Failures never reach the caller.
    """

    def __init__(
        self,
        source: ReleaseSource,
        *,
        current_version: str,
        cache_dir: Path,
        ttl_seconds: int = VERSION_CHECK_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._current_version = current_version
        self._cache_path = Path(cache_dir) / VERSION_CHECK_CACHE_FILENAME
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def cache_path(self) -> Path:
        return self._cache_path

    def check(self) -> str | None:
        """Return the latest version when it is newer than the running one."""

        try:
            latest = self._latest_version()
        except Exception:  # the check must never interrupt a command
            _LOGGER.debug("Version check failed", exc_info=True)
            return None
        if latest and is_version_newer(self._current_version, latest):
            return latest
        return None

    def _latest_version(self) -> str | None:
        cached = self._read_cache()
        if cached is not None and self._is_fresh(cached):
            _LOGGER.debug("Using cached latest version %s", cached.get("latest_version"))
            latest = cached.get("latest_version")
            return latest if isinstance(latest, str) else None

        latest = self._fetch_latest()
        self._write_cache(latest)
        return latest

    def _fetch_latest(self) -> str | None:
        try:
            release = self._source.fetch_latest_release()
        except Exception as exc:
            _LOGGER.debug("Unable to fetch latest release for version check: %s", exc)
            return None
        return strip_version_prefix(release.tag)

    def _read_cache(self) -> dict[str, Any] | None:
        try:
            data = json.loads(self._cache_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Ignoring unreadable version check cache %s: %s", self._cache_path, exc)
            return None
        if not isinstance(data, dict) or not isinstance(data.get("timestamp"), (int, float)):
            return None
        return data

    def _is_fresh(self, data: dict[str, Any]) -> bool:
        return self._clock() - data["timestamp"] < self._ttl_seconds

    def _write_cache(self, latest: str | None) -> None:
        payload = {"latest_version": latest, "timestamp": int(self._clock())}
        try:
            self._cache_path.parent.mkdir(parents=True, exist_ok=True)
            self._cache_path.write_text(json.dumps(payload, indent=4), encoding="utf-8")
        except OSError as exc:
            _LOGGER.debug("Unable to write version check cache %s: %s", self._cache_path, exc)


def clear_version_check_cache(cache_dir: Path) -> bool:
    """Delete the cached version check; return ``True`` when a file was removed."""

    path = Path(cache_dir) / VERSION_CHECK_CACHE_FILENAME
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    _LOGGER.info("Removed version check cache %s", path)
    return True


def update_notice(latest_version: str) -> str:
    return f"A new version (v{latest_version}) is available. Run 'stud update' to update."


__all__ = ["VersionCheckService", "clear_version_check_cache", "update_notice"]
