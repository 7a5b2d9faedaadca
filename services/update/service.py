"""State machine that drives a self-update from release lookup to swap."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Callable, List, Optional

from services.migrations.base import MigrationFailure
from services.update.changelog import ChangelogDiff, diff_changelog
from services.update.models import (
    NetworkFailure,
    ReleaseDescriptor,
    Severity,
    SwapFailure,
    UpdateError,
    UpdateResult,
    UpdateState,
)
from services.update.providers import ReleaseSource
from services.update.release_assets import obtain_release_artifact, resolve_artifact, verify_artifact_digest
from services.update.replacer import BinaryReplacer
from services.update.versioning import is_version_newer, strip_version_prefix


_LOGGER = logging.getLogger(__name__)

PrerequisiteRunner = Callable[[], None]
ChangelogCallback = Callable[[ReleaseDescriptor, ChangelogDiff], None]


class UpdateOrchestrator:
    """Coordinate release discovery, migrations, download and replacement.

    Every call to :meth:`run` or :meth:`preview` returns an
    :class:`UpdateResult`; failures from collaborators are translated into
    results here and never propagate to the caller.
    """

    def __init__(
        self,
        source: ReleaseSource,
        *,
        current_version: str,
        binary_path: Path,
        replacer: Optional[BinaryReplacer] = None,
        prerequisites: Optional[PrerequisiteRunner] = None,
        on_changelog: Optional[ChangelogCallback] = None,
    ) -> None:
        self._source = source
        self._current_version = current_version
        self._binary_path = Path(binary_path)
        self._replacer = replacer or BinaryReplacer()
        self._prerequisites = prerequisites
        self._on_changelog = on_changelog
        self._history: List[UpdateState] = []

    @property
    def current_version(self) -> str:
        return self._current_version

    def run(self) -> UpdateResult:
        """Update the installed executable to the latest release."""

        self._reset()
        release_or_result = self._resolve_release()
        if isinstance(release_or_result, UpdateResult):
            return release_or_result
        release = release_or_result

        self._enter(UpdateState.COMPARING_VERSIONS)
        _LOGGER.debug("Current version %s, latest %s", self._current_version, release.tag)
        if not is_version_newer(self._current_version, release.version):
            _LOGGER.info("Current version %s is up to date", self._current_version)
            return self._finish(
                UpdateState.UP_TO_DATE,
                Severity.SUCCESS,
                f"You are already on the latest version ({self._current_version}).",
                release=release,
            )
        _LOGGER.info("Update available: %s -> %s", self._current_version, release.version)

        self._enter(UpdateState.RUNNING_PREREQUISITE_MIGRATIONS)
        if self._prerequisites is not None:
            try:
                self._prerequisites()
            except MigrationFailure as exc:
                return self._fail(exc, release=release)

        self._enter(UpdateState.FETCHING_CHANGELOG)
        changelog = self._load_changelog(release)
        if changelog is not None and self._on_changelog is not None:
            self._on_changelog(release, changelog)

        self._enter(UpdateState.RESOLVING_ARTIFACT)
        try:
            asset = resolve_artifact(release)
        except UpdateError as exc:
            return self._fail(exc, release=release, changelog=changelog)

        self._enter(UpdateState.DOWNLOADING)
        artifact_path: Path | None = None
        try:
            artifact_path = obtain_release_artifact(self._source, asset, directory=self._binary_path.parent)
            verify_artifact_digest(artifact_path, asset)
        except UpdateError as exc:
            _discard_download(artifact_path)
            return self._fail(exc, release=release, changelog=changelog)

        self._enter(UpdateState.SWAPPING)
        try:
            transaction = self._replacer.swap(artifact_path, self._binary_path, self._current_version)
        except SwapFailure as exc:
            if exc.rollback_succeeded:
                _discard_download(artifact_path)
            return self._fail(exc, release=release, changelog=changelog, backup_path=exc.backup)
        except UpdateError as exc:
            _discard_download(artifact_path)
            return self._fail(exc, release=release, changelog=changelog)

        _discard_download(artifact_path)
        _LOGGER.info("Updated %s to %s (backup at %s)", self._binary_path, release.tag, transaction.backup)
        return self._finish(
            UpdateState.DONE,
            Severity.SUCCESS,
            f"Successfully updated to {release.tag}.",
            release=release,
            changelog=changelog,
            backup_path=transaction.backup,
        )

    def preview(self) -> UpdateResult:
        """Return the changelog of the latest release without changing anything."""

        self._reset()
        release_or_result = self._resolve_release()
        if isinstance(release_or_result, UpdateResult):
            return release_or_result
        release = release_or_result

        self._enter(UpdateState.FETCHING_CHANGELOG)
        changelog = self._load_changelog(release)
        if changelog is None:
            return self._finish(
                UpdateState.DONE,
                Severity.WARNING,
                f"Unable to fetch the changelog for {release.tag}.",
                release=release,
            )
        if self._on_changelog is not None:
            self._on_changelog(release, changelog)
        if changelog.is_empty:
            message = f"No changelog entries between {self._current_version} and {release.tag}."
        else:
            message = f"Latest release is {release.tag}; installed version is {self._current_version}."
        return self._finish(UpdateState.DONE, Severity.SUCCESS, message, release=release, changelog=changelog)

    def _resolve_release(self) -> ReleaseDescriptor | UpdateResult:
        self._enter(UpdateState.RESOLVING_RELEASE)
        try:
            release = self._source.fetch_latest_release()
        except NetworkFailure as exc:
            if exc.is_not_found:
                _LOGGER.warning("No releases published: %s", exc)
                return self._finish(
                    UpdateState.NO_RELEASES,
                    Severity.WARNING,
                    "No releases found for this repository. "
                    "The repository may not have any published releases yet.",
                )
            return self._fail(exc)
        except UpdateError as exc:
            return self._fail(exc)
        _LOGGER.debug("Latest release %s with assets: %s", release.tag, ", ".join(release.asset_names))
        return release

    def _load_changelog(self, release: ReleaseDescriptor) -> ChangelogDiff | None:
        try:
            text = self._source.fetch_changelog(release.tag)
        except UpdateError as exc:
            _LOGGER.warning("Unable to fetch changelog for %s: %s", release.tag, exc)
            return None
        return diff_changelog(
            text,
            strip_version_prefix(self._current_version),
            release.version,
        )

    def _reset(self) -> None:
        self._history = [UpdateState.IDLE]

    def _enter(self, state: UpdateState) -> None:
        _LOGGER.debug("Update state: %s", state.value)
        self._history.append(state)

    def _finish(
        self,
        state: UpdateState,
        severity: Severity,
        message: str,
        **details: object,
    ) -> UpdateResult:
        self._enter(state)
        return UpdateResult(
            state=state,
            severity=severity,
            message=message,
            history=tuple(self._history),
            **details,  # type: ignore[arg-type]
        )

    def _fail(self, error: Exception, **details: object) -> UpdateResult:
        _LOGGER.error("Update failed during %s: %s", self._history[-1].value, error)
        return self._finish(UpdateState.FAILED, Severity.ERROR, str(error), error=error, **details)


def _discard_download(path: Path | None) -> None:
    if path is None:
        return
    with contextlib.suppress(OSError):
        path.unlink()
    with contextlib.suppress(OSError):
        path.parent.rmdir()


__all__ = ["ChangelogCallback", "PrerequisiteRunner", "UpdateOrchestrator"]
