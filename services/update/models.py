"""Data models and error types used by the update service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING, Sequence, Tuple

from services.update.changelog import ChangelogDiff

if TYPE_CHECKING:
    from services.update.replacer import SwapTransaction


@dataclass(frozen=True)
class ReleaseAsset:
    """One downloadable file attached to a release."""

    id: int | str
    name: str
    digest: str | None = None


@dataclass(frozen=True)
class ReleaseDescriptor:
    """Metadata describing a published version and its artifacts."""

    tag: str
    assets: Tuple[ReleaseAsset, ...] = ()

    @property
    def version(self) -> str:
        return self.tag.strip().lstrip("vV")

    @property
    def asset_names(self) -> list[str]:
        return [asset.name for asset in self.assets]


class UpdateError(RuntimeError):
    """Base class for failures raised while updating the tool."""


class NetworkFailure(UpdateError):
    """The release source could not be reached or answered with an error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == HTTPStatus.NOT_FOUND


class ArtifactNotFound(UpdateError):
    """No release asset follows the artifact naming convention."""

    def __init__(self, available_names: Sequence[str]) -> None:
        self.available_names = tuple(available_names)
        listing = ", ".join(self.available_names) if self.available_names else "(none)"
        super().__init__(f"Could not find the executable asset in the release. Release assets: {listing}")


class ChecksumMismatch(UpdateError):
    """The downloaded artifact does not match the published digest."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Artifact hash mismatch: expected {expected} but received {actual}")


class NotWritable(UpdateError):
    """The installed executable cannot be replaced by this process."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Update failed: {path} is not writable. Re-run with elevated privileges.")


class BackupFailure(UpdateError):
    """Renaming the installed executable to its backup path failed."""

    def __init__(
        self,
        target: Path,
        backup: Path,
        reason: str,
        *,
        transaction: SwapTransaction | None = None,
    ) -> None:
        self.target = target
        self.backup = backup
        self.transaction = transaction
        super().__init__(f"Failed to create backup of current version at {backup}: {reason}")


class SwapFailure(UpdateError):
    """Activating the new executable failed after the backup was taken."""

    def __init__(
        self,
        backup: Path,
        *,
        reason: str,
        rollback_succeeded: bool,
        rollback_error: str | None = None,
        transaction: SwapTransaction | None = None,
    ) -> None:
        self.backup = backup
        self.transaction = transaction
        self.reason = reason
        self.rollback_succeeded = rollback_succeeded
        self.rollback_error = rollback_error
        if rollback_succeeded:
            message = f"Update failed and was rolled back. Error: {reason}"
        else:
            message = (
                "Update failed and rollback also failed! "
                f"Original error: {reason}. Rollback error: {rollback_error}. "
                f"Please manually restore from: {backup}"
            )
        super().__init__(message)


class UpdateState(str, Enum):
    """States visited by the update orchestrator."""

    IDLE = "idle"
    RESOLVING_RELEASE = "resolving-release"
    COMPARING_VERSIONS = "comparing-versions"
    UP_TO_DATE = "up-to-date"
    NO_RELEASES = "no-releases"
    RUNNING_PREREQUISITE_MIGRATIONS = "running-prerequisite-migrations"
    FETCHING_CHANGELOG = "fetching-changelog"
    RESOLVING_ARTIFACT = "resolving-artifact"
    DOWNLOADING = "downloading"
    SWAPPING = "swapping"
    DONE = "done"
    FAILED = "failed"


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class UpdateResult:
    """Terminal outcome of one update or preview invocation."""

    state: UpdateState
    severity: Severity
    message: str
    release: ReleaseDescriptor | None = None
    changelog: ChangelogDiff | None = None
    backup_path: Path | None = None
    error: Exception | None = None
    history: Tuple[UpdateState, ...] = field(default_factory=tuple)

    @property
    def exit_code(self) -> int:
        return 1 if self.severity is Severity.ERROR else 0
