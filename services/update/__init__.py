"""Public API for the update service package."""

from __future__ import annotations

from services.update.builder import (
    build_migration_executor,
    build_release_source,
    build_update_orchestrator,
    build_version_check,
)
from services.update.changelog import ChangelogDiff, ChangelogEntry, diff_changelog, format_changelog
from services.update.constants import GITHUB_REPO, LOCAL_RELEASE_ENV, REPOSITORY_ENV
from services.update.models import (
    ArtifactNotFound,
    BackupFailure,
    ChecksumMismatch,
    NetworkFailure,
    NotWritable,
    ReleaseAsset,
    ReleaseDescriptor,
    Severity,
    SwapFailure,
    UpdateError,
    UpdateResult,
    UpdateState,
)
from services.update.providers import GitHubReleaseSource, LocalFolderReleaseSource, ReleaseSource
from services.update.replacer import BinaryReplacer, SwapState, SwapTransaction
from services.update.service import UpdateOrchestrator
from services.update.version_check import VersionCheckService, clear_version_check_cache

__all__ = [
    "GITHUB_REPO",
    "LOCAL_RELEASE_ENV",
    "REPOSITORY_ENV",
    "ArtifactNotFound",
    "BackupFailure",
    "BinaryReplacer",
    "ChangelogDiff",
    "ChangelogEntry",
    "ChecksumMismatch",
    "GitHubReleaseSource",
    "LocalFolderReleaseSource",
    "NetworkFailure",
    "NotWritable",
    "ReleaseAsset",
    "ReleaseDescriptor",
    "ReleaseSource",
    "Severity",
    "SwapFailure",
    "SwapState",
    "SwapTransaction",
    "UpdateError",
    "UpdateOrchestrator",
    "UpdateResult",
    "UpdateState",
    "VersionCheckService",
    "build_migration_executor",
    "build_release_source",
    "build_update_orchestrator",
    "build_version_check",
    "clear_version_check_cache",
    "diff_changelog",
    "format_changelog",
]
