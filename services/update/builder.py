"""Helpers for constructing the update services from an execution context."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from app.context import ExecutionContext
from services.migrations.executor import MigrationExecutor, run_context_migrations
from services.migrations.registry import build_default_registry
from services.update.constants import GITHUB_REPO, LOCAL_RELEASE_ENV, REPOSITORY_ENV
from services.update.providers import GitHubReleaseSource, LocalFolderReleaseSource, ReleaseSource
from services.update.replacer import BinaryReplacer
from services.update.service import ChangelogCallback, UpdateOrchestrator
from services.update.version_check import VersionCheckService


_LOGGER = logging.getLogger(__name__)


def build_release_source() -> ReleaseSource:
    """Return the release source selected by the environment."""

    local_dir = os.environ.get(LOCAL_RELEASE_ENV)
    if local_dir:
        folder = Path(local_dir).expanduser()
        if folder.exists():
            _LOGGER.info("Using local update source at %s", folder)
            return LocalFolderReleaseSource(folder)
        _LOGGER.warning("Configured local update directory does not exist: %s", folder)
    repository = os.environ.get(REPOSITORY_ENV) or GITHUB_REPO
    return GitHubReleaseSource(repository)


def build_migration_executor() -> MigrationExecutor:
    return MigrationExecutor(build_default_registry())


def build_update_orchestrator(
    context: ExecutionContext,
    *,
    source: ReleaseSource | None = None,
    executor: MigrationExecutor | None = None,
    on_changelog: ChangelogCallback | None = None,
) -> UpdateOrchestrator:
    """Construct an :class:`UpdateOrchestrator` wired to ``context``."""

    source = source or build_release_source()
    executor = executor or build_migration_executor()

    def run_prerequisites() -> None:
        run_context_migrations(executor, context)

    return UpdateOrchestrator(
        source,
        current_version=context.current_version,
        binary_path=context.binary_path,
        replacer=BinaryReplacer(),
        prerequisites=run_prerequisites,
        on_changelog=on_changelog,
    )


def build_version_check(context: ExecutionContext, *, source: ReleaseSource | None = None) -> VersionCheckService:
    return VersionCheckService(
        source or build_release_source(),
        current_version=context.current_version,
        cache_dir=context.cache_dir,
    )


__all__ = [
    "build_migration_executor",
    "build_release_source",
    "build_update_orchestrator",
    "build_version_check",
]
