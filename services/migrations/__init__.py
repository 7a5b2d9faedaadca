"""Public API for the configuration migration package."""

from __future__ import annotations

from services.migrations.base import (
    ConfigValues,
    DuplicateMigrationError,
    Migration,
    MigrationFailure,
    MigrationScope,
)
from services.migrations.executor import MigrationExecutor, migration_targets, run_context_migrations
from services.migrations.registry import MigrationRegistry, build_default_registry, filter_pending

__all__ = [
    "ConfigValues",
    "DuplicateMigrationError",
    "Migration",
    "MigrationExecutor",
    "MigrationFailure",
    "MigrationRegistry",
    "MigrationScope",
    "build_default_registry",
    "filter_pending",
    "migration_targets",
    "run_context_migrations",
]
