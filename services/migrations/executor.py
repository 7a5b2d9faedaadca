"""Apply pending configuration migrations and advance the watermark."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from app.config import ConfigState, ConfigStore
from app.context import ExecutionContext
from services.migrations.base import Migration, MigrationFailure, MigrationScope
from services.migrations.registry import MigrationRegistry


_LOGGER = logging.getLogger(__name__)

PersistCallback = Callable[[ConfigState], None]


class MigrationExecutor:
    """Run the pending migrations of one scope against a configuration state."""

    def __init__(self, registry: MigrationRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> MigrationRegistry:
        return self._registry

    def pending(self, scope: MigrationScope, state: ConfigState) -> list[Migration]:
        return self._registry.pending(scope, state.migration_version)

    def run(
        self,
        scope: MigrationScope,
        state: ConfigState,
        *,
        persist: Optional[PersistCallback] = None,
    ) -> ConfigState:
        """Apply pending migrations to ``state`` in ascending id order.

        ``persist`` is called after every successful migration so that an
        interrupted run resumes from the last applied id.  A prerequisite
        migration that fails, or whose result cannot be persisted, raises
        :class:`MigrationFailure`; any other failure is logged and skipped.
        """

        pending = self.pending(scope, state)
        if not pending:
            _LOGGER.debug("No pending %s migrations (watermark %s)", scope.value, state.migration_version)
            return state

        for migration in pending:
            _LOGGER.info("Running migration %s: %s", migration.id, migration.description)
            try:
                migrated = migration.up(dict(state.values))
            except Exception as exc:
                self._handle_failure(migration, scope, exc)
                continue

            state.values = dict(migrated)
            state.advance_to(migration.id)
            if persist is not None:
                try:
                    persist(state)
                except OSError as exc:
                    self._handle_failure(migration, scope, exc)
                    continue
            _LOGGER.info("Migration version updated to %s", migration.id)
        return state

    def _handle_failure(self, migration: Migration, scope: MigrationScope, exc: Exception) -> None:
        if migration.prerequisite:
            _LOGGER.error("Prerequisite migration %s failed: %s", migration.id, exc)
            raise MigrationFailure(migration.id, scope, is_prerequisite=True, reason=str(exc)) from exc
        _LOGGER.warning("Migration %s failed: %s", migration.id, exc)


def migration_targets(context: ExecutionContext) -> list[tuple[MigrationScope, ConfigStore]]:
    """Return the config stores that migrations apply to for ``context``."""

    targets = [(MigrationScope.GLOBAL, context.global_store())]
    project_store = context.project_store()
    if project_store is not None:
        targets.append((MigrationScope.PROJECT, project_store))
    return targets


def run_context_migrations(executor: MigrationExecutor, context: ExecutionContext) -> None:
    """Migrate the global config and, inside a repository, the project config.

    Config files that do not exist yet are left alone.
    """

    for scope, store in migration_targets(context):
        if not store.exists():
            _LOGGER.debug("Skipping %s migrations; %s does not exist", scope.value, store.path)
            continue
        executor.run(scope, store.load(), persist=store.save)


__all__ = ["MigrationExecutor", "PersistCallback", "migration_targets", "run_context_migrations"]
