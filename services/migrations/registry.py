"""Statically declared set of configuration migrations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from services.migrations.base import DuplicateMigrationError, Migration, MigrationScope
from services.migrations.global_migrations.git_token_format import GitTokenFormatMigration


_LOGGER = logging.getLogger(__name__)


class MigrationRegistry:
    """Ordered collection of the migrations shipped with the application."""

    def __init__(self, migrations: Iterable[Migration] = ()) -> None:
        self._migrations: dict[int, Migration] = {}
        for migration in migrations:
            self.register(migration)

    def register(self, migration: Migration) -> None:
        existing = self._migrations.get(migration.id)
        if existing is not None:
            raise DuplicateMigrationError(migration.id, existing, migration)
        self._migrations[migration.id] = migration
        _LOGGER.debug("Registered migration %s (%s)", migration.id, migration.scope.value)

    def discover(self, scope: MigrationScope) -> tuple[Migration, ...]:
        """Return the migrations of ``scope`` in ascending id order."""

        return tuple(
            sorted(
                (migration for migration in self._migrations.values() if migration.scope is scope),
                key=lambda migration: migration.id,
            )
        )

    def pending(self, scope: MigrationScope, watermark: int) -> list[Migration]:
        return filter_pending(self.discover(scope), watermark)

    def __len__(self) -> int:
        return len(self._migrations)


def filter_pending(migrations: Sequence[Migration], watermark: int) -> list[Migration]:
    """Return the migrations with an id above ``watermark``, order preserved."""

    return [migration for migration in migrations if migration.id > watermark]


def build_default_registry() -> MigrationRegistry:
    """Return a registry holding every migration shipped with the application."""

    return MigrationRegistry(
        [
            GitTokenFormatMigration(),
        ]
    )


__all__ = ["MigrationRegistry", "build_default_registry", "filter_pending"]
