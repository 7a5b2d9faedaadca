"""Base types shared by configuration migrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict


ConfigValues = Dict[str, Any]


class MigrationScope(str, Enum):
    """Which configuration file a migration applies to."""

    GLOBAL = "global"
    PROJECT = "project"


class Migration(ABC):
    """One versioned transformation of a configuration mapping.

    Subclasses set ``id``, ``description`` and ``scope`` as class attributes.
    ``id`` values are sortable integers (``YYYYMMDDhhmmss`` plus a sequence
    number) and order every migration of the application.
    """

    id: int
    description: str
    scope: MigrationScope
    prerequisite: bool = False

    @abstractmethod
    def up(self, config: ConfigValues) -> ConfigValues:
        """Return the migrated configuration."""

    def down(self, config: ConfigValues) -> ConfigValues:
        raise NotImplementedError(f"Migration {self.id} cannot be reverted")

    @property
    def reversible(self) -> bool:
        return type(self).down is not Migration.down

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, scope={self.scope.value})"


class DuplicateMigrationError(ValueError):
    """Two migrations were registered with the same id."""

    def __init__(self, migration_id: int, existing: Migration, duplicate: Migration) -> None:
        self.migration_id = migration_id
        self.existing = existing
        self.duplicate = duplicate
        super().__init__(
            f"Migration id {migration_id} is used by both {type(existing).__name__} "
            f"and {type(duplicate).__name__}"
        )


class MigrationFailure(RuntimeError):
    """A migration raised while being applied."""

    def __init__(
        self,
        migration_id: int,
        scope: MigrationScope,
        *,
        is_prerequisite: bool,
        reason: str = "",
    ) -> None:
        self.migration_id = migration_id
        self.scope = scope
        self.is_prerequisite = is_prerequisite
        kind = "Prerequisite migration" if is_prerequisite else "Migration"
        message = f"{kind} {migration_id} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "ConfigValues",
    "DuplicateMigrationError",
    "Migration",
    "MigrationFailure",
    "MigrationScope",
]
