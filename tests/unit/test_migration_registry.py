from __future__ import annotations

import pytest

from services.migrations import (
    DuplicateMigrationError,
    MigrationRegistry,
    MigrationScope,
    build_default_registry,
    filter_pending,
)
from services.migrations.global_migrations.git_token_format import GitTokenFormatMigration
from tests.unit.update_service_test_utils import RecordingMigration


def _ids(migrations) -> list[int]:
    return [migration.id for migration in migrations]


def test_discover_sorts_by_id_within_scope() -> None:
    registry = MigrationRegistry(
        [
            RecordingMigration(202502010000001),
            RecordingMigration(202501150000001),
            RecordingMigration(202501200000001, scope=MigrationScope.PROJECT),
            RecordingMigration(202501150000002),
        ]
    )

    assert _ids(registry.discover(MigrationScope.GLOBAL)) == [
        202501150000001,
        202501150000002,
        202502010000001,
    ]
    assert _ids(registry.discover(MigrationScope.PROJECT)) == [202501200000001]


def test_duplicate_ids_are_rejected_across_scopes() -> None:
    registry = MigrationRegistry([RecordingMigration(202501150000001)])

    with pytest.raises(DuplicateMigrationError) as excinfo:
        registry.register(RecordingMigration(202501150000001, scope=MigrationScope.PROJECT))

    assert excinfo.value.migration_id == 202501150000001
    assert len(registry) == 1


@pytest.mark.parametrize(
    "watermark, expected",
    [
        (0, [10, 20, 30]),
        (10, [20, 30]),
        (15, [20, 30]),
        (30, []),
        (99, []),
    ],
)
def test_filter_pending_returns_ids_above_watermark(watermark: int, expected: list[int]) -> None:
    migrations = [RecordingMigration(10), RecordingMigration(20), RecordingMigration(30)]

    assert _ids(filter_pending(migrations, watermark)) == expected


def test_filter_pending_preserves_input_order() -> None:
    migrations = [RecordingMigration(30), RecordingMigration(10), RecordingMigration(20)]

    assert _ids(filter_pending(migrations, 5)) == [30, 10, 20]


def test_default_registry_ships_git_token_migration() -> None:
    registry = build_default_registry()

    global_migrations = registry.discover(MigrationScope.GLOBAL)
    assert [type(migration) for migration in global_migrations] == [GitTokenFormatMigration]
    assert registry.discover(MigrationScope.PROJECT) == ()
