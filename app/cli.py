"""Command line entry point for the self-update and migration commands."""

from __future__ import annotations

import argparse
import logging
import sys

from app.context import ExecutionContext
from services.migrations.base import MigrationFailure
from services.migrations.executor import MigrationExecutor, migration_targets, run_context_migrations
from services.update.builder import build_migration_executor, build_update_orchestrator, build_version_check
from services.update.changelog import ChangelogDiff, format_changelog
from services.update.models import ReleaseDescriptor, Severity, UpdateResult
from services.update.providers import ReleaseSource
from services.update.version_check import clear_version_check_cache, update_notice
from shared.logging_config import ensure_app_logging


_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stud", description="Keep stud and its configuration up to date.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print diagnostic output to stderr.",
    )
    commands = parser.add_subparsers(dest="command", metavar="<command>")
    commands.required = True

    update = commands.add_parser("update", aliases=["up"], help="Update stud to the latest release.")
    update.add_argument(
        "-i",
        "--info",
        action="store_true",
        help="Only show the changelog of the latest release.",
    )
    update.set_defaults(handler=_handle_update, runs_startup_migrations=True, shows_update_notice=False)

    migrate = commands.add_parser("migrate", help="Apply pending configuration migrations.")
    migrate.add_argument(
        "--status",
        action="store_true",
        help="List pending migrations without applying them.",
    )
    migrate.set_defaults(handler=_handle_migrate, runs_startup_migrations=False, shows_update_notice=True)

    cache_clear = commands.add_parser(
        "cache:clear", aliases=["cc"], help="Clear the update check cache."
    )
    cache_clear.set_defaults(handler=_handle_cache_clear, runs_startup_migrations=True, shows_update_notice=False)
    return parser


def main(
    argv: list[str] | None = None,
    *,
    context: ExecutionContext | None = None,
    source: ReleaseSource | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    log_path = ensure_app_logging(verbose=args.verbose)
    _LOGGER.debug("Logging to %s", log_path)

    context = context or ExecutionContext.from_environment(verbose=args.verbose)
    executor = build_migration_executor()

    preview_only = getattr(args, "info", False)
    if args.runs_startup_migrations and not preview_only:
        _run_startup_migrations(executor, context)

    exit_code = args.handler(args, context, executor, source)

    if args.shows_update_notice:
        latest = build_version_check(context, source=source).check()
        if latest is not None:
            print(update_notice(latest))
    return exit_code


def _run_startup_migrations(executor: MigrationExecutor, context: ExecutionContext) -> None:
    try:
        run_context_migrations(executor, context)
    except MigrationFailure as exc:
        _LOGGER.warning("Startup migrations stopped: %s", exc)


def _handle_update(
    args: argparse.Namespace,
    context: ExecutionContext,
    executor: MigrationExecutor,
    source: ReleaseSource | None,
) -> int:
    orchestrator = build_update_orchestrator(
        context,
        source=source,
        executor=executor,
        on_changelog=_print_changelog,
    )
    result = orchestrator.preview() if args.info else orchestrator.run()
    _print_result(result)
    return result.exit_code


def _handle_migrate(
    args: argparse.Namespace,
    context: ExecutionContext,
    executor: MigrationExecutor,
    source: ReleaseSource | None,
) -> int:
    if args.status:
        for scope, store in migration_targets(context):
            if not store.exists():
                print(f"No {scope.value} configuration at {store.path}.")
                continue
            state = store.load()
            pending = executor.pending(scope, state)
            if not pending:
                print(f"No pending {scope.value} migrations (version {state.migration_version}).")
                continue
            print(f"Pending {scope.value} migrations:")
            for migration in pending:
                print(f"  {migration.id}  {migration.description}")
        return 0

    try:
        run_context_migrations(executor, context)
    except MigrationFailure as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print("Configuration migrations are up to date.")
    return 0


def _handle_cache_clear(
    args: argparse.Namespace,
    context: ExecutionContext,
    executor: MigrationExecutor,
    source: ReleaseSource | None,
) -> int:
    if clear_version_check_cache(context.cache_dir):
        print("Update check cache cleared.")
    else:
        print("Update check cache is already empty.")
    return 0


def _print_changelog(release: ReleaseDescriptor, changelog: ChangelogDiff) -> None:
    lines = format_changelog(changelog)
    if not lines:
        return
    print(f"Changes in {release.tag}:")
    for line in lines:
        print(line)


def _print_result(result: UpdateResult) -> None:
    if result.severity is Severity.ERROR:
        print(result.message, file=sys.stderr)
        return
    if result.severity is Severity.WARNING:
        print(f"Warning: {result.message}")
        return
    print(result.message)


if __name__ == "__main__":
    raise SystemExit(main())
