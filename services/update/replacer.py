"""Two-phase replacement of the installed executable."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from services.update.constants import BACKUP_SUFFIX, EXECUTABLE_MODE
from services.update.models import BackupFailure, NotWritable, SwapFailure


_LOGGER = logging.getLogger(__name__)


class SwapState(str, Enum):
    PENDING = "pending"
    BACKED_UP = "backed-up"
    SWAPPED = "swapped"
    ROLLED_BACK = "rolled-back"
    FAILED = "failed"


@dataclass
class SwapTransaction:
    """Progress of one executable replacement."""

    source: Path
    target: Path
    backup: Path
    state: SwapState = SwapState.PENDING


def backup_path_for(target: Path, current_version: str) -> Path:
    """Return the versioned backup location for ``target``."""

    return target.with_name(f"{target.name}-{current_version}{BACKUP_SUFFIX}")


class BinaryReplacer:
    """Swap a downloaded artifact into place while keeping a backup.

    The installed file is first renamed to its backup path; only then is the
    new artifact moved over the original location.  A failure while
    activating restores the backup.  Backups are never removed here.
    """

    def swap(self, source: Path, target: Path, current_version: str) -> SwapTransaction:
        transaction = SwapTransaction(
            source=Path(source),
            target=Path(target),
            backup=backup_path_for(Path(target), current_version),
        )
        self._ensure_writable(transaction)

        try:
            self._backup(transaction)
        except OSError as exc:
            transaction.state = SwapState.FAILED
            _LOGGER.error("Failed to back up %s: %s", transaction.target, exc)
            self._discard_source(transaction)
            raise BackupFailure(
                transaction.target, transaction.backup, str(exc), transaction=transaction
            ) from exc
        transaction.state = SwapState.BACKED_UP
        _LOGGER.info("Backed up %s to %s", transaction.target, transaction.backup)

        try:
            self._activate(transaction)
        except OSError as exc:
            self._rollback(transaction, exc)
        else:
            transaction.state = SwapState.SWAPPED
            _LOGGER.info("Activated new executable at %s", transaction.target)
        return transaction

    def _ensure_writable(self, transaction: SwapTransaction) -> None:
        target = transaction.target
        if os.access(target, os.W_OK) and os.access(target.parent, os.W_OK):
            return
        _LOGGER.error("Executable %s is not writable", target)
        self._discard_source(transaction)
        raise NotWritable(target)

    def _backup(self, transaction: SwapTransaction) -> None:
        os.rename(transaction.target, transaction.backup)

    def _activate(self, transaction: SwapTransaction) -> None:
        shutil.move(str(transaction.source), str(transaction.target))
        os.chmod(transaction.target, EXECUTABLE_MODE)

    def _restore(self, transaction: SwapTransaction) -> None:
        os.replace(transaction.backup, transaction.target)

    def _rollback(self, transaction: SwapTransaction, error: OSError) -> None:
        _LOGGER.warning("Activation of %s failed (%s); restoring backup", transaction.target, error)
        try:
            self._restore(transaction)
        except OSError as rollback_exc:
            transaction.state = SwapState.FAILED
            _LOGGER.error(
                "Rollback failed; the previous executable remains at %s: %s",
                transaction.backup,
                rollback_exc,
            )
            raise SwapFailure(
                transaction.backup,
                reason=str(error),
                rollback_succeeded=False,
                rollback_error=str(rollback_exc),
                transaction=transaction,
            ) from error
        transaction.state = SwapState.ROLLED_BACK
        self._discard_source(transaction)
        raise SwapFailure(
            transaction.backup, reason=str(error), rollback_succeeded=True, transaction=transaction
        ) from error

    def _discard_source(self, transaction: SwapTransaction) -> None:
        try:
            transaction.source.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            _LOGGER.debug("Unable to remove temporary artifact %s: %s", transaction.source, exc)


__all__ = ["BinaryReplacer", "SwapState", "SwapTransaction", "backup_path_for"]
