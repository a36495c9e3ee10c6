"""Crash detection and repair for relocated sync sources.

When a machine reboots after ``prepare`` but before ``restore`` ran, the
volatile storage is cleared while the sources still point into it. Each
such source is left as a dangling symlink next to an intact backup. The
repairer recognizes exactly that signature and puts the backup back in
place. Anything else is left untouched, so it is safe to run on every
start.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from anysync.relocation.inspector import path_exists, read_link
from anysync.relocation.layout import backup_path_for, decode_volatile_path
from anysync.relocation.models import TransitionOutcome, TransitionResult, Verb


class ConsistencyRepairer:
    """Restores sources whose volatile copy disappeared.

    Args:
        volatile_root: Root of the volatile storage area.
        sources: Configured sync sources.
        logger: Logger for repair messages. Defaults to the module logger.
    """

    def __init__(
        self,
        volatile_root: Path,
        sources: Iterable[Path],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._volatile_root = Path(volatile_root)
        self._sources = tuple(Path(s) for s in sources)
        self._logger = logger or logging.getLogger(__name__)

    def check(self) -> list[TransitionResult]:
        """Check every configured source and repair crash signatures.

        Returns:
            One TransitionResult per source. APPLIED means the source was
            restored from its backup.
        """
        self._logger.debug("Checking for inconsistencies...")
        return [self._check_single(source) for source in self._sources]

    def _check_single(self, source: Path) -> TransitionResult:
        """Detect and repair the crash signature on one source.

        The signature is: the source is a symlink, its target is recognized
        as the volatile path of this very source, the target is gone, and a
        backup directory exists.
        """
        target = read_link(source)
        if target is None:
            return self._result(source, TransitionOutcome.UNCHANGED)

        location = decode_volatile_path(target, self._volatile_root)
        if location is None or location.source != source:
            return self._result(source, TransitionOutcome.UNCHANGED)

        if path_exists(target):
            return self._result(source, TransitionOutcome.UNCHANGED)

        backup = backup_path_for(source)
        if not backup.is_dir():
            self._logger.error(
                "Source %s links to missing volatile path %s and has no backup at %s",
                source,
                target,
                backup,
            )
            return self._result(
                source,
                TransitionOutcome.SKIPPED,
                f"Volatile path {target} is gone and no backup exists",
            )

        try:
            source.unlink()
        except OSError as e:
            self._logger.error("Cannot remove dangling symlink %s: %s", source, e)
            return self._result(source, TransitionOutcome.FAILED, f"Cannot remove symlink: {e}")

        try:
            os.rename(backup, source)
        except OSError as e:
            self._logger.critical(
                "Removed dangling symlink %s but cannot move backup %s back: %s",
                source,
                backup,
                e,
            )
            return self._result(source, TransitionOutcome.FAILED, f"Cannot restore backup: {e}")

        self._logger.info("Restored %s from backup after lost volatile copy", source)
        return self._result(source, TransitionOutcome.APPLIED, "Restored from backup")

    @staticmethod
    def _result(
        source: Path,
        outcome: TransitionOutcome,
        message: str | None = None,
    ) -> TransitionResult:
        return TransitionResult(
            source=str(source),
            verb=Verb.CHECK,
            outcome=outcome,
            message=message,
        )
