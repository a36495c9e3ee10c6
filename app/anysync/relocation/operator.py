"""Relocation operator: the prepare, flush and restore transitions.

Each verb iterates over all configured sync sources and isolates failures
per source. Multi-step transitions roll back to the previous layout when a
later step fails, so a source is never left without an accessible copy.

The composite ``start`` and ``stop`` runs chain the orphan guard, crash
repair and the basic transitions in the order a boot or shutdown hook
needs them.
"""

import errno
import logging
import os
import shutil
import stat
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from anysync.relocation.inspector import InvalidSourceError, inspect_source, read_link
from anysync.relocation.layout import MappedPaths, backup_path_for, is_volatile_path, map_source
from anysync.relocation.mirror import CopyTool, MirrorError
from anysync.relocation.models import (
    LifecycleResult,
    TransitionOutcome,
    TransitionResult,
    Verb,
)
from anysync.relocation.repair import ConsistencyRepairer
from anysync.relocation.scanner import OrphanScanner

if TYPE_CHECKING:
    from anysync.core.config import SyncConfig

# Every principal needs to traverse the volatile root to reach its own segment
_TRAVERSE_ALL = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
_VOLATILE_ROOT_MODE = 0o755


class VolatileRootError(Exception):
    """Raised when the volatile root cannot be created or made traversable."""


def make_owned_dirs(path: Path, mode: int, uid: int, gid: int) -> list[Path]:
    """Create a directory and its missing parents with the given owner.

    Ownership and mode are applied only to directories created here.
    Existing directories along the path are left untouched.

    Args:
        path: Directory to create.
        mode: Permission bits for created directories.
        uid: Owner user id for created directories.
        gid: Owner group id for created directories.

    Returns:
        The directories that were created, outermost first.

    Raises:
        NotADirectoryError: If an existing path component is not a directory.
        OSError: If a directory cannot be created or chowned.
    """
    missing: list[Path] = []
    current = Path(path)
    while not os.path.lexists(current):
        missing.append(current)
        if current.parent == current:
            break
        current = current.parent

    if os.path.lexists(current) and not current.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(current))

    created: list[Path] = []
    for segment in reversed(missing):
        try:
            segment.mkdir(mode=mode)
        except FileExistsError:
            if segment.is_dir():
                continue
            raise
        os.chown(segment, uid, gid)
        # mkdir is filtered by the umask
        segment.chmod(mode)
        created.append(segment)

    return created


class RelocationOperator:
    """Moves sync sources onto volatile storage and back.

    Args:
        volatile_root: Root of the volatile storage area.
        sources: Configured sync sources (absolute paths).
        copy_tool: Mirror tool runner. Defaults to rsync.
        logger: Logger for transition messages. Defaults to the module logger.
    """

    def __init__(
        self,
        volatile_root: Path,
        sources: Iterable[Path],
        *,
        copy_tool: CopyTool | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._volatile_root = Path(volatile_root)
        self._sources = tuple(Path(s) for s in sources)
        self._logger = logger or logging.getLogger(__name__)
        self._copy_tool = copy_tool or CopyTool(logger=self._logger)
        self._repairer = ConsistencyRepairer(
            self._volatile_root, self._sources, logger=self._logger
        )
        self._scanner = OrphanScanner(self._volatile_root, self._sources, logger=self._logger)

    @classmethod
    def from_config(
        cls,
        config: "SyncConfig",
        *,
        logger: logging.Logger | None = None,
    ) -> "RelocationOperator":
        """Create an operator for a loaded configuration."""
        return cls(
            config.volatile_root,
            config.sources,
            copy_tool=CopyTool(config.copy_tool, logger=logger),
            logger=logger,
        )

    @property
    def volatile_root(self) -> Path:
        """Root of the volatile storage area."""
        return self._volatile_root

    @property
    def sources(self) -> tuple[Path, ...]:
        """Configured sync sources."""
        return self._sources

    # =========================================================================
    # prepare
    # =========================================================================

    def prepare(self) -> list[TransitionResult]:
        """Relocate every source onto volatile storage.

        Already prepared sources are left as they are.

        Returns:
            One TransitionResult per source.

        Raises:
            VolatileRootError: If the volatile root cannot be set up. No
                source is processed in that case.
        """
        self._logger.debug("Starting initial sync run...")
        self._ensure_volatile_root()
        return [self._prepare_single(source) for source in self._sources]

    def _ensure_volatile_root(self) -> None:
        """Create the volatile root, or make an existing one traversable."""
        root = self._volatile_root
        try:
            root.mkdir(mode=_VOLATILE_ROOT_MODE)
        except FileExistsError:
            pass
        except OSError as e:
            msg = f"Creation of volatile root '{root}' failed: {e}"
            raise VolatileRootError(msg) from e
        else:
            self._logger.info("Created volatile root %s", root)
            try:
                root.chmod(_VOLATILE_ROOT_MODE)
            except OSError as e:
                msg = f"Changing permissions of volatile root '{root}' failed: {e}"
                raise VolatileRootError(msg) from e
            return

        if not root.is_dir():
            msg = f"Volatile root '{root}' exists but is not a directory"
            raise VolatileRootError(msg)

        try:
            current = stat.S_IMODE(root.stat().st_mode)
            if current & _TRAVERSE_ALL != _TRAVERSE_ALL:
                root.chmod(current | _TRAVERSE_ALL)
                self._logger.info("Made volatile root %s traversable for all users", root)
        except OSError as e:
            msg = f"Changing permissions of volatile root '{root}' failed: {e}"
            raise VolatileRootError(msg) from e

    def _prepare_single(self, source: Path) -> TransitionResult:
        """Relocate one source: rename to backup, link, populate volatile copy."""
        try:
            info = inspect_source(source)
        except InvalidSourceError as e:
            self._logger.warning("prepare: %s ... Skipping path: %s", e.reason, source)
            return self._result(source, Verb.PREPARE, TransitionOutcome.SKIPPED, e.reason)

        paths = map_source(source, self._volatile_root, info.uid, info.gid)

        try:
            make_owned_dirs(paths.volatile, info.mode, info.uid, info.gid)
        except OSError as e:
            self._logger.error(
                "prepare: cannot create volatile path %s: %s ... Skipping path: %s",
                paths.volatile,
                e,
                source,
            )
            return self._result(
                source,
                Verb.PREPARE,
                TransitionOutcome.FAILED,
                f"Cannot create volatile path: {e}",
            )

        target = read_link(source)
        if target == paths.volatile:
            self._logger.debug("prepare: sync path was already initialized: %s", source)
            return self._result(
                source, Verb.PREPARE, TransitionOutcome.UNCHANGED, "Already prepared"
            )

        if target is not None and is_volatile_path(target, self._volatile_root):
            reason = f"Linked to a different volatile path {target}"
            self._logger.error("prepare: %s ... Skipping path: %s", reason, source)
            return self._result(source, Verb.PREPARE, TransitionOutcome.FAILED, reason)

        if os.path.lexists(paths.backup):
            reason = f"Backup path already exists: {paths.backup}"
            self._logger.error("prepare: %s ... Skipping path: %s", reason, source)
            return self._result(source, Verb.PREPARE, TransitionOutcome.FAILED, reason)

        try:
            os.rename(source, paths.backup)
        except OSError as e:
            self._logger.error("prepare: could not rename %s to backup: %s", source, e)
            return self._result(
                source, Verb.PREPARE, TransitionOutcome.FAILED, f"Cannot rename to backup: {e}"
            )

        try:
            os.symlink(paths.volatile, source)
        except OSError as e:
            self._logger.error("prepare: cannot link %s to %s: %s", source, paths.volatile, e)
            return self._rolled_back(paths, f"Cannot create symlink: {e}")

        try:
            self._copy_tool.mirror(paths.backup, paths.volatile)
        except MirrorError as e:
            self._logger.error("prepare: initial copy to volatile failed for %s: %s", source, e)
            return self._rolled_back(paths, str(e))

        self._logger.info("Relocated %s to %s", source, paths.volatile)
        return self._result(source, Verb.PREPARE, TransitionOutcome.APPLIED)

    def _rolled_back(self, paths: MappedPaths, reason: str) -> TransitionResult:
        """Undo a partial prepare and build the failure result."""
        restored = self._rollback_prepare(paths)
        return TransitionResult(
            source=str(paths.source),
            verb=Verb.PREPARE,
            outcome=TransitionOutcome.FAILED,
            message=reason,
            rolled_back=True,
            rollback_failed=not restored,
        )

    def _rollback_prepare(self, paths: MappedPaths) -> bool:
        """Put the backup back onto the source path after a failed prepare.

        Returns:
            True if the source path holds the original directory again.
        """
        try:
            if read_link(paths.source) == paths.volatile:
                paths.source.unlink()
            os.rename(paths.backup, paths.source)
        except OSError as e:
            self._logger.critical(
                "Rollback failed for %s: %s (original content remains at %s)",
                paths.source,
                e,
                paths.backup,
            )
            return False

        self._logger.warning("Rolled back %s to its original directory", paths.source)
        return True

    # =========================================================================
    # flush
    # =========================================================================

    def flush(self) -> list[TransitionResult]:
        """Mirror every relocated source's volatile copy onto its backup.

        Returns:
            One TransitionResult per source.
        """
        self._logger.debug("Starting sync...")
        return [self._flush_single(source) for source in self._sources]

    def _flush_single(self, source: Path) -> TransitionResult:
        """Refresh the backup of one relocated source."""
        try:
            info = inspect_source(source)
        except InvalidSourceError as e:
            self._logger.warning("flush: %s ... Skipping path: %s", e.reason, source)
            return self._result(source, Verb.FLUSH, TransitionOutcome.SKIPPED, e.reason)

        paths = map_source(source, self._volatile_root, info.uid, info.gid)

        if not paths.volatile.is_dir():
            reason = f"Volatile path did not exist: {paths.volatile}"
            self._logger.warning("flush: %s ... Skipping path: %s", reason, source)
            return self._result(source, Verb.FLUSH, TransitionOutcome.SKIPPED, reason)

        if read_link(source) != paths.volatile:
            reason = "Source is not linked to its volatile path"
            self._logger.warning("flush: %s ... Skipping path: %s", reason, source)
            return self._result(source, Verb.FLUSH, TransitionOutcome.SKIPPED, reason)

        if not paths.backup.is_dir():
            reason = f"Backup path did not exist: {paths.backup}"
            self._logger.warning("flush: %s ... Skipping path: %s", reason, source)
            return self._result(source, Verb.FLUSH, TransitionOutcome.SKIPPED, reason)

        try:
            self._copy_tool.mirror(paths.volatile, paths.backup)
        except MirrorError as e:
            self._logger.error("flush: sync to backup failed for %s: %s", source, e)
            return self._result(source, Verb.FLUSH, TransitionOutcome.FAILED, str(e))

        self._logger.debug("flush: synced dir '%s'", source)
        return self._result(source, Verb.FLUSH, TransitionOutcome.APPLIED)

    # =========================================================================
    # restore
    # =========================================================================

    def restore(self, *, reclaim_volatile: bool = False) -> list[TransitionResult]:
        """Undo the relocation of every source from its backup.

        Args:
            reclaim_volatile: Also delete the volatile copy and prune empty
                owner directories below the volatile root.

        Returns:
            One TransitionResult per source.
        """
        self._logger.debug("Starting unsync...")
        return [
            self._restore_single(source, reclaim_volatile=reclaim_volatile)
            for source in self._sources
        ]

    def _restore_single(self, source: Path, *, reclaim_volatile: bool) -> TransitionResult:
        """Replace the symlink of one source with its backup directory."""
        # The backup is the renamed original directory and carries its owner
        backup = backup_path_for(source)
        try:
            info = inspect_source(backup)
        except InvalidSourceError as e:
            reason = f"Backup path unusable: {e.reason}"
            self._logger.warning(
                "restore: %s (%s) ... Skipping path: %s", reason, backup, source
            )
            return self._result(source, Verb.RESTORE, TransitionOutcome.SKIPPED, reason)

        paths = map_source(source, self._volatile_root, info.uid, info.gid)

        if read_link(source) != paths.volatile:
            reason = "Source is not linked to its volatile path"
            self._logger.warning("restore: %s ... Skipping path: %s", reason, source)
            return self._result(source, Verb.RESTORE, TransitionOutcome.SKIPPED, reason)

        try:
            source.unlink()
        except OSError as e:
            self._logger.error("restore: cannot remove symlink %s: %s", source, e)
            return self._result(
                source, Verb.RESTORE, TransitionOutcome.FAILED, f"Cannot remove symlink: {e}"
            )

        try:
            os.rename(paths.backup, source)
        except OSError as e:
            self._logger.error("restore: cannot move backup %s back: %s", paths.backup, e)
            relinked = self._relink(paths)
            return TransitionResult(
                source=str(source),
                verb=Verb.RESTORE,
                outcome=TransitionOutcome.FAILED,
                message=f"Cannot restore backup: {e}",
                rolled_back=True,
                rollback_failed=not relinked,
            )

        message = None
        if reclaim_volatile:
            message = self._reclaim(paths.volatile)

        self._logger.info("Restored %s from %s", source, paths.backup)
        return self._result(source, Verb.RESTORE, TransitionOutcome.APPLIED, message)

    def _relink(self, paths: MappedPaths) -> bool:
        """Recreate the source symlink after a failed restore."""
        try:
            os.symlink(paths.volatile, paths.source)
        except OSError as e:
            self._logger.critical(
                "Cannot relink %s to %s: %s (backup remains at %s)",
                paths.source,
                paths.volatile,
                e,
                paths.backup,
            )
            return False
        return True

    def _reclaim(self, volatile: Path) -> str | None:
        """Delete a volatile copy and its empty ancestors below the volatile root.

        Returns:
            A warning message if the volatile copy could not be removed.
        """
        try:
            shutil.rmtree(volatile)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.warning("restore: cannot remove volatile path %s: %s", volatile, e)
            return f"Volatile path not reclaimed: {e}"

        parent = volatile.parent
        while parent != self._volatile_root and parent.is_relative_to(self._volatile_root):
            try:
                parent.rmdir()
            except FileNotFoundError:
                pass
            except OSError:
                # Not empty: shared with another relocated source
                break
            parent = parent.parent

        return None

    # =========================================================================
    # check / start / stop
    # =========================================================================

    def check(self) -> list[TransitionResult]:
        """Repair sources whose volatile copy was lost (see ConsistencyRepairer)."""
        return self._repairer.check()

    def start(self) -> LifecycleResult:
        """Boot-time run: orphan guard, crash repair, then prepare.

        Refuses to relocate anything while orphans exist in volatile storage.

        Raises:
            VolatileRootError: If prepare cannot set up the volatile root.
        """
        orphans = self._scanner.scan()
        if not orphans.clean:
            self._logger.error(
                "Found %d orphaned path(s) in volatile storage; refusing to start",
                len(orphans.orphans),
            )
            return LifecycleResult(orphans=orphans, aborted=True)

        repaired = self._repairer.check()
        prepared = self.prepare()
        return LifecycleResult(orphans=orphans, transitions=(*repaired, *prepared))

    def stop(self) -> LifecycleResult:
        """Shutdown run: flush, restore with reclaim, then report orphans.

        Orphans left afterwards hold data that the next volatile storage
        reset destroys; they make the result unsuccessful.

        A source whose flush failed is not restored. Its volatile copy holds
        the only current data, so it stays relocated and fails the run.
        """
        flushed = self.flush()
        unflushed = tuple(r.source for r in flushed if r.failed)

        restored: list[TransitionResult] = []
        for source in self._sources:
            if str(source) in unflushed:
                reason = "Flush failed; kept on volatile storage"
                self._logger.error("restore: %s ... Skipping path: %s", reason, source)
                restored.append(
                    self._result(source, Verb.RESTORE, TransitionOutcome.SKIPPED, reason)
                )
                continue
            restored.append(self._restore_single(source, reclaim_volatile=True))

        orphans = self._scanner.scan()
        if not orphans.clean:
            self._logger.error(
                "%d orphaned path(s) remain in volatile storage after stop",
                len(orphans.orphans),
            )
        return LifecycleResult(
            orphans=orphans,
            transitions=(*flushed, *restored),
            unflushed=unflushed,
        )

    @staticmethod
    def _result(
        source: Path,
        verb: Verb,
        outcome: TransitionOutcome,
        message: str | None = None,
    ) -> TransitionResult:
        return TransitionResult(source=str(source), verb=verb, outcome=outcome, message=message)
