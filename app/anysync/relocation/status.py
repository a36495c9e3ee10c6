"""Read-only status reporting for configured sync sources."""

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from anysync.relocation.inspector import (
    InvalidSourceError,
    directory_size,
    inspect_source,
    read_link,
)
from anysync.relocation.layout import backup_path_for, decode_volatile_path, encode_volatile_path
from anysync.relocation.models import (
    SourceState,
    SourceStatus,
    StatusReport,
    VolatileCapacity,
)
from anysync.relocation.scanner import OrphanScanner


class StatusReporter:
    """Summarizes mapping state, volatile usage and orphans.

    Never modifies the filesystem.

    Args:
        volatile_root: Root of the volatile storage area.
        sources: Configured sync sources.
        scanner: Orphan scanner to include findings from.
        logger: Logger for diagnostics. Defaults to the module logger.
    """

    def __init__(
        self,
        volatile_root: Path,
        sources: Iterable[Path],
        *,
        scanner: OrphanScanner | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._volatile_root = Path(volatile_root)
        self._sources = tuple(Path(s) for s in sources)
        self._logger = logger or logging.getLogger(__name__)
        self._scanner = scanner or OrphanScanner(
            self._volatile_root, self._sources, logger=self._logger
        )

    def report(self) -> StatusReport:
        """Build the status report for all sources."""
        return StatusReport(
            volatile_root=str(self._volatile_root),
            sources=tuple(self.source_status(source) for source in self._sources),
            orphans=self._scanner.scan(),
            capacity=self.capacity(),
        )

    def source_status(self, source: Path) -> SourceStatus:
        """Derive the state of one source from the filesystem."""
        source = Path(source)
        backup_exists = backup_path_for(source).is_dir()
        target = read_link(source)

        if target is None:
            state = SourceState.RESIDENT if source.is_dir() else SourceState.MISSING
            return SourceStatus(
                source=str(source),
                state=state,
                relocated=False,
                volatile_path=None,
                volatile_size_bytes=None,
                backup_exists=backup_exists,
            )

        if decode_volatile_path(target, self._volatile_root) is None:
            return SourceStatus(
                source=str(source),
                state=SourceState.FOREIGN,
                relocated=False,
                volatile_path=str(target),
                volatile_size_bytes=None,
                backup_exists=backup_exists,
            )

        relocated = self._links_to_expected(source, target)
        state = SourceState.RELOCATED if relocated and backup_exists else SourceState.INCONSISTENT
        return SourceStatus(
            source=str(source),
            state=state,
            relocated=relocated,
            volatile_path=str(target),
            volatile_size_bytes=directory_size(target) if relocated else None,
            backup_exists=backup_exists,
        )

    def _links_to_expected(self, source: Path, target: Path) -> bool:
        """Check the link target against the volatile path derived from the owner."""
        try:
            info = inspect_source(source)
        except InvalidSourceError as e:
            self._logger.debug("status: %s: %s", e.reason, source)
            return False
        expected = encode_volatile_path(source, self._volatile_root, info.uid, info.gid)
        return target == expected

    def capacity(self) -> VolatileCapacity | None:
        """Capacity of the filesystem holding the volatile root."""
        try:
            usage = shutil.disk_usage(self._volatile_root)
        except OSError as e:
            self._logger.debug("Cannot read capacity of %s: %s", self._volatile_root, e)
            return None
        return VolatileCapacity(total=usage.total, used=usage.used, free=usage.free)
