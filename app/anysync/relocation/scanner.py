"""Orphan scanner for the volatile storage area.

Walks the owner segments below the volatile root and reports directories
whose implied source path no longer corresponds to any configured sync
source. Data in such directories is lost on the next volatile storage
reset, so it is reported but never deleted.
"""

import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path

from anysync.relocation.inspector import path_exists, read_link
from anysync.relocation.layout import (
    backup_path_for,
    decode_volatile_path,
    is_volatile_path,
    parse_owner_segment,
)
from anysync.relocation.models import Orphan, OrphanReport


class _Relation(Enum):
    """How an implied source path relates to the configured sources."""

    MANAGED = "managed"  # equal to or below a configured source
    ANCESTOR = "ancestor"  # above at least one configured source
    UNRELATED = "unrelated"


class OrphanScanner:
    """Finds relocated directories left behind by unconfigured sources.

    Args:
        volatile_root: Root of the volatile storage area.
        sources: Configured sync sources.
        logger: Logger for scan messages. Defaults to the module logger.
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

    def scan(self) -> OrphanReport:
        """Scan the volatile root for orphaned directories.

        Returns:
            OrphanReport listing every orphan, sorted by volatile path.
            A missing volatile root yields a clean report.
        """
        if not self._volatile_root.is_dir():
            self._logger.debug("Volatile root %s does not exist", self._volatile_root)
            return OrphanReport()

        orphans: list[Orphan] = []
        for owner_dir in self._owner_dirs():
            orphans.extend(self._walk(owner_dir))

        orphans.sort(key=lambda o: o.volatile_path)
        for orphan in orphans:
            if orphan.linked:
                self._logger.warning(
                    "Linked orphan in volatile storage: %s "
                    "(source %s is still linked or backed up)",
                    orphan.volatile_path,
                    orphan.source,
                )
            else:
                self._logger.warning("Orphan in volatile storage: %s", orphan.volatile_path)

        return OrphanReport(orphans=tuple(orphans))

    def _owner_dirs(self) -> list[Path]:
        """List owner segment directories directly below the volatile root."""
        try:
            entries = sorted(self._volatile_root.iterdir())
        except OSError as e:
            self._logger.warning("Cannot list volatile root %s: %s", self._volatile_root, e)
            return []

        return [
            entry
            for entry in entries
            if entry.is_dir()
            and not entry.is_symlink()
            and parse_owner_segment(entry.name) is not None
        ]

    def _walk(self, owner_dir: Path) -> Iterator[Orphan]:
        """Walk one owner segment and yield the topmost orphaned directories.

        Directories equal to a configured source are not descended into,
        since everything below them is managed. Orphans are not descended
        into either; their children are implied.
        """
        stack = [owner_dir]
        while stack:
            current = stack.pop()
            try:
                children = sorted(
                    child
                    for child in current.iterdir()
                    if child.is_dir() and not child.is_symlink()
                )
            except OSError as e:
                self._logger.warning("Cannot list volatile directory %s: %s", current, e)
                continue

            for child in children:
                location = decode_volatile_path(child, self._volatile_root)
                if location is None:
                    continue

                relation = self._relation(location.source)
                if relation == _Relation.UNRELATED:
                    yield self._build_orphan(child, location.source, location.uid, location.gid)
                elif relation == _Relation.ANCESTOR:
                    stack.append(child)

    def _relation(self, implied: Path) -> _Relation:
        """Classify an implied source path against the configured sources.

        Uses path component prefixes, so ``/a/bc`` is unrelated to ``/a/b``.
        """
        relation = _Relation.UNRELATED
        for source in self._sources:
            if implied == source or implied.is_relative_to(source):
                return _Relation.MANAGED
            if source.is_relative_to(implied):
                relation = _Relation.ANCESTOR
        return relation

    def _build_orphan(self, volatile_path: Path, source: Path, uid: int, gid: int) -> Orphan:
        """Collect linkage details for an orphan's implied source path."""
        backup_exists = backup_path_for(source).is_dir()

        link_target = read_link(source)
        if link_target is not None:
            if not is_volatile_path(link_target, self._volatile_root) and path_exists(link_target):
                link_target = None

        return Orphan(
            volatile_path=volatile_path,
            source=source,
            uid=uid,
            gid=gid,
            backup_exists=backup_exists,
            link_target=link_target,
        )
