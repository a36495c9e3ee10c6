"""Relocation domain models.

This module defines the data structures returned by the relocation
engine: per-source transition results, orphan findings, and the
diagnostic status view.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Verb(str, Enum):
    """State transition performed on a sync source.

    Attributes:
        CHECK: Crash signature detection and repair.
        PREPARE: Relocate the source onto volatile storage.
        FLUSH: Mirror volatile content back onto the backup.
        RESTORE: Undo the relocation from the backup.
    """

    CHECK = "check"
    PREPARE = "prepare"
    FLUSH = "flush"
    RESTORE = "restore"


class TransitionOutcome(str, Enum):
    """Outcome of a transition on one sync source.

    Attributes:
        APPLIED: The transition changed the filesystem as intended.
        UNCHANGED: Nothing to do (already prepared, no crash signature).
        SKIPPED: A precondition did not hold; nothing was changed.
        FAILED: A step failed; partial changes were rolled back if possible.
    """

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class SourceState(str, Enum):
    """Derived lifecycle state of a sync source.

    Attributes:
        RESIDENT: The source is a real directory.
        RELOCATED: The source links to its volatile path and a backup exists.
        INCONSISTENT: The source links into volatile storage but the volatile
            copy or the backup is missing or mismatched.
        FOREIGN: The source is a symlink not managed by anysync.
        MISSING: The source does not exist or is not a directory.
    """

    RESIDENT = "resident"
    RELOCATED = "relocated"
    INCONSISTENT = "inconsistent"
    FOREIGN = "foreign"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Result of one transition on one sync source.

    Attributes:
        source: The sync source path.
        verb: The transition that was attempted.
        outcome: What happened.
        message: Explanation for skips and failures, or a short summary.
        rolled_back: True if a rollback of partial changes was attempted.
        rollback_failed: True if that rollback itself failed.
    """

    source: str
    verb: Verb
    outcome: TransitionOutcome
    message: str | None = None
    rolled_back: bool = False
    rollback_failed: bool = False

    def __post_init__(self) -> None:
        """Validate result data after initialization."""
        if not self.source:
            msg = "Source path cannot be empty"
            raise ValueError(msg)
        if self.rollback_failed and not self.rolled_back:
            msg = "rollback_failed requires rolled_back"
            raise ValueError(msg)

    @property
    def success(self) -> bool:
        """Check if the source ended in the intended state."""
        return self.outcome in (TransitionOutcome.APPLIED, TransitionOutcome.UNCHANGED)

    @property
    def failed(self) -> bool:
        """Check if the transition failed."""
        return self.outcome == TransitionOutcome.FAILED


@dataclass(frozen=True, slots=True)
class Orphan:
    """A volatile directory that matches no configured sync source.

    Attributes:
        volatile_path: Directory found under the volatile root.
        source: Original source path implied by the volatile path.
        uid: Owner user id encoded in the volatile path.
        gid: Owner group id encoded in the volatile path.
        backup_exists: A backup path exists for the implied source.
        link_target: Target of the implied source if it is a symlink into
            volatile storage or a broken symlink, None otherwise.
    """

    volatile_path: Path
    source: Path
    uid: int
    gid: int
    backup_exists: bool = False
    link_target: Path | None = None

    @property
    def linked(self) -> bool:
        """A linked orphan still has a backup or a symlink at its source path."""
        return self.backup_exists or self.link_target is not None


@dataclass(frozen=True, slots=True)
class OrphanReport:
    """Findings of one orphan scan.

    Attributes:
        orphans: All orphaned volatile directories, sorted by path.
    """

    orphans: tuple[Orphan, ...] = ()

    @property
    def clean(self) -> bool:
        """True when no orphan was found."""
        return not self.orphans

    @property
    def linked_orphans(self) -> tuple[Orphan, ...]:
        """Orphans whose implied source still has a backup or a symlink."""
        return tuple(o for o in self.orphans if o.linked)


@dataclass(frozen=True, slots=True)
class SourceStatus:
    """Diagnostic view of one sync source.

    Attributes:
        source: The sync source path.
        state: Derived lifecycle state.
        relocated: The source links to exactly its expected volatile path.
        volatile_path: Symlink target if the source is a symlink.
        volatile_size_bytes: Size of the volatile copy when relocated.
        backup_exists: A backup directory exists.
    """

    source: str
    state: SourceState
    relocated: bool
    volatile_path: str | None
    volatile_size_bytes: int | None
    backup_exists: bool


@dataclass(frozen=True, slots=True)
class VolatileCapacity:
    """Capacity of the filesystem holding the volatile root, in bytes."""

    total: int
    used: int
    free: int

    @property
    def percent_used(self) -> float:
        """Used space as a percentage of total space."""
        if self.total == 0:
            return 0.0
        return self.used / self.total * 100


@dataclass(frozen=True, slots=True)
class StatusReport:
    """Diagnostic summary of all configured sync sources.

    Attributes:
        volatile_root: Root of the volatile storage area.
        sources: Per-source status, in configuration order.
        orphans: Orphan scan findings.
        capacity: Capacity of the volatile filesystem, None if unavailable.
    """

    volatile_root: str
    sources: tuple[SourceStatus, ...]
    orphans: OrphanReport
    capacity: VolatileCapacity | None = None

    @property
    def volatile_total_bytes(self) -> int:
        """Total size of all relocated volatile copies."""
        return sum(s.volatile_size_bytes or 0 for s in self.sources)

    @property
    def relocated_count(self) -> int:
        """Number of sources currently relocated."""
        return sum(1 for s in self.sources if s.state == SourceState.RELOCATED)


@dataclass(frozen=True, slots=True)
class LifecycleResult:
    """Result of a composite start or stop run.

    Attributes:
        orphans: Orphan scan findings (before start, after stop).
        transitions: Per-source results of every transition that ran.
        aborted: True if the run stopped early because of orphans.
        unflushed: Sources left relocated because their flush failed.
    """

    orphans: OrphanReport
    transitions: tuple[TransitionResult, ...] = field(default_factory=tuple)
    aborted: bool = False
    unflushed: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        """A run succeeds when it was not aborted and left nothing behind."""
        return not self.aborted and self.orphans.clean and not self.unflushed
