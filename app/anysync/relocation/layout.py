"""Deterministic mapping between sync sources and their relocated paths.

A sync source ``/home/u/Projects`` owned by uid 1000 / gid 1000 under the
volatile root ``/vol`` maps to::

    volatile: /vol/goanysync-1000-1000/home/u/Projects
    backup:   /home/u/Projects-backup_goanysync

The owner is encoded in a single directory segment directly below the
volatile root and the source path is appended verbatim. Every function here
is pure: paths are recomputed on each invocation instead of being stored.

The prefix and suffix are kept compatible with goanysync so existing
relocations are recognized.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

VOLATILE_PREFIX = "goanysync"
BACKUP_SUFFIX = "-backup_goanysync"


@dataclass(frozen=True, slots=True)
class VolatileLocation:
    """Decoded form of a volatile path.

    Attributes:
        source: Original source path implied by the volatile path.
        uid: Owner user id encoded in the owner segment.
        gid: Owner group id encoded in the owner segment.
    """

    source: Path
    uid: int
    gid: int


@dataclass(frozen=True, slots=True)
class MappedPaths:
    """Volatile and backup paths computed for one sync source.

    Attributes:
        source: The sync source path.
        volatile: Owner-scoped path under the volatile root.
        backup: Durable sibling copy used while the source is relocated.
    """

    source: Path
    volatile: Path
    backup: Path


def owner_segment(uid: int, gid: int) -> str:
    """Build the owner directory name, e.g. ``goanysync-1000-1000``."""
    if uid < 0 or gid < 0:
        msg = f"Owner ids must be non-negative, got {uid}:{gid}"
        raise ValueError(msg)
    return f"{VOLATILE_PREFIX}-{uid}-{gid}"


def parse_owner_segment(name: str) -> tuple[int, int] | None:
    """Parse an owner directory name back into ``(uid, gid)``.

    Args:
        name: A single path segment.

    Returns:
        The encoded uid and gid, or None if the name is not an owner segment.
    """
    parts = name.split("-")
    if len(parts) != 3 or parts[0] != VOLATILE_PREFIX:
        return None
    uid_part, gid_part = parts[1], parts[2]
    for part in (uid_part, gid_part):
        if not part or not (part.isascii() and part.isdigit()):
            return None
    return int(uid_part), int(gid_part)


def _relative_source(source: Path | str) -> PurePosixPath:
    source_path = PurePosixPath(source)
    if not source_path.is_absolute():
        msg = f"Sync source must be an absolute path: {source}"
        raise ValueError(msg)
    return source_path.relative_to("/")


def encode_volatile_path(
    source: Path | str,
    volatile_root: Path | str,
    uid: int,
    gid: int,
) -> Path:
    """Compute the volatile path for a source owned by ``uid:gid``.

    Args:
        source: Absolute sync source path.
        volatile_root: Root of the volatile storage area.
        uid: Owner user id of the source.
        gid: Owner group id of the source.

    Returns:
        ``<volatile_root>/goanysync-<uid>-<gid>/<source>``.

    Raises:
        ValueError: If the source is not absolute or the ids are negative.
    """
    return Path(volatile_root) / owner_segment(uid, gid) / _relative_source(source)


def decode_volatile_path(path: Path | str, volatile_root: Path | str) -> VolatileLocation | None:
    """Recognize a volatile path and recover the source and owner it implies.

    This is the inverse of :func:`encode_volatile_path` for any uid/gid.
    The owner segment alone (without a source suffix) is not a volatile path.

    Args:
        path: Candidate path, usually a symlink target or a directory found
            under the volatile root.
        volatile_root: Root of the volatile storage area.

    Returns:
        VolatileLocation if the path lies in an owner segment below the
        volatile root, None otherwise.
    """
    try:
        relative = PurePosixPath(path).relative_to(PurePosixPath(volatile_root))
    except ValueError:
        return None

    parts = relative.parts
    if len(parts) < 2:
        return None

    owner = parse_owner_segment(parts[0])
    if owner is None:
        return None

    uid, gid = owner
    return VolatileLocation(source=Path("/", *parts[1:]), uid=uid, gid=gid)


def is_volatile_path(path: Path | str, volatile_root: Path | str) -> bool:
    """Check whether a path is recognized as a volatile path of any owner."""
    return decode_volatile_path(path, volatile_root) is not None


def backup_path_for(source: Path | str) -> Path:
    """Compute the backup path, a sibling of the source."""
    return Path(f"{Path(source)}{BACKUP_SUFFIX}")


def map_source(
    source: Path | str,
    volatile_root: Path | str,
    uid: int,
    gid: int,
) -> MappedPaths:
    """Compute volatile and backup paths for a source in one call."""
    source_path = Path(source)
    return MappedPaths(
        source=source_path,
        volatile=encode_volatile_path(source_path, volatile_root, uid, gid),
        backup=backup_path_for(source_path),
    )
