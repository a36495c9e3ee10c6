"""Read-only inspection of sync sources and relocated directories.

Provides source validation with ownership extraction, plus the small
filesystem probes (symlink targets, existence, recursive size) shared by
the operator, repairer, scanner and status reporter.
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path


class InvalidSourceError(Exception):
    """Raised when a path cannot be used as a sync source.

    Attributes:
        path: The offending path.
        reason: Human-readable explanation.
    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}: {path}")


@dataclass(frozen=True, slots=True)
class SourceInfo:
    """Ownership and permission metadata of a sync source.

    Attributes:
        path: The inspected path.
        uid: Owner user id.
        gid: Owner group id.
        mode: Permission bits (as returned by ``stat.S_IMODE``).
    """

    path: Path
    uid: int
    gid: int
    mode: int


def inspect_source(path: Path | str) -> SourceInfo:
    """Validate a candidate sync source and capture its ownership.

    Symlinks are followed, so a relocated source reports the metadata of
    its volatile directory, which carries the original owner and mode.

    Args:
        path: Candidate source directory.

    Returns:
        SourceInfo with uid, gid and permission bits.

    Raises:
        InvalidSourceError: If the path is missing, not a directory, or its
            ownership cannot be determined.
    """
    if os.name != "posix":
        raise InvalidSourceError(path, "Ownership metadata is not available on this platform")

    try:
        st = os.stat(path)
    except FileNotFoundError:
        raise InvalidSourceError(path, "Sync source path does not exist") from None
    except OSError as e:
        raise InvalidSourceError(path, f"Cannot stat sync source ({e.strerror})") from e

    if not stat.S_ISDIR(st.st_mode):
        raise InvalidSourceError(path, "Sync source path was not a directory")

    return SourceInfo(
        path=Path(path),
        uid=st.st_uid,
        gid=st.st_gid,
        mode=stat.S_IMODE(st.st_mode),
    )


def read_link(path: Path | str) -> Path | None:
    """Return the target of a symlink, or None if the path is not one."""
    try:
        return Path(os.readlink(path))
    except OSError:
        return None


def path_exists(path: Path | str) -> bool:
    """Check whether a path exists, following symlinks.

    Only a definite "not found" counts as missing; other stat errors
    (permission denied, I/O errors) are treated as existing so callers
    never act on a path they merely failed to see.
    """
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError:
        return True
    return True


def directory_size(path: Path | str) -> int | None:
    """Sum the sizes of all regular files below a directory.

    Symlinks are not followed. Unreadable entries are skipped.

    Args:
        path: Directory to measure.

    Returns:
        Size in bytes, or None if the path is not a readable directory.
    """
    if not os.path.isdir(path):
        return None

    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for name in filenames:
            try:
                st = os.lstat(os.path.join(dirpath, name))
            except OSError:
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
    return total
