"""Cross-process mutual exclusion through atomic directory creation.

The existence of the lock directory is the locked state. ``mkdir`` either
creates it or fails with EEXIST, which makes acquisition atomic on every
POSIX filesystem. There is no payload and no stale-lock detection; the
lock lives on a tmpfs that is cleared on reboot.
"""

import logging
import os
import stat
import time
from pathlib import Path
from types import TracebackType

DEFAULT_POLL_INTERVAL = 0.1
LOCK_MODE = 0o700


class LockError(Exception):
    """Base exception for lock acquisition failures."""


class LockParentError(LockError):
    """Raised when the lock's parent directory is missing or not trustworthy."""


class LockTimeoutError(LockError):
    """Raised when the lock could not be acquired within the maximum wait."""


class LockReleaseError(Exception):
    """Raised when a held lock cannot be removed.

    Not a LockError: a lock that cannot be released blocks every later
    invocation, so callers must abort instead of treating it like contention.
    """


def check_lock_parent(directory: Path, *, owner_uid: int = 0, mode: int = 0o755) -> None:
    """Verify that the lock's parent directory can be trusted.

    The parent must be a real directory owned by ``owner_uid`` with exactly
    the permission bits ``mode``, so no unprivileged user can pre-create or
    remove the lock.

    Raises:
        LockParentError: If any condition does not hold.
    """
    try:
        st = os.lstat(directory)
    except FileNotFoundError:
        msg = f"Lock directory does not exist: {directory}"
        raise LockParentError(msg) from None
    except OSError as e:
        msg = f"Cannot stat lock directory {directory}: {e}"
        raise LockParentError(msg) from e

    if not stat.S_ISDIR(st.st_mode):
        msg = f"Lock directory is not a directory: {directory}"
        raise LockParentError(msg)
    if stat.S_IMODE(st.st_mode) != mode:
        msg = (
            f"Lock directory {directory} has mode {stat.S_IMODE(st.st_mode):04o}, "
            f"expected {mode:04o}"
        )
        raise LockParentError(msg)
    if st.st_uid != owner_uid:
        msg = f"Lock directory {directory} is owned by uid {st.st_uid}, expected {owner_uid}"
        raise LockParentError(msg)


class ProcessLock:
    """Directory-based process lock.

    Usage::

        with ProcessLock(Path("/run/anysync/process.lock")):
            ...

    Args:
        path: Lock directory to create.
        poll_interval: Seconds between attempts while the lock is taken.
        timeout: Maximum seconds to wait. None waits forever.
        logger: Logger for lock messages. Defaults to the module logger.
    """

    def __init__(
        self,
        path: Path,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = Path(path)
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)
        self._held = False

    @property
    def path(self) -> Path:
        """Path of the lock directory."""
        return self._path

    @property
    def held(self) -> bool:
        """True while this instance holds the lock."""
        return self._held

    def try_acquire(self) -> bool:
        """Attempt to take the lock once.

        Returns:
            True if the lock was taken, False if another holder has it.

        Raises:
            LockError: If the lock directory cannot be created for any
                reason other than already existing.
        """
        try:
            os.mkdir(self._path, LOCK_MODE)
        except FileExistsError:
            return False
        except OSError as e:
            msg = f"Cannot create lock {self._path}: {e}"
            raise LockError(msg) from e

        self._held = True
        self._logger.debug("Acquired lock %s", self._path)
        return True

    def acquire(self) -> None:
        """Take the lock, polling while another holder has it.

        Raises:
            LockError: If this instance already holds the lock or creation fails.
            LockTimeoutError: If the configured maximum wait expires.
        """
        if self._held:
            msg = f"Lock {self._path} is already held by this process"
            raise LockError(msg)

        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        waiting = False
        while not self.try_acquire():
            if not waiting:
                self._logger.info("Waiting for lock %s held by another process", self._path)
                waiting = True
            if deadline is not None and time.monotonic() >= deadline:
                msg = f"Timed out after {self._timeout}s waiting for lock {self._path}"
                raise LockTimeoutError(msg)
            time.sleep(self._poll_interval)

    def release(self) -> None:
        """Remove the lock directory.

        Does nothing if the lock is not held.

        Raises:
            LockReleaseError: If the lock directory cannot be removed.
        """
        if not self._held:
            return

        try:
            os.rmdir(self._path)
        except OSError as e:
            self._logger.critical("Releasing lock %s failed: %s", self._path, e)
            msg = f"Releasing lock {self._path} failed: {e}"
            raise LockReleaseError(msg) from e

        self._held = False
        self._logger.debug("Released lock %s", self._path)

    def __enter__(self) -> "ProcessLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()
