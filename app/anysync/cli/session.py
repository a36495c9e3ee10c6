"""Shared setup for commands that operate on the sync sources.

Every relocation verb runs with the configuration loaded and the process
lock held. Failures here are fatal and end the command with a non-zero
exit code.
"""

import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from anysync.core.config import ConfigError, SyncConfig, load_config
from anysync.core.lock import (
    LockError,
    LockReleaseError,
    ProcessLock,
    check_lock_parent,
)
from anysync.core.paths import DEFAULT_LOCK_PATH
from anysync.relocation.operator import RelocationOperator
from anysync.utils.formatting import err_console, print_error

logger = logging.getLogger(__name__)

# EX_SOFTWARE from sysexits.h: a lock that cannot be removed is an integrity fault
EXIT_LOCK_INTEGRITY = 70


def get_option(ctx: typer.Context, name: str, default: object = None) -> object:
    """Read a global option stored by the main callback."""
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    return obj.get(name, default)


def load_sync_config(ctx: typer.Context) -> SyncConfig:
    """Load the configuration selected on the command line.

    Raises:
        typer.Exit: With code 1 if the configuration is missing or invalid.
    """
    config_path = get_option(ctx, "config_path")
    try:
        return load_config(config_path if isinstance(config_path, Path) else None)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        print_error(str(e))
        raise typer.Exit(code=1) from e


def build_operator(config: SyncConfig) -> RelocationOperator:
    """Create the relocation operator for a loaded configuration."""
    return RelocationOperator.from_config(config)


def _exit_on_signal(signum: int, frame: object) -> None:
    """Turn a termination signal into SystemExit so cleanup handlers run."""
    logger.warning("Received signal %d, releasing the process lock", signum)
    raise SystemExit(128 + signum)


@contextmanager
def process_lock(ctx: typer.Context) -> Iterator[ProcessLock]:
    """Hold the process lock for the duration of a command.

    While the lock is held SIGTERM exits through the normal unwinding path,
    so an init system stopping the service does not leave a stale lock.

    Raises:
        typer.Exit: With code 1 if the lock cannot be acquired, or with
            EXIT_LOCK_INTEGRITY if it cannot be released.
    """
    lock_path = get_option(ctx, "lock_path") or DEFAULT_LOCK_PATH
    timeout = get_option(ctx, "lock_timeout")
    lock_path = Path(str(lock_path))

    try:
        check_lock_parent(lock_path.parent)
    except LockError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    lock = ProcessLock(lock_path, timeout=float(timeout) if timeout is not None else None)
    try:
        lock.acquire()
    except LockError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    previous_sigterm = signal.signal(signal.SIGTERM, _exit_on_signal)
    try:
        yield lock
    finally:
        signal.signal(signal.SIGTERM, previous_sigterm)
        try:
            lock.release()
        except LockReleaseError as e:
            err_console.print(f"[error]FATAL:[/] {e}")
            err_console.print(
                f"[muted]Remove {lock_path} by hand once no anysync process is running.[/]"
            )
            raise typer.Exit(code=EXIT_LOCK_INTEGRITY) from e
