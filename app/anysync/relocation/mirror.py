"""Bulk directory mirroring through an external copy tool.

The copy tool is an rsync-compatible program invoked as::

    <tool> -a --delete <src>/ <dst>

which recursively mirrors the content of ``src`` into ``dst``, preserving
attributes and removing destination entries absent from the source. The
call blocks until the tool exits; there is no deadline.
"""

import logging
from pathlib import Path

from anysync.utils.shell import CommandResult, run_command

DEFAULT_COPY_TOOL = "rsync"


class MirrorError(Exception):
    """Raised when the copy tool cannot be run or exits unsuccessfully.

    Attributes:
        command: The command line that was executed.
        returncode: Exit code of the tool, None if it could not be started.
    """

    def __init__(self, message: str, command: list[str], returncode: int | None = None) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class CopyTool:
    """Runs the external archive-and-mirror tool.

    Args:
        executable: Name or path of the rsync-compatible tool.
        logger: Logger for command tracing. Defaults to the module logger.
    """

    def __init__(
        self,
        executable: str = DEFAULT_COPY_TOOL,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._executable = executable
        self._logger = logger or logging.getLogger(__name__)

    @property
    def executable(self) -> str:
        """Name or path of the copy tool."""
        return self._executable

    def build_command(self, src: Path, dst: Path) -> list[str]:
        """Build the mirror command line.

        The trailing slash on the source makes the tool copy the content of
        ``src`` into ``dst`` rather than ``src`` itself.
        """
        return [self._executable, "-a", "--delete", f"{src}/", str(dst)]

    def mirror(self, src: Path, dst: Path) -> CommandResult:
        """Mirror the content of ``src`` into ``dst``.

        Args:
            src: Directory whose content is copied.
            dst: Directory made identical to ``src``.

        Returns:
            CommandResult of the successful tool run.

        Raises:
            MirrorError: If the tool cannot be started or exits non-zero.
        """
        command = self.build_command(src, dst)
        self._logger.debug("Running: %s", " ".join(command))

        try:
            result = run_command(command, timeout=None)
        except OSError as e:
            msg = f"Cannot run copy tool '{self._executable}': {e}"
            raise MirrorError(msg, command) from e

        if not result.success:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            msg = f"Copy tool failed mirroring {src} -> {dst}: {detail}"
            raise MirrorError(msg, command, result.returncode)

        return result
