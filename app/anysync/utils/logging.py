"""Logging setup for the anysync command line.

Library modules only create loggers; handlers are installed here, once,
by the CLI. Records go to stderr through Rich and, optionally, to the
local syslog daemon.
"""

import logging
import logging.handlers
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# Package logger that all module loggers propagate to
ROOT_LOGGER_NAME = "anysync"

SYSLOG_SOCKET = Path("/dev/log")
SYSLOG_FORMAT = "anysync[%(process)d]: %(levelname)s %(message)s"


class LogLevel(str, Enum):
    """Log levels selectable on the command line."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def numeric(self) -> int:
        """The matching ``logging`` level number."""
        return int(getattr(logging, self.name))


def resolve_log_level(
    *,
    verbose: bool = False,
    quiet: bool = False,
    level: LogLevel | None = None,
) -> LogLevel:
    """Pick the effective level from the CLI flags.

    An explicit level wins over ``--verbose`` and ``--quiet``.
    """
    if level is not None:
        return level
    if verbose:
        return LogLevel.DEBUG
    if quiet:
        return LogLevel.ERROR
    return LogLevel.WARNING


def configure_logging(
    level: LogLevel = LogLevel.WARNING,
    *,
    syslog: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """Install handlers on the package logger.

    Calling it again replaces the handlers installed earlier.

    Args:
        level: Minimum level to emit.
        syslog: Also send records to the local syslog socket, if present.
        console: Rich console for terminal output. Defaults to stderr.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(level.numeric)
    logger.propagate = False

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if syslog:
        if SYSLOG_SOCKET.exists():
            syslog_handler = logging.handlers.SysLogHandler(
                address=str(SYSLOG_SOCKET),
                facility=logging.handlers.SysLogHandler.LOG_DAEMON,
            )
            syslog_handler.setFormatter(logging.Formatter(SYSLOG_FORMAT))
            logger.addHandler(syslog_handler)
        else:
            logger.warning("Syslog socket %s not found, logging to stderr only", SYSLOG_SOCKET)

    return logger
