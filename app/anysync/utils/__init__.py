"""Utility modules for anysync.

This module exports commonly used utility functions.
"""

from anysync.utils.formatting import (
    console,
    create_table,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from anysync.utils.shell import CommandResult, resolve_executable, run_command

__all__ = [
    "CommandResult",
    "console",
    "create_table",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "resolve_executable",
    "run_command",
]
