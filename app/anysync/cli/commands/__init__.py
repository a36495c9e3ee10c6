"""CLI commands for anysync.

This package contains all subcommand implementations.
"""

from anysync.cli.commands import check, config, flush, info, prepare, restore, start, stop

__all__ = ["check", "config", "flush", "info", "prepare", "restore", "start", "stop"]
