"""CLI package for anysync.

This package contains the Typer application and all subcommands.
"""

from anysync.cli.main import app

__all__ = ["app"]
