"""Flush command for persisting volatile content.

This module provides the `anysync flush` command (alias `sync`), which
mirrors the volatile copy of every relocated source onto its backup.
"""

import typer

from anysync.cli.display import print_results
from anysync.cli.session import build_operator, load_sync_config, process_lock

app = typer.Typer(
    name="flush",
    help="Write volatile content back to persistent storage.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def flush(ctx: typer.Context) -> None:
    """Write volatile content back to persistent storage.

    Run periodically to bound the data lost on a crash. The relocation
    itself is not changed.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        results = build_operator(config).flush()

    print_results(results, title="Flush")
