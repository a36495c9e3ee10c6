"""Restore command for undoing the relocation.

This module provides the `anysync restore` command (alias `unsync`),
which puts every relocated source back onto persistent storage.
"""

from typing import Annotated

import typer

from anysync.cli.display import print_results
from anysync.cli.session import build_operator, load_sync_config, process_lock

app = typer.Typer(
    name="restore",
    help="Move sync sources back from volatile storage.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def restore(
    ctx: typer.Context,
    reclaim: Annotated[
        bool,
        typer.Option(
            "--reclaim",
            "-r",
            help="Also delete the volatile copies.",
        ),
    ] = False,
) -> None:
    """Move sync sources back from volatile storage.

    The symlink is replaced by the backup directory. Run `anysync flush`
    first, or use `anysync stop`, to keep changes made since the last flush.

    Examples:
        anysync restore              # Keep volatile copies
        anysync restore --reclaim    # Free volatile storage
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        results = build_operator(config).restore(reclaim_volatile=reclaim)

    print_results(results, title="Restore")
