"""Prepare command for relocating sync sources.

This module provides the `anysync prepare` command (alias `initsync`),
which moves every sync source onto volatile storage.
"""

import typer

from anysync.cli.display import print_results
from anysync.cli.session import build_operator, load_sync_config, process_lock
from anysync.relocation.operator import VolatileRootError
from anysync.utils.formatting import print_error

app = typer.Typer(
    name="prepare",
    help="Relocate sync sources onto volatile storage.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def prepare(ctx: typer.Context) -> None:
    """Relocate sync sources onto volatile storage.

    Each source is renamed to its backup path, replaced by a symlink to
    its volatile path, and its content is copied there. Sources that are
    already relocated are left as they are.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        try:
            results = build_operator(config).prepare()
        except VolatileRootError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    print_results(results, title="Prepare")
