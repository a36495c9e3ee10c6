"""Start command for the boot-time run.

This module provides the `anysync start` command: orphan guard, crash
repair, then prepare.
"""

import typer

from anysync.cli.display import print_orphans, print_results
from anysync.cli.session import build_operator, load_sync_config, process_lock
from anysync.relocation.operator import VolatileRootError
from anysync.utils.formatting import print_error

app = typer.Typer(
    name="start",
    help="Repair, then relocate sync sources (boot-time run).",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def start(ctx: typer.Context) -> None:
    """Repair, then relocate sync sources (boot-time run).

    Refuses to relocate anything while orphaned directories exist in
    volatile storage, since their data would be lost on the next reset.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        try:
            result = build_operator(config).start()
        except VolatileRootError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    if result.aborted:
        print_orphans(result.orphans)
        print_error("Orphans found in volatile storage; nothing was relocated.")
        raise typer.Exit(code=1)

    print_results(list(result.transitions), title="Start")
