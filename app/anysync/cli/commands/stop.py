"""Stop command for the shutdown run.

This module provides the `anysync stop` command: flush, restore with
reclaim, then an orphan check.
"""

import typer

from anysync.cli.display import print_orphans, print_results
from anysync.cli.session import build_operator, load_sync_config, process_lock
from anysync.utils.formatting import print_error

app = typer.Typer(
    name="stop",
    help="Persist and move sync sources back (shutdown run).",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def stop(ctx: typer.Context) -> None:
    """Persist and move sync sources back (shutdown run).

    Fails when a flush fails or orphaned directories remain in volatile
    storage afterwards.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        result = build_operator(config).stop()

    print_results(list(result.transitions), title="Stop")

    if result.unflushed:
        print_error(
            f"Flush failed for {len(result.unflushed)} source(s); "
            "they stay on volatile storage until a flush succeeds."
        )
    if not result.orphans.clean:
        print_orphans(result.orphans)
        print_error("Orphans remain in volatile storage; their data is lost on reset.")
    if not result.success:
        raise typer.Exit(code=1)
