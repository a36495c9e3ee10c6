"""Check command for crash detection and repair.

This module provides the `anysync check` command, which restores sync
sources whose volatile copy was lost, typically by a reboot that
happened before `anysync stop` ran.
"""

import typer

from anysync.cli.display import print_results
from anysync.cli.session import build_operator, load_sync_config, process_lock

app = typer.Typer(
    name="check",
    help="Repair sources whose volatile copy was lost.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def check(ctx: typer.Context) -> None:
    """Repair sources whose volatile copy was lost.

    A source is repaired only when it is a dangling symlink into volatile
    storage and its backup exists. Anything else is left untouched.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        results = build_operator(config).check()

    print_results(results, title="Check")
