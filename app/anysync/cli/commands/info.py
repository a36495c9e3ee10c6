"""Info command for the status of sync sources.

This module provides the `anysync info` command, a read-only view of
every sync source, volatile storage usage and orphans.
"""

import json
from typing import Annotated

import typer

from anysync.cli.display import OutputFormat, print_status
from anysync.cli.session import load_sync_config, process_lock
from anysync.relocation.models import StatusReport
from anysync.relocation.status import StatusReporter
from anysync.utils.formatting import console

app = typer.Typer(
    name="info",
    help="Show the state of sync sources and volatile storage.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def info(
    ctx: typer.Context,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Show the state of sync sources and volatile storage.

    Nothing is changed on disk.

    Examples:
        anysync info
        anysync info --format json
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_sync_config(ctx)
    with process_lock(ctx):
        report = StatusReporter(config.volatile_root, config.sources).report()

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(report_to_dict(report)))
        return

    print_status(report)


def report_to_dict(report: StatusReport) -> dict[str, object]:
    """Convert a status report to JSON-compatible data."""
    capacity = None
    if report.capacity is not None:
        capacity = {
            "total_bytes": report.capacity.total,
            "used_bytes": report.capacity.used,
            "free_bytes": report.capacity.free,
        }

    return {
        "volatile_root": report.volatile_root,
        "volatile_total_bytes": report.volatile_total_bytes,
        "capacity": capacity,
        "sources": [
            {
                "source": s.source,
                "state": s.state.value,
                "relocated": s.relocated,
                "volatile_path": s.volatile_path,
                "volatile_size_bytes": s.volatile_size_bytes,
                "backup_exists": s.backup_exists,
            }
            for s in report.sources
        ],
        "orphans": [
            {
                "volatile_path": str(o.volatile_path),
                "source": str(o.source),
                "uid": o.uid,
                "gid": o.gid,
                "backup_exists": o.backup_exists,
                "link_target": str(o.link_target) if o.link_target is not None else None,
                "linked": o.linked,
            }
            for o in report.orphans.orphans
        ],
    }
