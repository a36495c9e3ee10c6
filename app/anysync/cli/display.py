"""Shared Rich display functions for transition results and reports.

Provides table builders and summary printers used by the relocation
verbs and the ``info`` command.
"""

from collections.abc import Sequence
from enum import Enum

from rich.table import Table

from anysync.relocation.models import (
    OrphanReport,
    SourceState,
    StatusReport,
    TransitionOutcome,
    TransitionResult,
)
from anysync.utils.formatting import (
    console,
    create_table,
    format_size,
    print_info,
    print_success,
    print_warning,
)


class OutputFormat(str, Enum):
    """Output format options for report commands."""

    TABLE = "table"
    JSON = "json"


_OUTCOME_STYLES: dict[TransitionOutcome, str] = {
    TransitionOutcome.APPLIED: "[success]applied[/]",
    TransitionOutcome.UNCHANGED: "[muted]unchanged[/]",
    TransitionOutcome.SKIPPED: "[warning]skipped[/]",
    TransitionOutcome.FAILED: "[error]failed[/]",
}

_STATE_STYLES: dict[SourceState, str] = {
    SourceState.RELOCATED: "[relocated]relocated[/]",
    SourceState.RESIDENT: "[resident]resident[/]",
    SourceState.INCONSISTENT: "[inconsistent]inconsistent[/]",
    SourceState.FOREIGN: "[warning]foreign[/]",
    SourceState.MISSING: "[error]missing[/]",
}


def create_results_table(results: Sequence[TransitionResult], title: str = "Results") -> Table:
    """Create a table with one row per transition result.

    Failed transitions that were rolled back are marked in the detail
    column; a failed rollback is shown as an error.
    """
    table = create_table(title)
    table.add_column("Verb", width=8)
    table.add_column("Source", no_wrap=True)
    table.add_column("Outcome", width=10)
    table.add_column("Detail")

    for result in results:
        detail = result.message or ""
        if result.rollback_failed:
            detail = f"{detail} [error](rollback failed)[/]"
        elif result.rolled_back:
            detail = f"{detail} [muted](rolled back)[/]"
        table.add_row(
            result.verb.value,
            f"[path]{result.source}[/]",
            _OUTCOME_STYLES[result.outcome],
            detail.strip(),
        )

    return table


def print_results(results: Sequence[TransitionResult], title: str = "Results") -> None:
    """Print the results table followed by a one-line summary."""
    if not results:
        print_info("No sync sources configured.")
        return

    console.print(create_results_table(results, title))

    applied = sum(1 for r in results if r.outcome == TransitionOutcome.APPLIED)
    skipped = sum(1 for r in results if r.outcome == TransitionOutcome.SKIPPED)
    failed = sum(1 for r in results if r.failed)

    if failed or skipped:
        print_warning(f"{applied} applied, {skipped} skipped, {failed} failed")
    else:
        print_success(f"All {len(results)} source(s) processed successfully.")


def create_orphans_table(report: OrphanReport) -> Table:
    """Create a table listing orphaned volatile directories."""
    table = create_table("Orphans in volatile storage")
    table.add_column("Volatile path", no_wrap=True)
    table.add_column("Implied source", no_wrap=True)
    table.add_column("Owner", width=11)
    table.add_column("Linked")

    for orphan in report.orphans:
        linked: list[str] = []
        if orphan.backup_exists:
            linked.append("backup")
        if orphan.link_target is not None:
            linked.append(f"symlink -> {orphan.link_target}")
        table.add_row(
            f"[orphan]{orphan.volatile_path}[/]",
            str(orphan.source),
            f"{orphan.uid}:{orphan.gid}",
            ", ".join(linked) or "[muted]-[/]",
        )

    return table


def print_orphans(report: OrphanReport) -> None:
    """Print the orphans table and a hint, or nothing for a clean report."""
    if report.clean:
        return

    console.print(create_orphans_table(report))
    print_warning(
        f"{len(report.orphans)} orphan(s) found, {len(report.linked_orphans)} linked. "
        "Move their content back or remove them by hand."
    )


def create_status_table(report: StatusReport) -> Table:
    """Create a table with the state of each sync source."""
    table = create_table(f"Sync sources ({report.volatile_root})")
    table.add_column("Source", no_wrap=True)
    table.add_column("State", width=12)
    table.add_column("Volatile size", justify="right", style="size")
    table.add_column("Backup", width=6, justify="center")
    table.add_column("Link target")

    for status in report.sources:
        size = (
            format_size(status.volatile_size_bytes)
            if status.volatile_size_bytes is not None
            else "-"
        )
        table.add_row(
            f"[path]{status.source}[/]",
            _STATE_STYLES[status.state],
            size,
            "[success]yes[/]" if status.backup_exists else "[muted]no[/]",
            status.volatile_path or "[muted]-[/]",
        )

    return table


def print_status(report: StatusReport) -> None:
    """Print the status table, capacity summary and orphans."""
    console.print(create_status_table(report))

    console.print(
        f"\n[dim]{report.relocated_count} of {len(report.sources)} source(s) relocated, "
        f"{format_size(report.volatile_total_bytes)} in volatile storage[/dim]"
    )
    if report.capacity is not None:
        capacity = report.capacity
        console.print(
            f"[dim]Volatile filesystem: {format_size(capacity.used)} used of "
            f"{format_size(capacity.total)} ({capacity.percent_used:.1f}%), "
            f"{format_size(capacity.free)} free[/dim]"
        )

    print_orphans(report.orphans)
