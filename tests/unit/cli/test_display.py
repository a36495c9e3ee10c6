"""Unit tests for shared display functions."""

from pathlib import Path

import pytest
from anysync.cli.display import (
    create_orphans_table,
    create_results_table,
    create_status_table,
    print_results,
)
from anysync.relocation.models import (
    Orphan,
    OrphanReport,
    SourceState,
    SourceStatus,
    StatusReport,
    TransitionOutcome,
    TransitionResult,
    Verb,
)


def _result(outcome: TransitionOutcome, **kwargs: bool | str) -> TransitionResult:
    return TransitionResult(
        source="/home/u/x", verb=Verb.PREPARE, outcome=outcome, **kwargs  # type: ignore[arg-type]
    )


class TestResultsTable:
    """Tests for create_results_table and print_results."""

    def test_one_row_per_result(self) -> None:
        table = create_results_table(
            [_result(TransitionOutcome.APPLIED), _result(TransitionOutcome.SKIPPED, message="x")]
        )

        assert table.row_count == 2
        assert [c.header for c in table.columns] == ["Verb", "Source", "Outcome", "Detail"]

    def test_rollback_marked(self) -> None:
        """Rolled back and failed rollbacks are shown in the detail column."""
        table = create_results_table(
            [
                _result(TransitionOutcome.FAILED, message="boom", rolled_back=True),
                _result(
                    TransitionOutcome.FAILED,
                    message="boom",
                    rolled_back=True,
                    rollback_failed=True,
                ),
            ]
        )

        details = list(table.columns[3].cells)
        assert "(rolled back)" in details[0]
        assert "(rollback failed)" in details[1]

    def test_print_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_results([])

        assert "No sync sources configured." in capsys.readouterr().out

    def test_print_summary_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_results([_result(TransitionOutcome.APPLIED), _result(TransitionOutcome.UNCHANGED)])

        assert "All 2 source(s) processed successfully." in capsys.readouterr().out

    def test_print_summary_failures(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_results(
            [
                _result(TransitionOutcome.APPLIED),
                _result(TransitionOutcome.SKIPPED),
                _result(TransitionOutcome.FAILED),
            ]
        )

        assert "1 applied, 1 skipped, 1 failed" in capsys.readouterr().err


class TestReportTables:
    """Tests for the orphan and status tables."""

    def test_orphans_table(self) -> None:
        report = OrphanReport(
            orphans=(
                Orphan(
                    volatile_path=Path("/tmp/anysync/goanysync-1000-1000/home/u/old"),
                    source=Path("/home/u/old"),
                    uid=1000,
                    gid=1000,
                    backup_exists=True,
                ),
            )
        )

        table = create_orphans_table(report)

        assert table.row_count == 1
        assert list(table.columns[2].cells) == ["1000:1000"]
        assert list(table.columns[3].cells) == ["backup"]

    def test_status_table(self) -> None:
        report = StatusReport(
            volatile_root="/tmp/anysync",
            sources=tuple(
                SourceStatus(
                    source=f"/home/u/{state.value}",
                    state=state,
                    relocated=state == SourceState.RELOCATED,
                    volatile_path=None,
                    volatile_size_bytes=2048 if state == SourceState.RELOCATED else None,
                    backup_exists=state == SourceState.RELOCATED,
                )
                for state in SourceState
            ),
            orphans=OrphanReport(),
        )

        table = create_status_table(report)

        assert table.row_count == len(SourceState)
        assert "2.0 KB" in list(table.columns[2].cells)
