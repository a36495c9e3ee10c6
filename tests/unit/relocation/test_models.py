"""Unit tests for relocation models."""

from pathlib import Path

import pytest
from anysync.relocation.models import (
    LifecycleResult,
    Orphan,
    OrphanReport,
    TransitionOutcome,
    TransitionResult,
    Verb,
    VolatileCapacity,
)


class TestTransitionResult:
    """Tests for TransitionResult."""

    @pytest.mark.parametrize(
        ("outcome", "success", "failed"),
        [
            (TransitionOutcome.APPLIED, True, False),
            (TransitionOutcome.UNCHANGED, True, False),
            (TransitionOutcome.SKIPPED, False, False),
            (TransitionOutcome.FAILED, False, True),
        ],
    )
    def test_success_and_failed(
        self, outcome: TransitionOutcome, success: bool, failed: bool
    ) -> None:
        """success and failed follow the outcome."""
        result = TransitionResult(source="/a", verb=Verb.PREPARE, outcome=outcome)
        assert result.success is success
        assert result.failed is failed

    def test_empty_source_rejected(self) -> None:
        """A result must name its source."""
        with pytest.raises(ValueError, match="cannot be empty"):
            TransitionResult(source="", verb=Verb.FLUSH, outcome=TransitionOutcome.APPLIED)

    def test_rollback_failed_requires_rollback(self) -> None:
        """A rollback cannot fail without being attempted."""
        with pytest.raises(ValueError, match="requires rolled_back"):
            TransitionResult(
                source="/a",
                verb=Verb.PREPARE,
                outcome=TransitionOutcome.FAILED,
                rollback_failed=True,
            )


class TestOrphanReport:
    """Tests for Orphan and OrphanReport."""

    def _orphan(self, **kwargs: object) -> Orphan:
        return Orphan(
            volatile_path=Path("/vol/goanysync-1-1/old"),
            source=Path("/old"),
            uid=1,
            gid=1,
            **kwargs,  # type: ignore[arg-type]
        )

    def test_clean_report(self) -> None:
        """An empty report is clean."""
        assert OrphanReport().clean

    def test_linked_orphans(self) -> None:
        """Only orphans with a backup or symlink are linked."""
        plain = self._orphan()
        backed_up = self._orphan(backup_exists=True)
        symlinked = self._orphan(link_target=Path("/vol/goanysync-1-1/old"))

        report = OrphanReport(orphans=(plain, backed_up, symlinked))

        assert not report.clean
        assert report.linked_orphans == (backed_up, symlinked)


class TestLifecycleResult:
    """Tests for LifecycleResult."""

    def test_success_requires_clean_orphans(self) -> None:
        """Remaining orphans fail the run."""
        orphan = Orphan(Path("/vol/goanysync-1-1/x"), Path("/x"), 1, 1)
        assert LifecycleResult(orphans=OrphanReport()).success
        assert not LifecycleResult(orphans=OrphanReport((orphan,))).success

    def test_aborted_is_failure(self) -> None:
        """An aborted run is never successful."""
        assert not LifecycleResult(orphans=OrphanReport(), aborted=True).success

    def test_unflushed_is_failure(self) -> None:
        """A source left relocated after a failed flush fails the run."""
        assert not LifecycleResult(orphans=OrphanReport(), unflushed=("/x",)).success


class TestVolatileCapacity:
    """Tests for VolatileCapacity."""

    def test_percent_used(self) -> None:
        """percent_used relates used to total space."""
        assert VolatileCapacity(total=200, used=50, free=150).percent_used == 25.0

    def test_percent_used_empty_filesystem(self) -> None:
        """A zero-size filesystem reports zero usage."""
        assert VolatileCapacity(total=0, used=0, free=0).percent_used == 0.0
