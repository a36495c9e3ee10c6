"""Unit tests for the info command."""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from anysync.cli.commands.info import report_to_dict
from anysync.relocation.layout import encode_volatile_path
from anysync.relocation.models import (
    Orphan,
    OrphanReport,
    SourceState,
    SourceStatus,
    StatusReport,
    VolatileCapacity,
)

Invoke = Callable[..., Any]


class TestInfoCommand:
    """Tests for anysync info."""

    def test_table_output(self, invoke: Invoke) -> None:
        """The table view ends with a relocation summary."""
        result = invoke("info")

        assert result.exit_code == 0
        assert "0 of 1 source(s) relocated" in result.stdout

    def test_json_resident(self, invoke: Invoke, projects: Path, volatile_root: Path) -> None:
        """A source that was never prepared is resident."""
        result = invoke("info", "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["volatile_root"] == str(volatile_root)
        assert data["orphans"] == []
        assert data["capacity"] is None
        [source] = data["sources"]
        assert source["source"] == str(projects)
        assert source["state"] == "resident"
        assert source["relocated"] is False

    def test_json_relocated(self, invoke: Invoke, projects: Path) -> None:
        """After prepare the source is relocated with its size reported."""
        invoke("prepare")

        result = invoke("info", "-f", "json")

        data = json.loads(result.stdout)
        [source] = data["sources"]
        assert source["state"] == "relocated"
        assert source["backup_exists"] is True
        assert source["volatile_size_bytes"] == len("alpha") + len("beta")
        assert data["capacity"]["total_bytes"] > 0

    def test_json_orphans(self, invoke: Invoke, tmp_path: Path, volatile_root: Path) -> None:
        """Orphans are listed with their implied source."""
        orphan = encode_volatile_path(tmp_path / "old", volatile_root, os.getuid(), os.getgid())
        orphan.mkdir(parents=True)

        result = invoke("info", "--format", "json")

        data = json.loads(result.stdout)
        assert data["orphans"] == [
            {
                "volatile_path": str(orphan),
                "source": str(tmp_path / "old"),
                "uid": os.getuid(),
                "gid": os.getgid(),
                "backup_exists": False,
                "link_target": None,
                "linked": False,
            }
        ]

    def test_does_not_change_anything(
        self, invoke: Invoke, projects: Path, volatile_root: Path
    ) -> None:
        """info never creates the volatile root or touches sources."""
        invoke("info")

        assert not volatile_root.exists()
        assert not projects.is_symlink()


class TestReportToDict:
    """Tests for report_to_dict()."""

    def test_converts_paths_to_strings(self) -> None:
        """Every value is JSON serializable."""
        report = StatusReport(
            volatile_root="/tmp/anysync",
            sources=(
                SourceStatus(
                    source="/home/u/x",
                    state=SourceState.INCONSISTENT,
                    relocated=False,
                    volatile_path="/tmp/anysync/goanysync-1000-1000/home/u/x",
                    volatile_size_bytes=None,
                    backup_exists=False,
                ),
            ),
            orphans=OrphanReport(
                orphans=(
                    Orphan(
                        volatile_path=Path("/tmp/anysync/goanysync-1000-1000/home/u/old"),
                        source=Path("/home/u/old"),
                        uid=1000,
                        gid=1000,
                        link_target=Path("/tmp/anysync/goanysync-1000-1000/home/u/old"),
                    ),
                )
            ),
            capacity=VolatileCapacity(total=100, used=25, free=75),
        )

        data = report_to_dict(report)

        assert json.loads(json.dumps(data)) == data
        assert data["capacity"] == {"total_bytes": 100, "used_bytes": 25, "free_bytes": 75}
        assert data["sources"][0]["state"] == "inconsistent"
        assert data["orphans"][0]["linked"] is True
