"""Fixtures for CLI tests.

Commands run against a configuration below tmp_path with the lock parent
check relaxed, since tmp_path is not a root-owned 0755 directory.
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from anysync.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()

Invoke = Callable[..., Any]


@pytest.fixture
def lock_path(tmp_path: Path) -> Iterator[Path]:
    """Process lock path whose parent passes the trust check."""
    run_dir = tmp_path / "run"
    run_dir.mkdir()
    with patch("anysync.cli.session.check_lock_parent"):
        yield run_dir / "process.lock"


@pytest.fixture
def host_checks() -> Iterator[MagicMock]:
    """Skip the volatile root parent check and resolve the copy tool to a fixed path."""
    with (
        patch("anysync.core.config.check_volatile_root_parents"),
        patch("anysync.core.config.resolve_executable", return_value="/usr/bin/rsync") as mock,
    ):
        yield mock


@pytest.fixture
def config_path(tmp_path: Path, projects: Path, volatile_root: Path) -> Path:
    """Key/value configuration syncing the projects source."""
    path = tmp_path / "anysync.conf"
    path.write_text(f"TMPFS = {volatile_root}\nRSYNC_BIN = rsync\nWHATTOSYNC = {projects}\n")
    return path


@pytest.fixture
def invoke(
    config_path: Path,
    lock_path: Path,
    host_checks: MagicMock,
    fake_copy_tool: MagicMock,
) -> Invoke:
    """Run the CLI with --config and --lock-path pointing below tmp_path."""

    def _invoke(*args: str) -> Any:
        return runner.invoke(
            app,
            ["--config", str(config_path), "--lock-path", str(lock_path), *args],
        )

    return _invoke
