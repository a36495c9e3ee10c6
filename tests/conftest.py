"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules. Filesystem
tests run against ``tmp_path`` with the copy tool replaced by an
in-process mirror, so rsync does not need to be installed.
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from anysync.utils.logging import ROOT_LOGGER_NAME
from helpers import python_mirror, write_tree


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo handlers and propagation changes made by configure_logging."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def fake_copy_tool() -> Iterator[MagicMock]:
    """Replace the copy tool subprocess with an in-process mirror."""
    with patch("anysync.relocation.mirror.run_command", side_effect=python_mirror) as mock_run:
        yield mock_run


@pytest.fixture
def volatile_root(tmp_path: Path) -> Path:
    """Volatile root below tmp_path (not created)."""
    return tmp_path / "vol"


@pytest.fixture
def projects(tmp_path: Path) -> Path:
    """A sync source with two files, one in a subdirectory."""
    source = tmp_path / "home" / "u" / "Projects"
    source.mkdir(parents=True)
    write_tree(source, {"a.txt": "alpha", "sub/b.txt": "beta"})
    return source
