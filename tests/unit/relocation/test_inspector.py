"""Unit tests for source inspection helpers."""

import os
from pathlib import Path

import pytest
from anysync.relocation.inspector import (
    InvalidSourceError,
    directory_size,
    inspect_source,
    path_exists,
    read_link,
)


class TestInspectSource:
    """Tests for inspect_source()."""

    def test_directory(self, tmp_path: Path) -> None:
        """A directory reports its owner and permission bits."""
        source = tmp_path / "src"
        source.mkdir()
        source.chmod(0o750)

        info = inspect_source(source)

        assert info.path == source
        assert info.uid == os.getuid()
        assert info.gid == os.stat(source).st_gid
        assert info.mode == 0o750

    def test_missing(self, tmp_path: Path) -> None:
        """A missing path is an invalid source."""
        with pytest.raises(InvalidSourceError, match="does not exist") as exc_info:
            inspect_source(tmp_path / "missing")
        assert exc_info.value.path == tmp_path / "missing"

    def test_file(self, tmp_path: Path) -> None:
        """A regular file is an invalid source."""
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(InvalidSourceError, match="not a directory"):
            inspect_source(path)

    def test_follows_symlink(self, tmp_path: Path) -> None:
        """A symlink to a directory reports the target's metadata."""
        target = tmp_path / "target"
        target.mkdir()
        target.chmod(0o700)
        link = tmp_path / "link"
        link.symlink_to(target)

        assert inspect_source(link).mode == 0o700

    def test_dangling_symlink(self, tmp_path: Path) -> None:
        """A dangling symlink is an invalid source."""
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "gone")
        with pytest.raises(InvalidSourceError):
            inspect_source(link)


class TestProbes:
    """Tests for the small filesystem probes."""

    def test_read_link(self, tmp_path: Path) -> None:
        """read_link returns the raw target or None."""
        link = tmp_path / "link"
        link.symlink_to("/somewhere/else")
        assert read_link(link) == Path("/somewhere/else")
        assert read_link(tmp_path) is None
        assert read_link(tmp_path / "missing") is None

    def test_path_exists(self, tmp_path: Path) -> None:
        """path_exists follows symlinks and treats not-found as missing."""
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "gone")
        assert path_exists(tmp_path) is True
        assert path_exists(link) is False
        assert path_exists(tmp_path / "missing") is False

    def test_directory_size(self, tmp_path: Path) -> None:
        """directory_size sums regular files recursively."""
        (tmp_path / "sub").mkdir()
        (tmp_path / "a").write_bytes(b"x" * 10)
        (tmp_path / "sub" / "b").write_bytes(b"y" * 5)
        (tmp_path / "link").symlink_to(tmp_path / "a")

        assert directory_size(tmp_path) == 15

    def test_directory_size_not_a_directory(self, tmp_path: Path) -> None:
        """directory_size returns None for non-directories."""
        assert directory_size(tmp_path / "missing") is None
