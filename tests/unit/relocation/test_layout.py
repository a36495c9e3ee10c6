"""Unit tests for the relocation path layout.

Tests owner segment encoding, volatile path encode/decode and backup
path derivation.
"""

from pathlib import Path

import pytest
from anysync.relocation.layout import (
    backup_path_for,
    decode_volatile_path,
    encode_volatile_path,
    is_volatile_path,
    map_source,
    owner_segment,
    parse_owner_segment,
)


class TestOwnerSegment:
    """Tests for owner segment naming."""

    def test_owner_segment_format(self) -> None:
        """Owner segment joins prefix, uid and gid with dashes."""
        assert owner_segment(1000, 100) == "goanysync-1000-100"

    def test_owner_segment_rejects_negative_ids(self) -> None:
        """Negative ids cannot be encoded."""
        with pytest.raises(ValueError, match="non-negative"):
            owner_segment(-1, 0)

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("goanysync-0-0", (0, 0)),
            ("goanysync-1000-1001", (1000, 1001)),
            ("goanysync-x-y", None),
            ("goanysync-1000", None),
            ("goanysync-1-2-3", None),
            ("other-1000-1000", None),
            ("goanysync--1", None),
            ("goanysync-١-1", None),
        ],
    )
    def test_parse_owner_segment(self, name: str, expected: tuple[int, int] | None) -> None:
        """Only prefix plus two ASCII decimal ids is an owner segment."""
        assert parse_owner_segment(name) == expected


class TestEncodeVolatilePath:
    """Tests for the forward mapping."""

    def test_scenario_mapping(self) -> None:
        """Source path is appended verbatim below the owner segment."""
        result = encode_volatile_path(Path("/home/u/Projects"), Path("/vol"), 1000, 1000)
        assert result == Path("/vol/goanysync-1000-1000/home/u/Projects")

    def test_accepts_strings(self) -> None:
        """String arguments are accepted."""
        result = encode_volatile_path("/srv/data", "/run/tmpfs", 0, 0)
        assert result == Path("/run/tmpfs/goanysync-0-0/srv/data")

    def test_relative_source_rejected(self) -> None:
        """Relative sources cannot be mapped."""
        with pytest.raises(ValueError, match="absolute"):
            encode_volatile_path("home/u", "/vol", 1000, 1000)


class TestDecodeVolatilePath:
    """Tests for the structured recognizer."""

    @pytest.mark.parametrize(
        ("source", "uid", "gid"),
        [
            ("/home/u/Projects", 1000, 1000),
            ("/a", 0, 0),
            ("/home/user name/with spaces", 1234, 99),
        ],
    )
    def test_decode_inverts_encode(self, source: str, uid: int, gid: int) -> None:
        """Decoding an encoded path recovers source, uid and gid."""
        encoded = encode_volatile_path(source, "/vol", uid, gid)
        location = decode_volatile_path(encoded, "/vol")
        assert location is not None
        assert location.source == Path(source)
        assert (location.uid, location.gid) == (uid, gid)

    def test_path_outside_root(self) -> None:
        """Paths outside the volatile root are not volatile paths."""
        assert decode_volatile_path("/other/goanysync-1-1/a", "/vol") is None

    def test_owner_segment_alone(self) -> None:
        """The owner segment without a source suffix is not a volatile path."""
        assert decode_volatile_path("/vol/goanysync-1-1", "/vol") is None

    def test_root_itself(self) -> None:
        """The volatile root is not a volatile path."""
        assert decode_volatile_path("/vol", "/vol") is None

    def test_unparsable_owner_segment(self) -> None:
        """Directories below a malformed owner segment are ignored."""
        assert decode_volatile_path("/vol/goanysync-x-y/home", "/vol") is None

    def test_sibling_root_prefix(self) -> None:
        """Root matching uses path components, not string prefixes."""
        assert decode_volatile_path("/volume/goanysync-1-1/a", "/vol") is None

    def test_is_volatile_path(self) -> None:
        """is_volatile_path wraps the decoder."""
        assert is_volatile_path("/vol/goanysync-5-6/srv", "/vol") is True
        assert is_volatile_path("/srv", "/vol") is False


class TestBackupPath:
    """Tests for backup path derivation."""

    def test_backup_is_sibling_with_suffix(self) -> None:
        """Backup path appends the suffix to the source name."""
        assert backup_path_for("/home/u/Projects") == Path("/home/u/Projects-backup_goanysync")

    def test_map_source(self) -> None:
        """map_source computes both paths at once."""
        paths = map_source("/home/u/Projects", "/vol", 1000, 1000)
        assert paths.source == Path("/home/u/Projects")
        assert paths.volatile == Path("/vol/goanysync-1000-1000/home/u/Projects")
        assert paths.backup == Path("/home/u/Projects-backup_goanysync")
