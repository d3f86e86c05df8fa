"""Tests for ignore-file loading."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from securesync.errors import ConfigError
from securesync.ignore import exclude_args, load_patterns


class TestLoadPatterns:
    """Tests for load_patterns()."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_patterns(tmp_path / "nope") == []

    def test_empty_file(self, tmp_path: Path) -> None:
        f = tmp_path / "ignore"
        f.write_text("")
        assert load_patterns(f) == []

    def test_patterns_in_order(self, tmp_path: Path) -> None:
        f = tmp_path / "ignore"
        f.write_text("*.pyc\n\n  node_modules  \n# editor swap files\n.*.sw?\n")
        assert load_patterns(f) == ["*.pyc", "node_modules", ".*.sw?"]

    def test_pattern_with_spaces_kept_whole(self, tmp_path: Path) -> None:
        f = tmp_path / "ignore"
        f.write_text("My Documents/*.tmp\n")
        assert load_patterns(f) == ["My Documents/*.tmp"]

    def test_undecodable_file_raises(self, tmp_path: Path) -> None:
        f = tmp_path / "ignore"
        f.write_bytes(b"\xff\xfe*.log\n")
        with pytest.raises(ConfigError, match="ignore file"):
            load_patterns(f)

    def test_unreadable_path_raises(self, tmp_path: Path) -> None:
        f = tmp_path / "ignore"
        f.write_text("*.log\n")
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigError, match="denied"):
                load_patterns(f)


class TestExcludeArgs:
    """Tests for exclude_args()."""

    def test_one_flag_per_pattern(self) -> None:
        assert exclude_args(["*.pyc", ".git"]) == [
            "--exclude", "*.pyc", "--exclude", ".git",
        ]

    def test_no_patterns(self) -> None:
        assert exclude_args([]) == []
