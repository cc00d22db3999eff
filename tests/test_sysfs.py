"""Tests for the pseudo-file helpers."""

import logging

from tegratop.sysfs import (
    list_indexed,
    parse_key_values,
    parse_millidegrees,
    read_int,
    read_or_default,
    read_str,
    read_text,
    resolve_first,
)


class TestResolveFirst:
    """Tests for resolve_first."""

    def test_prefers_first_existing_candidate(self, tmp_path):
        """Test the earliest existing candidate wins even if later ones exist."""
        (tmp_path / "b").write_text("")
        (tmp_path / "c").write_text("")

        result = resolve_first([tmp_path / "a", tmp_path / "b", tmp_path / "c"])

        assert result == tmp_path / "b"

    def test_none_when_nothing_exists(self, tmp_path):
        """Test None is returned when no candidate exists."""
        assert resolve_first([tmp_path / "a", tmp_path / "b"]) is None

    def test_empty_candidates(self):
        """Test an empty candidate list resolves to None."""
        assert resolve_first([]) is None


class TestReadOrDefault:
    """Tests for read_or_default and the typed readers."""

    def test_parses_value(self, tmp_path):
        """Test a well-formed value is parsed."""
        path = tmp_path / "value"
        path.write_text("42\n")
        assert read_or_default(path, int, -1) == 42

    def test_missing_file_gives_default(self, tmp_path):
        """Test a missing file returns the default."""
        assert read_or_default(tmp_path / "missing", int, -1) == -1

    def test_none_path_gives_default(self):
        """Test an unresolved path returns the default."""
        assert read_or_default(None, int, 7) == 7

    def test_directory_gives_default(self, tmp_path):
        """Test an unreadable path returns the default."""
        assert read_or_default(tmp_path, int, 3) == 3

    def test_malformed_value_gives_default_and_logs(self, tmp_path, caplog):
        """Test a malformed value returns the default and is logged at debug."""
        path = tmp_path / "value"
        path.write_text("not-a-number")

        with caplog.at_level(logging.DEBUG, logger="tegratop.sysfs"):
            assert read_or_default(path, int, 0) == 0

        assert "Unparsable" in caplog.text

    def test_read_int_and_str(self, tmp_path):
        """Test the typed readers with defaults."""
        (tmp_path / "n").write_text("12")
        (tmp_path / "s").write_text("schedutil\n")

        assert read_int(tmp_path / "n") == 12
        assert read_int(tmp_path / "missing") == 0
        assert read_str(tmp_path / "s") == "schedutil"
        assert read_str(tmp_path / "missing", "none") == "none"


class TestParsers:
    """Tests for the small parsing helpers."""

    def test_read_text_strips_nul(self, tmp_path):
        """Test device-tree style NUL terminators are stripped."""
        path = tmp_path / "model"
        path.write_text("NVIDIA Jetson\x00")
        assert read_text(path) == "NVIDIA Jetson"

    def test_parse_millidegrees(self):
        """Test millidegree conversion."""
        assert parse_millidegrees("45500") == 45.5

    def test_parse_key_values_skips_malformed(self):
        """Test lines without a separator are ignored."""
        values = parse_key_values("MemTotal:  100 kB\ngarbage\nMemFree: 50 kB")
        assert values == {"MemTotal": "100 kB", "MemFree": "50 kB"}


class TestListIndexed:
    """Tests for list_indexed."""

    def test_sorted_numerically(self, tmp_path):
        """Test entries are sorted by index, not by name."""
        for name in ("thermal_zone10", "thermal_zone2", "thermal_zone0", "cooling_device0"):
            (tmp_path / name).mkdir()

        entries = list_indexed(tmp_path, "thermal_zone")

        assert [index for index, _ in entries] == [0, 2, 10]
        assert entries[0][1] == tmp_path / "thermal_zone0"

    def test_missing_base(self, tmp_path):
        """Test a missing directory lists nothing."""
        assert list_indexed(tmp_path / "missing", "hwmon") == []
