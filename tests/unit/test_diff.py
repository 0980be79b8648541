"""Tests for diff helpers."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from virthost.utils.diff import show_diff, unified_diff


class TestUnifiedDiff:
    def test_identical(self):
        assert unified_diff(Path("/etc/a"), "x\n", "x\n") == []

    def test_new_file(self):
        lines = unified_diff(Path("/etc/a"), None, "x\n")
        assert lines[0] == "--- /dev/null"
        assert lines[1] == "+++ /etc/a (compiled)"
        assert "+x" in [line.rstrip("\n") for line in lines]

    def test_changed(self):
        lines = unified_diff(Path("/etc/a"), "old\n", "new\n")
        stripped = [line.rstrip("\n") for line in lines]
        assert "-old" in stripped
        assert "+new" in stripped


class TestShowDiff:
    def test_prints(self):
        buf = StringIO()
        show_diff(unified_diff(Path("/etc/a"), "old\n", "new\n"), Console(file=buf, width=120))
        assert "new" in buf.getvalue()
