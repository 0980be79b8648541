"""Emission diff utilities: colored unified diff of managed files."""

from __future__ import annotations

import difflib
from pathlib import Path

from rich.console import Console
from rich.syntax import Syntax


def unified_diff(label: Path, current: str | None, proposed: str) -> list[str]:
    """Diff lines turning *current* (None when absent) into *proposed*."""
    before = (current or "").splitlines(keepends=True)
    after = proposed.splitlines(keepends=True)
    return list(difflib.unified_diff(
        before,
        after,
        fromfile=f"{label} (on disk)" if current is not None else "/dev/null",
        tofile=f"{label} (compiled)",
        lineterm="",
    ))


def show_diff(diff_lines: list[str], console: Console) -> None:
    """Print diff lines with syntax highlighting."""
    diff_text = "\n".join(line.rstrip() for line in diff_lines)
    syntax = Syntax(diff_text, "diff", theme="monokai", line_numbers=False)
    console.print(syntax)
