"""Filesystem helpers shared by emission and the setup step."""

from __future__ import annotations

import os
from pathlib import Path


def relocate(root: Path, path: Path) -> Path:
    """Map an absolute host *path* under *root*."""
    return root / path.relative_to(path.anchor) if path.is_absolute() else root / path


def write_atomic(path: Path, content: str, mode: int = 0o644) -> None:
    """Write via a temp file and rename so readers never see partial content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp = path.with_name(f".{path.name}.tmp")
    fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    try:
        try:
            os.write(fd, content.encode())
        finally:
            os.close(fd)
        os.chmod(temp, mode)
        os.replace(temp, path)
    except OSError:
        temp.unlink(missing_ok=True)
        raise


def force_symlink(link: Path, target: str) -> bool:
    """Point *link* at *target*, replacing whatever is there.

    Returns False when the link already had that target.
    """
    if link.is_symlink() and os.readlink(link) == target:
        return False
    temp = link.with_name(f".{link.name}.tmp")
    if temp.is_symlink() or temp.exists():
        temp.unlink()
    temp.symlink_to(target)
    os.replace(temp, link)
    return True
