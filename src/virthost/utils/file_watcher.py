"""Config watcher for the watch command: recompile and emit on change."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from rich.console import Console

from virthost.errors import VirtHostError

logger = logging.getLogger(__name__)


def watch_config(
    config_path: Path,
    on_change: Callable[[], None],
    console: Console,
) -> None:
    """Call *on_change* whenever *config_path* is written.

    Compilation errors are reported and watching continues, so a broken
    edit never leaves the previously emitted files half-replaced.
    """
    try:
        from watchfiles import watch
    except ImportError:
        console.print(
            "[red]watchfiles is required for watch. "
            "Install it with: pip install 'virthost[watch]'[/]"
        )
        raise SystemExit(1) from None

    target = config_path.resolve()
    for changes in watch(target.parent):
        if not any(Path(changed).resolve() == target for _, changed in changes):
            continue
        console.print(f"  [dim]changed:[/] {config_path}")
        try:
            on_change()
        except VirtHostError as exc:
            logger.debug("Recompile failed", exc_info=True)
            console.print(f"  [yellow]Not applied: {exc}[/]")
