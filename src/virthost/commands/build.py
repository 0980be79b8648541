"""Build commands.

plan, order, emit, diff, watch.
"""

from __future__ import annotations

import os
from pathlib import Path

from rich.console import Console

from virthost.commands._common import (
    ConfigOpt,
    FormatOpt,
    RootOpt,
    get_manager,
    load_plan,
    plan_rows,
)
from virthost.compiler import compile_host
from virthost.emit import Emitter, render_links, render_plan
from virthost.errors import error_handler
from virthost.models.resource import Service, Socket
from virthost.output.formatter import output
from virthost.utils.diff import show_diff, unified_diff

console = Console()


@error_handler
def plan(
    config: ConfigOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Compile the config and list the resources it declares."""
    compiled = load_plan(config)
    if not compiled.resources:
        console.print("[yellow]libvirtd is not enabled; nothing is managed.[/]")
        return
    output(
        compiled,
        fmt,
        columns=["Kind", "Id", "Detail", "Produced by"],
        rows=plan_rows(compiled),
        title="Resource plan",
    )


@error_handler
def order(
    config: ConfigOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List units in the order the service manager may start them."""
    compiled = load_plan(config)
    rows = []
    for position, unit_id in enumerate(compiled.start_order, start=1):
        unit = compiled.get(unit_id)
        if isinstance(unit, Service):
            after = ", ".join(sorted(unit.ordering_dependencies))
            trigger = unit.activation.value
        elif isinstance(unit, Socket):
            after, trigger = "", "boot"
        else:
            after, trigger = "", "external"
        rows.append([position, unit_id, trigger, after])
    output(
        {"start_order": list(compiled.start_order)},
        fmt,
        columns=["#", "Unit", "Activation", "After"],
        rows=rows,
        title="Start order",
    )


@error_handler
def emit(
    config: ConfigOpt = None,
    root: RootOpt = Path("/"),
) -> None:
    """Write units and managed files below ROOT."""
    compiled = load_plan(config)
    report = Emitter(root).emit(compiled)
    for path in report.written:
        console.print(f"  [green]wrote[/] {path}")
    for path in report.linked:
        console.print(f"  [green]linked[/] {path}")
    for path in report.skipped:
        console.print(f"  [dim]kept[/] {path}")
    console.print(
        f"{len(report.written)} written, {len(report.unchanged)} unchanged, "
        f"{len(report.skipped)} kept, {len(report.linked)} linked."
    )


@error_handler
def diff(
    config: ConfigOpt = None,
    root: RootOpt = Path("/"),
) -> None:
    """Show what emit would change below ROOT."""
    compiled = load_plan(config)
    emitter = Emitter(root)
    changed = 0
    for item in render_plan(compiled):
        dest = emitter.target(item.path)
        current = dest.read_text() if dest.exists() else None
        lines = unified_diff(item.path, current, item.content)
        if lines:
            changed += 1
            show_diff(lines, console)
    for link in render_links(compiled):
        dest = emitter.target(link.path)
        if not dest.is_symlink() or os.readlink(dest) != str(link.target):
            changed += 1
            console.print(f"[green]+ link[/] {link.path} -> {link.target}")
    if not changed:
        console.print("[green]No differences.[/]")


@error_handler
def watch(
    config: ConfigOpt = None,
    root: RootOpt = Path("/"),
) -> None:
    """Re-emit whenever the config file changes."""
    from virthost.utils.file_watcher import watch_config

    mgr = get_manager(config)
    emitter = Emitter(root)

    def _recompile() -> None:
        report = emitter.emit(compile_host(mgr.reload()))
        console.print(f"  [green]{len(report.written)} file(s) updated[/]")

    _recompile()
    console.print(f"Watching [bold]{mgr.config_path}[/] (Ctrl+C to stop)")
    watch_config(mgr.config_path, _recompile, console)
