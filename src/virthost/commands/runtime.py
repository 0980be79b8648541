"""Runtime commands: setup step, applying units, unit status."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from virthost.commands._common import ConfigOpt, RootOpt, load_plan
from virthost.emit import Emitter
from virthost.errors import RuntimeServiceFailure, error_handler
from virthost.output.tables import state_table
from virthost.setup import run_setup
from virthost.supervisor import Systemctl, apply_changes, failed_units, managed_units

console = Console()


def _systemctl() -> Systemctl:
    return Systemctl()


@error_handler
def setup(
    config: ConfigOpt = None,
    root: RootOpt = Path("/"),
) -> None:
    """Run the one-shot setup step (seed data, qemu.conf, stable links)."""
    report = run_setup(load_plan(config), root)
    console.print(
        f"{len(report.seeded)} seeded, {len(report.kept)} kept, "
        f"{len(report.written)} written, {len(report.linked)} linked."
    )


@error_handler
def apply(
    config: ConfigOpt = None,
) -> None:
    """Emit to /, reload the service manager, and restart changed units."""
    compiled = load_plan(config)
    report = Emitter().emit(compiled)
    result = apply_changes(compiled, report.changed_units, _systemctl())
    for unit in result.restarted:
        console.print(f"  [green]restarted[/] {unit}")
    for unit in result.held:
        console.print(f"  [yellow]not restarted[/] {unit} (restart on change disabled)")
    console.print(f"{len(report.written)} file(s) written.")


@error_handler
def status(
    config: ConfigOpt = None,
) -> None:
    """Show the state of every managed unit."""
    compiled = load_plan(config)
    states = _systemctl().states(managed_units(compiled))
    console.print(state_table(states, title="Managed units"))
    failed = failed_units(states)
    if failed:
        raise RuntimeServiceFailure(failed)
