"""Config commands: create, inspect, and validate the host config."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt

from virthost.commands._common import ConfigOpt, FormatOpt, get_manager
from virthost.compiler.compiler import check_prerequisites
from virthost.config.models import HostConfig
from virthost.errors import error_handler
from virthost.output.formatter import output

app = typer.Typer(name="config", help="Create and inspect the host configuration.")
console = Console()


@app.command()
@error_handler
def init(
    config: ConfigOpt = None,
    defaults: Annotated[bool, typer.Option("--defaults", help="Accept defaults without prompting")] = False,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
) -> None:
    """Setup wizard: write a config file enabling libvirtd."""
    mgr = get_manager(config)
    if mgr.config_path.exists() and not force:
        if defaults or not Confirm.ask(f"{mgr.config_path} exists. Overwrite?", default=False):
            console.print("[yellow]Keeping existing configuration.[/]")
            raise typer.Exit(1)

    values: dict = {"enable": True}
    if not defaults:
        console.print("[bold]virthost setup[/]\n")
        values["on_boot"] = Prompt.ask("On host boot", choices=["start", "ignore"], default="start")
        values["on_shutdown"] = Prompt.ask(
            "On host shutdown", choices=["suspend", "shutdown"], default="suspend",
        )
        values["qemu_run_as_root"] = Confirm.ask("Run QEMU as root?", default=True)
        values["qemu_ovmf"] = Confirm.ask("Enable UEFI (OVMF) firmware?", default=True)
        bridges = Prompt.ask("Bridges allowed for session guests", default="virbr0")
        values["allowed_bridges"] = bridges.split()

    cfg = HostConfig(config_file=mgr.config_path, **values)
    mgr.save(cfg)
    console.print(f"[green]Configuration written to {mgr.config_path}[/]")


@app.command()
@error_handler
def show(
    config: ConfigOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show the effective configuration, including derived values."""
    mgr = get_manager(config)
    cfg = mgr.config
    data = cfg.model_dump(mode="json")
    data["ovmf_prefix"] = cfg.ovmf_prefix
    if fmt == "table":
        # Flatten sections for the key/value table
        flat: dict[str, object] = {}
        for key, value in data.items():
            if isinstance(value, dict):
                flat.update({f"{key}.{k}": v for k, v in value.items()})
            else:
                flat[key] = value
        data = flat
    output(data, fmt, kv=True, title=f"Config: {mgr.config_path}")


@app.command()
@error_handler
def validate(config: ConfigOpt = None) -> None:
    """Validate the configuration and its prerequisites."""
    mgr = get_manager(config)
    check_prerequisites(mgr.config)
    console.print(f"[green]{mgr.config_path} is valid.[/]")


@app.command()
def path(config: ConfigOpt = None) -> None:
    """Print which config file would be used."""
    print(get_manager(config).config_path)
