"""Root Typer app: global options and command registration."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from virthost import __version__
from virthost.commands import build, config_cmd, runtime
from virthost.errors import err_console

app = typer.Typer(
    name="virthost",
    help="Compile a libvirt/QEMU host configuration into systemd units and files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    if value:
        print(f"virthost {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every action taken."),
) -> None:
    """virthost: declarative virtualization host configuration."""
    configure_logging(verbose)


# Register command groups
app.add_typer(config_cmd.app, name="config")

app.command("plan")(build.plan)
app.command("order")(build.order)
app.command("emit")(build.emit)
app.command("diff")(build.diff)
app.command("watch")(build.watch)
app.command("setup")(runtime.setup)
app.command("apply")(runtime.apply)
app.command("status")(runtime.status)


def main() -> None:
    app()
