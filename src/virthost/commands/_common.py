"""Shared helpers for CLI commands: options, config loading, plan rows."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from virthost.compiler import compile_host
from virthost.config.manager import ConfigManager
from virthost.models.plan import ResourcePlan
from virthost.models.resource import (
    AuthorizationRule,
    GeneratedFile,
    KernelModule,
    PrincipalGroup,
    PrincipalUser,
    PrivilegeGrant,
    Resource,
    SeedData,
    Service,
    Socket,
    SymlinkSet,
)

# Shared Typer option type aliases
ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Host config file"),
]
RootOpt = Annotated[
    Path,
    typer.Option("--root", help="Emission root (prefix for every managed path)"),
]
FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format"),
]


def get_manager(config: Path | None) -> ConfigManager:
    return ConfigManager(config_path=config)


def load_plan(config: Path | None) -> ResourcePlan:
    """Load and validate the config, then compile it."""
    return compile_host(get_manager(config).config)


def describe(resource: Resource) -> str:
    """One-line human summary of a declaration."""
    if isinstance(resource, Service):
        text = f"{resource.service_type}, starts on {resource.activation.value}"
        if resource.depends_on:
            text += f", requires {' '.join(resource.depends_on)}"
        return text
    if isinstance(resource, Socket):
        return f"{' '.join(str(p) for p in resource.listen_paths)} -> {resource.service}"
    if isinstance(resource, GeneratedFile):
        return f"{resource.path} ({resource.overwrite.value})"
    if isinstance(resource, SymlinkSet):
        return f"{len(resource.entries)} entries in {resource.target_dir}"
    if isinstance(resource, SeedData):
        return f"{resource.source_root} -> {resource.dest_root}"
    if isinstance(resource, PrincipalGroup):
        return f"gid {resource.gid}"
    if isinstance(resource, PrincipalUser):
        return f"uid {resource.uid}, group {resource.group}"
    if isinstance(resource, PrivilegeGrant):
        return f"{resource.wrapper_path} (setuid={resource.setuid})"
    if isinstance(resource, AuthorizationRule):
        return f"{resource.group} -> {resource.result}"
    if isinstance(resource, KernelModule):
        return "load at boot"
    return ""


def plan_rows(plan: ResourcePlan) -> list[list[Any]]:
    return [
        [r.kind, r.id, describe(r), getattr(r, "producer", None) or ""]
        for r in plan.resources
    ]
