"""Emission: write units and managed files below an emission root."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from virthost.config.constants import (
    MODULES_LOAD_FILE,
    POLKIT_RULES_FILE,
    SYSUSERS_FILE,
    TMPFILES_FILE,
    UNIT_DIR,
)
from virthost.emit import units
from virthost.models.plan import ResourcePlan
from virthost.models.resource import (
    AuthorizationRule,
    GeneratedFile,
    KernelModule,
    OverwritePolicy,
    PrincipalGroup,
    PrincipalUser,
    PrivilegeGrant,
    Service,
    Socket,
)
from virthost.utils.fs import force_symlink, relocate, write_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmittedFile:
    """One file emission would write; *path* is the absolute host path."""

    path: Path
    content: str
    overwrite: OverwritePolicy = OverwritePolicy.ALWAYS
    mode: int = 0o644
    unit: str | None = None


@dataclass(frozen=True)
class EmittedLink:
    """A ``<target>.wants/`` symlink enabling a unit, as ``systemctl enable`` would."""

    path: Path
    target: Path


@dataclass
class EmitReport:
    written: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    linked: list[Path] = field(default_factory=list)
    changed_units: list[str] = field(default_factory=list)


def render_plan(plan: ResourcePlan) -> list[EmittedFile]:
    """Everything emission writes for *plan*, without touching the disk.

    Declarations produced by the setup service are left to ``virthost setup``.
    """
    files: list[EmittedFile] = []
    for resource in plan.resources:
        if isinstance(resource, Service):
            files.append(EmittedFile(
                Path("/") / UNIT_DIR / resource.name,
                units.render_service(resource),
                unit=resource.name,
            ))
        elif isinstance(resource, Socket):
            files.append(EmittedFile(
                Path("/") / UNIT_DIR / resource.name,
                units.render_socket(resource),
                unit=resource.name,
            ))
        elif isinstance(resource, GeneratedFile) and resource.producer is None:
            files.append(EmittedFile(
                resource.path, resource.content, resource.overwrite, resource.mode,
            ))

    groups = plan.of_kind(PrincipalGroup)
    users = plan.of_kind(PrincipalUser)
    if groups or users:
        files.append(EmittedFile(Path("/") / SYSUSERS_FILE, units.render_sysusers(groups, users)))
    grants = plan.of_kind(PrivilegeGrant)
    if grants:
        files.append(EmittedFile(Path("/") / TMPFILES_FILE, units.render_tmpfiles(grants)))
    modules = plan.of_kind(KernelModule)
    if modules:
        files.append(EmittedFile(Path("/") / MODULES_LOAD_FILE, units.render_modules_load(modules)))
    rules = plan.of_kind(AuthorizationRule)
    if rules:
        files.append(EmittedFile(Path("/") / POLKIT_RULES_FILE, units.render_polkit_rules(rules)))
    return files


def render_links(plan: ResourcePlan) -> list[EmittedLink]:
    """The wants links for every unit that declares an install target."""
    links: list[EmittedLink] = []
    for resource in plan.resources:
        if isinstance(resource, (Service, Socket)):
            unit_file = Path("/") / UNIT_DIR / resource.name
            for target in resource.wanted_by:
                wants = Path("/") / UNIT_DIR / f"{target}.wants" / resource.name
                links.append(EmittedLink(wants, unit_file))
    return links


class Emitter:
    """Writes rendered files under *root*; never deletes or starts anything."""

    def __init__(self, root: Path = Path("/")) -> None:
        self.root = root

    def target(self, path: Path) -> Path:
        return relocate(self.root, path)

    def emit(self, plan: ResourcePlan) -> EmitReport:
        report = EmitReport()
        for item in render_plan(plan):
            dest = self.target(item.path)
            if dest.exists():
                if item.overwrite is OverwritePolicy.NEVER_IF_EXISTS:
                    logger.debug("Keeping existing %s", dest)
                    report.skipped.append(dest)
                    continue
                if dest.read_text() == item.content:
                    report.unchanged.append(dest)
                    continue
            write_atomic(dest, item.content, item.mode)
            logger.info("Wrote %s", dest)
            report.written.append(dest)
            if item.unit is not None:
                report.changed_units.append(item.unit)
        for link in render_links(plan):
            dest = self.target(link.path)
            dest.parent.mkdir(parents=True, exist_ok=True)
            if force_symlink(dest, str(link.target)):
                logger.info("Linked %s -> %s", dest, link.target)
                report.linked.append(dest)
        return report
