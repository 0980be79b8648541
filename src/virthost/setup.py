"""The one-shot setup step run by the configuration service.

Safe to repeat: seed files are copied only when absent, links are
created-or-replaced, and fully generated files are rewritten in place.
"""

from __future__ import annotations

import glob
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from virthost.config.constants import SETUP_UNIT
from virthost.errors import SetupExecutionError
from virthost.models.plan import ResourcePlan
from virthost.models.resource import (
    GeneratedFile,
    OverwritePolicy,
    SeedData,
    SymlinkSet,
)
from virthost.utils.fs import force_symlink, relocate, write_atomic

logger = logging.getLogger(__name__)


@dataclass
class SetupReport:
    seeded: list[Path] = field(default_factory=list)
    kept: list[Path] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    linked: list[Path] = field(default_factory=list)


def seed(decl: SeedData, root: Path, report: SetupReport) -> None:
    """Copy default data files that do not exist yet; never clobber."""
    if not decl.source_root.is_dir():
        raise SetupExecutionError(f"Seed data directory {decl.source_root} does not exist")
    dest_root = relocate(root, decl.dest_root)
    for pattern in decl.patterns:
        for match in sorted(glob.glob(str(decl.source_root / pattern))):
            source = Path(match)
            dest = dest_root / source.relative_to(decl.source_root)
            dest.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
            if dest.exists() or dest.is_symlink():
                logger.debug("Keeping existing %s", dest)
                report.kept.append(dest)
                continue
            # Autostart entries are symlinks and stay symlinks
            if source.is_symlink():
                os.symlink(os.readlink(source), dest)
            else:
                shutil.copy2(source, dest)
            logger.info("Seeded %s", dest)
            report.seeded.append(dest)


def generate(decl: GeneratedFile, root: Path, report: SetupReport) -> None:
    dest = relocate(root, decl.path)
    if decl.overwrite is OverwritePolicy.NEVER_IF_EXISTS and dest.exists():
        report.kept.append(dest)
        return
    write_atomic(dest, decl.content, decl.mode)
    report.written.append(dest)


def _link_sources(decl: SymlinkSet) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for entry in decl.entries:
        if entry.is_glob:
            matches = sorted(glob.glob(entry.source))
            if not matches and not entry.optional:
                raise SetupExecutionError(f"No files match {entry.source}")
            pairs.extend((m, os.path.basename(m)) for m in matches)
        elif os.path.lexists(entry.source):
            pairs.append((entry.source, entry.dest_name or os.path.basename(entry.source)))
        elif entry.optional:
            logger.debug("Skipping absent %s", entry.source)
        else:
            raise SetupExecutionError(f"Link source {entry.source} does not exist")
    return pairs


def link(decl: SymlinkSet, root: Path, report: SetupReport) -> None:
    target_dir = relocate(root, decl.target_dir)
    pairs = _link_sources(decl)
    target_dir.mkdir(parents=True, exist_ok=True)
    for source, name in pairs:
        dest = target_dir / name
        if force_symlink(dest, source):
            logger.info("Linked %s -> %s", dest, source)
        report.linked.append(dest)


def run_setup(
    plan: ResourcePlan,
    root: Path = Path("/"),
    producer: str = SETUP_UNIT,
) -> SetupReport:
    """Materialize every declaration *producer* is responsible for."""
    report = SetupReport()
    try:
        for decl in plan.produced_by(producer):
            if isinstance(decl, SeedData):
                seed(decl, root, report)
            elif isinstance(decl, GeneratedFile):
                generate(decl, root, report)
            elif isinstance(decl, SymlinkSet):
                link(decl, root, report)
    except OSError as exc:
        raise SetupExecutionError(f"Setup failed: {exc}") from exc
    return report
