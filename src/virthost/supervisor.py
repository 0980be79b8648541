"""Thin adapter over ``systemctl`` for applying emitted units."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from virthost.errors import RuntimeServiceFailure
from virthost.models.plan import ResourcePlan
from virthost.models.resource import Service, Socket

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass
class ApplyReport:
    restarted: list[str] = field(default_factory=list)
    held: list[str] = field(default_factory=list)


class Systemctl:
    """Runs systemctl; *runner* is injectable for tests."""

    def __init__(self, runner: Runner = subprocess.run, binary: str = "systemctl") -> None:
        self._run = runner
        self.binary = binary

    def _call(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running %s", " ".join(cmd))
        return self._run(cmd, check=check, capture_output=True, text=True)

    def daemon_reload(self) -> None:
        self._call("daemon-reload")

    def restart(self, unit: str) -> None:
        self._call("try-restart", unit)

    def state(self, unit: str) -> str:
        # is-active exits non-zero for anything but "active"
        result = self._call("is-active", unit, check=False)
        return (result.stdout or "").strip() or "unknown"

    def states(self, unit_names: Sequence[str]) -> dict[str, str]:
        return {name: self.state(name) for name in unit_names}


def managed_units(plan: ResourcePlan) -> list[str]:
    return [r.name for r in plan.resources if isinstance(r, (Service, Socket))]


def apply_changes(plan: ResourcePlan, changed_units: Sequence[str], systemctl: Systemctl) -> ApplyReport:
    """Reload unit files and restart changed units that allow it.

    Services declaring ``restart_if_changed=False`` are never restarted
    here; the new definition takes effect on their next start.
    """
    report = ApplyReport()
    systemctl.daemon_reload()
    for name in changed_units:
        resource = plan.get(name)
        if isinstance(resource, Service) and not resource.restart_if_changed:
            logger.info("Not restarting %s (restart on change disabled)", name)
            report.held.append(name)
            continue
        systemctl.restart(name)
        report.restarted.append(name)
    return report


def failed_units(states: dict[str, str]) -> list[str]:
    return [name for name, state in states.items() if state == "failed"]


def check_health(plan: ResourcePlan, systemctl: Systemctl) -> dict[str, str]:
    """Return unit states, raising RuntimeServiceFailure if any unit failed."""
    states = systemctl.states(managed_units(plan))
    failed = failed_units(states)
    if failed:
        raise RuntimeServiceFailure(failed)
    return states
