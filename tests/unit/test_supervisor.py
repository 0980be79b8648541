"""Tests for the systemctl adapter."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock

import pytest

from virthost.compiler import compile_host
from virthost.config.models import HostConfig
from virthost.errors import RuntimeServiceFailure
from virthost.supervisor import (
    Systemctl,
    apply_changes,
    check_health,
    failed_units,
    managed_units,
)


def _runner(states: dict[str, str] | None = None) -> MagicMock:
    states = states or {}

    def run(cmd, **kwargs):
        stdout = ""
        if cmd[1] == "is-active":
            stdout = states.get(cmd[2], "active") + "\n"
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    return MagicMock(side_effect=run)


class TestSystemctl:
    def test_daemon_reload(self):
        runner = _runner()
        Systemctl(runner).daemon_reload()
        runner.assert_called_once_with(
            ["systemctl", "daemon-reload"], check=True, capture_output=True, text=True
        )

    def test_state(self):
        runner = _runner({"libvirtd.service": "inactive"})
        assert Systemctl(runner).state("libvirtd.service") == "inactive"
        assert runner.call_args.kwargs["check"] is False

    def test_state_empty_output(self):
        runner = MagicMock(return_value=subprocess.CompletedProcess([], 4, stdout="", stderr=""))
        assert Systemctl(runner).state("x.service") == "unknown"


class TestApplyChanges:
    def test_reload_first(self, host_config: HostConfig):
        runner = _runner()
        apply_changes(compile_host(host_config), ["libvirtd-config.service"], Systemctl(runner))
        assert runner.call_args_list[0].args[0] == ["systemctl", "daemon-reload"]

    def test_daemon_never_restarted(self, host_config: HostConfig):
        runner = _runner()
        report = apply_changes(
            compile_host(host_config),
            [
                "libvirtd.service",
                "virtlogd.service",
                "libvirt-guests.service",
                "libvirtd-config.service",
            ],
            Systemctl(runner),
        )
        assert report.held == ["libvirtd.service", "virtlogd.service", "libvirt-guests.service"]
        assert report.restarted == ["libvirtd-config.service"]
        commands = [c.args[0] for c in runner.call_args_list]
        assert ["systemctl", "try-restart", "libvirtd.service"] not in commands
        assert ["systemctl", "try-restart", "libvirtd-config.service"] in commands

    def test_sockets_restart(self, host_config: HostConfig):
        report = apply_changes(compile_host(host_config), ["libvirtd.socket"], Systemctl(_runner()))
        assert report.restarted == ["libvirtd.socket"]

    def test_nothing_changed(self, host_config: HostConfig):
        runner = _runner()
        report = apply_changes(compile_host(host_config), [], Systemctl(runner))
        assert report.restarted == [] and report.held == []
        assert runner.call_count == 1


class TestHealth:
    def test_managed_units(self, host_config: HostConfig):
        names = managed_units(compile_host(host_config))
        assert "libvirtd.socket" in names
        assert "libvirtd-config.service" in names
        assert "multi-user.target" not in names

    def test_failed_units(self):
        assert failed_units({"a": "active", "b": "failed", "c": "inactive"}) == ["b"]

    def test_healthy(self, host_config: HostConfig):
        states = check_health(compile_host(host_config), Systemctl(_runner()))
        assert set(states.values()) == {"active"}

    def test_failed_raises(self, host_config: HostConfig):
        runner = _runner({"libvirtd-config.service": "failed"})
        with pytest.raises(RuntimeServiceFailure) as exc_info:
            check_health(compile_host(host_config), Systemctl(runner))
        assert exc_info.value.exit_code == 7
        assert "libvirtd-config.service" in str(exc_info.value)
