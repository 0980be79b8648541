"""Integration tests for plan, order, emit, and diff."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from virthost.app import app

runner = CliRunner()


class TestPlan:
    def test_json(self, config_file: Path):
        result = runner.invoke(app, ["plan", "-c", str(config_file), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        kinds = {r["kind"] for r in data["resources"]}
        assert {"service", "socket", "file", "symlinks", "user", "group"} <= kinds
        assert data["start_order"][0] == "multi-user.target"

    def test_table(self, config_file: Path):
        result = runner.invoke(app, ["plan", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "Resource plan" in result.output

    def test_disabled(self, write_config):
        path = write_config({"enable": False})
        result = runner.invoke(app, ["plan", "-c", str(path)])
        assert result.exit_code == 0
        assert "not enabled" in result.output

    def test_invalid_config(self, write_config):
        path = write_config({"enable": True, "allowed_bridges": ["bad bridge"]})
        result = runner.invoke(app, ["plan", "-c", str(path)])
        assert result.exit_code == 3

    def test_unknown_format(self, config_file: Path):
        result = runner.invoke(app, ["plan", "-c", str(config_file), "--format", "xml"])
        assert result.exit_code == 1


class TestOrder:
    def test_setup_before_daemon(self, config_file: Path):
        result = runner.invoke(app, ["order", "-c", str(config_file), "-f", "json"])
        assert result.exit_code == 0
        order = json.loads(result.output)["start_order"]
        assert order.index("libvirtd-config.service") < order.index("libvirtd.service")
        assert order.index("libvirtd.socket") < order.index("libvirtd.service")

    def test_table(self, config_file: Path):
        result = runner.invoke(app, ["order", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "libvirtd.service" in result.output


class TestEmit:
    def test_writes_below_root(self, config_file: Path, host_root: Path):
        result = runner.invoke(app, ["emit", "-c", str(config_file), "--root", str(host_root)])
        assert result.exit_code == 0
        assert (host_root / "etc/systemd/system/libvirtd.service").is_file()
        assert (host_root / "etc/polkit-1/rules.d/50-virthost.rules").is_file()
        assert (host_root / "etc/systemd/system/sockets.target.wants/libvirtd.socket").is_symlink()

    def test_second_emit_writes_nothing(self, config_file: Path, host_root: Path):
        runner.invoke(app, ["emit", "-c", str(config_file), "--root", str(host_root)])
        result = runner.invoke(app, ["emit", "-c", str(config_file), "--root", str(host_root)])
        assert result.exit_code == 0
        assert "0 written" in result.output


class TestDiff:
    def test_fresh_root(self, config_file: Path, host_root: Path):
        result = runner.invoke(app, ["diff", "-c", str(config_file), "--root", str(host_root)])
        assert result.exit_code == 0
        assert "/dev/null" in result.output
        assert "sockets.target.wants" in result.output

    def test_after_emit(self, config_file: Path, host_root: Path):
        runner.invoke(app, ["emit", "-c", str(config_file), "--root", str(host_root)])
        result = runner.invoke(app, ["diff", "-c", str(config_file), "--root", str(host_root)])
        assert result.exit_code == 0
        assert "No differences" in result.output
        assert not any(host_root.rglob("*.tmp"))
