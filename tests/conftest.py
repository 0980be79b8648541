"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import tomli_w

from virthost.config.manager import ConfigManager
from virthost.config.models import HostConfig, PackageSelection


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VIRTHOST_CONFIG", raising=False)
    monkeypatch.delenv("VIRTHOST_TARGET_ARCH", raising=False)


def _touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def packages(tmp_path: Path) -> PackageSelection:
    """Fake libvirt, qemu, and OVMF installation prefixes."""
    libvirt = tmp_path / "pkgs" / "libvirt"
    qemu = tmp_path / "pkgs" / "qemu"
    ovmf = tmp_path / "pkgs" / "ovmf"

    networks = libvirt / "var/lib/libvirt/qemu/networks"
    _touch(networks / "default.xml", "<network><name>default</name></network>\n")
    (networks / "autostart").mkdir()
    os.symlink("../default.xml", networks / "autostart" / "default.xml")
    _touch(libvirt / "var/lib/libvirt/nwfilter/clean-traffic.xml", "<filter/>\n")
    _touch(libvirt / "var/lib/libvirt/nwfilter/no-spoofing.xml", "<filter/>\n")
    _touch(libvirt / "libexec/libvirt_lxc")
    _touch(libvirt / "sbin/libvirtd")

    _touch(qemu / "bin/qemu-kvm")
    _touch(qemu / "bin/qemu-system-x86_64")
    _touch(qemu / "bin/qemu-system-aarch64")
    _touch(qemu / "bin/qemu-pr-helper")
    _touch(qemu / "libexec/qemu-bridge-helper")

    for prefix in ("OVMF", "AAVMF"):
        _touch(ovmf / "FV" / f"{prefix}_CODE.fd", f"{prefix} code")
        _touch(ovmf / "FV" / f"{prefix}_VARS.fd", f"{prefix} vars")

    return PackageSelection(libvirt=libvirt, qemu=qemu, ovmf=ovmf)


@pytest.fixture
def host_config(packages: PackageSelection) -> HostConfig:
    """An enabled configuration on an x86_64 target."""
    return HostConfig(enable=True, target_arch="x86_64", packages=packages)


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """Emission / setup root standing in for /."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a TOML config file and return its path."""

    def _write(data: dict) -> Path:
        path = tmp_path / "etc" / "config.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tomli_w.dumps(data))
        return path

    return _write


@pytest.fixture
def config_file(write_config, packages: PackageSelection) -> Path:
    return write_config({
        "enable": True,
        "target_arch": "x86_64",
        "packages": {
            "libvirt": str(packages.libvirt),
            "qemu": str(packages.qemu),
            "ovmf": str(packages.ovmf),
        },
    })


@pytest.fixture
def config_manager(config_file: Path) -> ConfigManager:
    return ConfigManager(config_path=config_file)


def _snapshot(root: Path) -> dict[str, str]:
    """Map every path below *root* to its content or link target."""
    state: dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = Path(dirpath) / name
            rel = str(path.relative_to(root))
            if path.is_symlink():
                state[rel] = "-> " + os.readlink(path)
            elif path.is_file():
                state[rel] = path.read_text()
            else:
                state[rel] = "<dir>"
    return state


@pytest.fixture
def snapshot():
    """Return a function capturing the on-disk state below a root."""
    return _snapshot
