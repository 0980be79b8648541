"""Default paths, environment variable names, and fixed identifiers."""

from __future__ import annotations

from pathlib import Path

import platformdirs

APP_NAME = "virthost"

SYSTEM_CONFIG_FILE = Path("/etc/virthost/config.toml")
USER_CONFIG_FILE = platformdirs.user_config_path(APP_NAME) / "config.toml"

# Environment variable names
ENV_CONFIG = "VIRTHOST_CONFIG"
ENV_TARGET_ARCH = "VIRTHOST_TARGET_ARCH"

DEFAULT_SETUP_EXECUTABLE = "/usr/bin/virthost"

# Host layout
DIR_NAME = "libvirt"
RUNTIME_DIR = Path("/run") / DIR_NAME
STATE_ROOT = Path("/var/lib")
STATE_DIR = STATE_ROOT / DIR_NAME
MANAGED_CONFIG_DIR = Path("/etc/virthost")
LIBVIRTD_CONF = MANAGED_CONFIG_DIR / "libvirtd.conf"
QEMU_CONF = Path("/etc") / DIR_NAME / "qemu.conf"
BRIDGE_CONF = Path("/etc/qemu/bridge.conf")
WRAPPER_DIR = Path("/run/wrappers/bin")

EMULATOR_DIR = RUNTIME_DIR / "emulators"
HELPER_DIR = RUNTIME_DIR / "helpers"
OVMF_DIR = RUNTIME_DIR / "ovmf"

# Emission targets, relative to the emission root
UNIT_DIR = Path("etc/systemd/system")
SYSUSERS_FILE = Path("etc/sysusers.d/virthost.conf")
TMPFILES_FILE = Path("etc/tmpfiles.d/virthost.conf")
MODULES_LOAD_FILE = Path("etc/modules-load.d/virthost.conf")
POLKIT_RULES_FILE = Path("etc/polkit-1/rules.d/50-virthost.rules")

# Principals
LIBVIRTD_GROUP = "libvirtd"
LIBVIRTD_GID = 67
QEMU_USER = "qemu-libvirtd"
QEMU_UID = 301
QEMU_GID = 301

MANAGE_ACTION_ID = "org.libvirt.unix.manage"

# Daemon defaults (from ${libvirt}/var/lib/sysconfig/libvirtd)
DAEMON_IDLE_TIMEOUT = 120
DAEMON_START_TIMEOUT = 90

# Unit names
SETUP_UNIT = "libvirtd-config.service"
DAEMON_UNIT = "libvirtd.service"
DAEMON_SOCKET = "libvirtd.socket"
DAEMON_RO_SOCKET = "libvirtd-ro.socket"
GUESTS_UNIT = "libvirt-guests.service"
VSWITCH_UNIT = "ovs-vswitchd.service"
MULTI_USER_TARGET = "multi-user.target"
SOCKETS_TARGET = "sockets.target"

AARCH64_NAMES = frozenset({"aarch64", "arm64", "armv8", "aarch64_be"})
