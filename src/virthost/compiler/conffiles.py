"""Generated configuration file contents.

All renderers are pure: identical configurations give byte-identical text.
Verbatim blocks from the configuration are appended as-is.
"""

from __future__ import annotations

from virthost.config.constants import OVMF_DIR, QEMU_USER
from virthost.config.models import HostConfig


def _join(lines: list[str], verbatim: str = "") -> str:
    text = "".join(f"{line}\n" for line in lines)
    if verbatim:
        text += verbatim if verbatim.endswith("\n") else verbatim + "\n"
    return text


def libvirtd_conf(cfg: HostConfig) -> str:
    """Primary daemon configuration: polkit auth on both unix sockets."""
    return _join(
        [
            'auth_unix_ro = "polkit"',
            'auth_unix_rw = "polkit"',
        ],
        cfg.extra_config,
    )


def firmware_names(cfg: HostConfig) -> tuple[str, str]:
    """Code and variable-store image names for the target architecture."""
    prefix = cfg.ovmf_prefix
    return f"{prefix}_CODE.fd", f"{prefix}_VARS.fd"


def qemu_conf(cfg: HostConfig) -> str:
    """QEMU driver configuration, rewritten on every setup run."""
    lines: list[str] = []
    if cfg.qemu_ovmf:
        code, variables = firmware_names(cfg)
        lines.append(f'nvram = [ "{OVMF_DIR / code}:{OVMF_DIR / variables}" ]')
    if not cfg.qemu_run_as_root:
        lines.append(f'user = "{QEMU_USER}"')
        lines.append(f'group = "{QEMU_USER}"')
    return _join(lines, cfg.qemu_verbatim_config)


def bridge_conf(cfg: HostConfig) -> str:
    """qemu-bridge-helper ACL, one ``allow`` line per bridge in input order."""
    return _join([f"allow {bridge}" for bridge in cfg.allowed_bridges])
