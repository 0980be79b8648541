"""Pydantic models for the host configuration."""

from __future__ import annotations

import platform
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from virthost.config.constants import (
    AARCH64_NAMES,
    DEFAULT_SETUP_EXECUTABLE,
    SYSTEM_CONFIG_FILE,
)

BootPolicy = Literal["start", "ignore"]
ShutdownPolicy = Literal["shutdown", "suspend"]

REMOVED_OPTIONS: dict[str, str] = {
    "enable_kvm": "Set the option `packages.qemu' instead.",
}


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PackageSelection(_Section):
    """Installation prefixes of the packages the stack is built from."""

    libvirt: Path = Field(default=Path("/usr"), description="libvirt installation prefix")
    qemu: Path = Field(
        default=Path("/usr"),
        description="QEMU installation prefix; a full build can emulate alien architectures",
    )
    ovmf: Path = Field(
        default=Path("/usr/share/edk2"),
        description="UEFI firmware prefix containing an FV/ directory",
    )


class SecurityConfig(_Section):
    polkit_enable: bool = Field(default=True, description="Whether polkit is enabled on the host")


class VSwitchConfig(_Section):
    """Open vSwitch integration."""

    enable: bool = False
    package: Path = Field(default=Path("/usr"), description="Open vSwitch installation prefix")


class HostConfig(_Section):
    """Root configuration model.

    Instances are immutable; derive a changed copy with ``model_copy(update=...)``.
    Such copies skip validation, so ``compile_host`` validates its input again.
    """

    enable: bool = Field(
        default=False,
        description="Manage libvirtd. Members of the libvirtd group may control the daemon.",
    )
    packages: PackageSelection = Field(default_factory=PackageSelection)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    vswitch: VSwitchConfig = Field(default_factory=VSwitchConfig)
    extra_config: str = Field(default="", description="Appended verbatim to libvirtd.conf")
    qemu_run_as_root: bool = Field(
        default=True,
        description="Run QEMU as root; when false QEMU runs as qemu-libvirtd",
    )
    qemu_verbatim_config: str = Field(
        default="namespaces = []\n", description="Appended verbatim to qemu.conf",
    )
    qemu_ovmf: bool = Field(default=True, description="Expose OVMF firmware for UEFI guests")
    extra_options: list[str] = Field(
        default_factory=list, description="Extra command line arguments for libvirtd",
    )
    on_boot: BootPolicy = Field(
        default="start", description="Restart guests that were running at shutdown",
    )
    on_shutdown: ShutdownPolicy = Field(
        default="suspend", description="How guests are halted when the host goes down",
    )
    allowed_bridges: list[str] = Field(
        default_factory=lambda: ["virbr0"],
        description="Bridge devices usable by qemu:///session",
    )
    target_arch: str = Field(default_factory=platform.machine)
    setup_executable: str = DEFAULT_SETUP_EXECUTABLE
    config_file: Path = SYSTEM_CONFIG_FILE

    @model_validator(mode="before")
    @classmethod
    def reject_removed_options(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for key, hint in REMOVED_OPTIONS.items():
                if key in data:
                    raise ValueError(f"The option `{key}' has been removed. {hint}")
        return data

    @field_validator("extra_config", "qemu_verbatim_config")
    @classmethod
    def validate_text_block(cls, v: str) -> str:
        if "\x00" in v:
            raise ValueError("text blocks must not contain NUL bytes")
        return v

    @field_validator("extra_options")
    @classmethod
    def validate_options(cls, v: list[str]) -> list[str]:
        for option in v:
            if any(ord(ch) < 32 or ord(ch) == 127 for ch in option):
                raise ValueError(f"control character in option {option!r}")
        return v

    @field_validator("allowed_bridges")
    @classmethod
    def validate_bridges(cls, v: list[str]) -> list[str]:
        for name in v:
            if not name or any(ch.isspace() for ch in name):
                raise ValueError(f"invalid bridge name {name!r}")
        return v

    @field_validator("setup_executable")
    @classmethod
    def validate_executable(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("setup_executable must be an absolute path")
        return v

    @property
    def ovmf_prefix(self) -> str:
        """Firmware image prefix for the target architecture."""
        if self.target_arch.lower() in AARCH64_NAMES:
            return "AAVMF"
        return "OVMF"
