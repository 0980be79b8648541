"""Tests for config models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from virthost.config.models import HostConfig, PackageSelection


class TestHostConfigDefaults:
    def test_defaults(self):
        c = HostConfig()
        assert c.enable is False
        assert c.qemu_run_as_root is True
        assert c.qemu_ovmf is True
        assert c.on_boot == "start"
        assert c.on_shutdown == "suspend"
        assert c.allowed_bridges == ["virbr0"]
        assert c.extra_options == []
        assert c.qemu_verbatim_config == "namespaces = []\n"
        assert c.security.polkit_enable is True
        assert c.vswitch.enable is False

    def test_packages_default_prefix(self):
        p = PackageSelection()
        assert p.libvirt == Path("/usr")
        assert p.qemu == Path("/usr")

    def test_frozen(self):
        c = HostConfig()
        with pytest.raises(ValidationError):
            c.enable = True

    def test_model_copy_update(self):
        c = HostConfig().model_copy(update={"on_boot": "ignore"})
        assert c.on_boot == "ignore"


class TestHostConfigValidation:
    def test_on_boot_domain(self):
        with pytest.raises(ValidationError):
            HostConfig(on_boot="resume")

    def test_on_shutdown_domain(self):
        with pytest.raises(ValidationError):
            HostConfig(on_shutdown="poweroff")

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            HostConfig(on_boott="start")

    def test_removed_option(self):
        with pytest.raises(ValidationError, match="enable_kvm' has been removed"):
            HostConfig.model_validate({"enable_kvm": True})

    def test_bridge_name_without_whitespace(self):
        with pytest.raises(ValidationError, match="invalid bridge name"):
            HostConfig(allowed_bridges=["vir br0"])

    def test_empty_bridge_name(self):
        with pytest.raises(ValidationError):
            HostConfig(allowed_bridges=[""])

    def test_text_block_rejects_nul(self):
        with pytest.raises(ValidationError, match="NUL"):
            HostConfig(extra_config="log_level = 1\x00")

    def test_text_block_is_opaque(self):
        c = HostConfig(extra_config='not = "parsed" {{ at all')
        assert c.extra_config == 'not = "parsed" {{ at all'

    def test_setup_executable_absolute(self):
        with pytest.raises(ValidationError, match="absolute"):
            HostConfig(setup_executable="virthost")

    def test_extra_options_reject_line_breaks(self):
        with pytest.raises(ValidationError, match="control character"):
            HostConfig(extra_options=["--verbose\nExecStartPre=/bin/evil"])

    def test_extra_options_keep_spaces(self):
        c = HostConfig(extra_options=["--listen addr"])
        assert c.extra_options == ["--listen addr"]


class TestOvmfPrefix:
    @pytest.mark.parametrize("arch", ["aarch64", "arm64", "AArch64"])
    def test_arm64(self, arch):
        assert HostConfig(target_arch=arch).ovmf_prefix == "AAVMF"

    @pytest.mark.parametrize("arch", ["x86_64", "i686", "armv7l", "riscv64"])
    def test_other(self, arch):
        assert HostConfig(target_arch=arch).ovmf_prefix == "OVMF"
