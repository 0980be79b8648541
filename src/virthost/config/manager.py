"""Configuration manager: locate, read, and write the TOML host config."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import pydantic
import tomli_w

from virthost.config.constants import (
    ENV_CONFIG,
    ENV_TARGET_ARCH,
    SYSTEM_CONFIG_FILE,
    USER_CONFIG_FILE,
)
from virthost.config.models import HostConfig
from virthost.errors import ConfigurationError, ValidationError

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

logger = logging.getLogger(__name__)


def resolve_config_path(path: Path | None = None) -> Path:
    """Pick the config file.

    Precedence: explicit path > env var > user config (if present) > system config.
    """
    if path is not None:
        return path
    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path)
    if USER_CONFIG_FILE.exists():
        return USER_CONFIG_FILE
    return SYSTEM_CONFIG_FILE


def parse_host_config(data: dict[str, Any]) -> HostConfig:
    """Validate raw mapping data into a HostConfig, raising ValidationError."""
    try:
        return HostConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        errors = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err["loc"]) or "config"
            errors.append(f"{loc}: {err['msg']}")
        raise ValidationError("Invalid host configuration", errors) from None


class ConfigManager:
    """Manages the host configuration on disk."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = resolve_config_path(config_path)
        self._config: HostConfig | None = None

    @property
    def config(self) -> HostConfig:
        if self._config is None:
            self._config = self._load()
        return self._config

    def read_raw(self) -> dict[str, Any]:
        if not self.config_path.exists():
            raise ConfigurationError(
                f"No configuration file at {self.config_path}. "
                f"Run 'virthost config init' or set {ENV_CONFIG}."
            )
        try:
            return tomllib.loads(self.config_path.read_text())
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Cannot parse {self.config_path}: {exc}") from None

    def _load(self) -> HostConfig:
        data = self.read_raw()
        data.setdefault("config_file", str(self.config_path))
        env_arch = os.environ.get(ENV_TARGET_ARCH)
        if env_arch:
            data["target_arch"] = env_arch
        config = parse_host_config(data)
        logger.debug("Loaded configuration from %s", self.config_path)
        return config

    def reload(self) -> HostConfig:
        self._config = None
        return self.config

    def save(self, config: HostConfig) -> None:
        """Write *config* atomically, keeping only non-default values."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(mode="json", exclude_defaults=True)
        # The path is implied by where the file lives
        if data.get("config_file") == str(self.config_path):
            del data["config_file"]
        temp = self.config_path.with_suffix(".tmp")
        fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        try:
            os.write(fd, tomli_w.dumps(data).encode())
        finally:
            os.close(fd)
        temp.rename(self.config_path)
        self._config = config
