"""Resource declarations produced by the compiler.

Each variant carries a ``kind`` tag so a plan can be serialized and read
back as a discriminated union. Every variant exposes an ``id`` unique
within one compilation; services, sockets, and external units use their
unit name as id.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ActivationTrigger(str, Enum):
    """What causes the service manager to start a unit."""

    BOOT = "boot"
    FIRST_CONNECTION = "first-connection"
    DEPENDENCY = "dependency"


class RestartPolicy(str, Enum):
    NO = "no"
    ON_FAILURE = "on-failure"
    ALWAYS = "always"


class OverwritePolicy(str, Enum):
    ALWAYS = "always"
    NEVER_IF_EXISTS = "never-if-exists"


class _Declaration(BaseModel):
    model_config = ConfigDict(frozen=True)


class Service(_Declaration):
    kind: Literal["service"] = "service"
    name: str
    description: str = ""
    service_type: Literal["simple", "oneshot", "notify"] = "simple"
    command: tuple[str, ...] = ()
    argv0: str | None = None
    stop_command: tuple[str, ...] = ()
    post_command: tuple[str, ...] = ()
    remain_after_exit: bool = False
    depends_on: tuple[str, ...] = ()
    run_after: tuple[str, ...] = ()
    wanted_by: tuple[str, ...] = ()
    activation: ActivationTrigger = ActivationTrigger.BOOT
    restart_policy: RestartPolicy = RestartPolicy.NO
    restart_if_changed: bool = True
    kill_mode: str | None = None
    start_timeout_sec: int | None = None
    environment: dict[str, str] = Field(default_factory=dict)
    path: tuple[Path, ...] = ()
    runtime_directories: tuple[str, ...] = ()
    runtime_directory_preserve: bool = False
    logs_directories: tuple[str, ...] = ()
    state_directories: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.name

    @property
    def ordering_dependencies(self) -> frozenset[str]:
        """Every unit this service must not start before."""
        return frozenset(self.depends_on) | frozenset(self.run_after)


class Socket(_Declaration):
    kind: Literal["socket"] = "socket"
    name: str
    description: str = ""
    listen_paths: tuple[Path, ...] = ()
    service: str
    wanted_by: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.name


class ExternalUnit(_Declaration):
    """A unit owned by the host or another module that declarations may reference."""

    kind: Literal["external"] = "external"
    name: str

    @property
    def id(self) -> str:
        return self.name


class GeneratedFile(_Declaration):
    kind: Literal["file"] = "file"
    path: Path
    content: str
    overwrite: OverwritePolicy = OverwritePolicy.ALWAYS
    mode: int = 0o644
    producer: str | None = None

    @property
    def id(self) -> str:
        return f"file:{self.path}"


class SymlinkEntry(_Declaration):
    """A link source; glob sources link every match under its own basename."""

    source: str
    dest_name: str | None = None
    optional: bool = False

    @property
    def is_glob(self) -> bool:
        return any(ch in self.source for ch in "*?[")


class SymlinkSet(_Declaration):
    kind: Literal["symlinks"] = "symlinks"
    target_dir: Path
    entries: tuple[SymlinkEntry, ...] = ()
    producer: str | None = None

    @property
    def id(self) -> str:
        return f"symlinks:{self.target_dir}"


class SeedData(_Declaration):
    """Default data files copied into persistent storage only when absent."""

    kind: Literal["seed"] = "seed"
    source_root: Path
    patterns: tuple[str, ...]
    dest_root: Path
    producer: str | None = None

    @property
    def id(self) -> str:
        return f"seed:{self.dest_root}"


class PrincipalGroup(_Declaration):
    kind: Literal["group"] = "group"
    name: str
    gid: int

    @property
    def id(self) -> str:
        return f"group:{self.name}"


class PrincipalUser(_Declaration):
    kind: Literal["user"] = "user"
    name: str
    uid: int
    group: str
    description: str = ""

    @property
    def id(self) -> str:
        return f"user:{self.name}"


class PrivilegeGrant(_Declaration):
    kind: Literal["grant"] = "grant"
    name: str
    executable_path: Path
    wrapper_dir: Path
    setuid: bool = True
    owner: str = "root"
    group: str = "root"

    @property
    def id(self) -> str:
        return f"grant:{self.name}"

    @property
    def wrapper_path(self) -> Path:
        return self.wrapper_dir / self.name


class KernelModule(_Declaration):
    kind: Literal["kmod"] = "kmod"
    name: str

    @property
    def id(self) -> str:
        return f"kmod:{self.name}"


class AuthorizationRule(_Declaration):
    """Grant *result* for *action_id* to members of *group*."""

    kind: Literal["authorization"] = "authorization"
    action_id: str
    group: str
    result: Literal["yes", "no", "auth_admin", "auth_self"] = "yes"

    @property
    def id(self) -> str:
        return f"authorization:{self.action_id}"

    @property
    def predicate(self) -> str:
        return f'action.id == "{self.action_id}" && subject.isInGroup("{self.group}")'


Resource = Annotated[
    Union[
        Service,
        Socket,
        ExternalUnit,
        GeneratedFile,
        SymlinkSet,
        SeedData,
        PrincipalGroup,
        PrincipalUser,
        PrivilegeGrant,
        KernelModule,
        AuthorizationRule,
    ],
    Field(discriminator="kind"),
]
