"""Resource compiler: HostConfig in, ResourcePlan out.

Each group of declarations comes from a small function of the
configuration; ``compile_host`` concatenates them, validates the graph,
and only then returns a plan. Any error aborts before a plan exists.
"""

from __future__ import annotations

import logging
import shlex

from virthost.compiler import conffiles
from virthost.compiler.graph import DependencyGraph
from virthost.config.constants import (
    BRIDGE_CONF,
    DAEMON_IDLE_TIMEOUT,
    DAEMON_RO_SOCKET,
    DAEMON_SOCKET,
    DAEMON_START_TIMEOUT,
    DAEMON_UNIT,
    DIR_NAME,
    EMULATOR_DIR,
    GUESTS_UNIT,
    HELPER_DIR,
    LIBVIRTD_CONF,
    LIBVIRTD_GID,
    LIBVIRTD_GROUP,
    MANAGE_ACTION_ID,
    MULTI_USER_TARGET,
    OVMF_DIR,
    QEMU_CONF,
    QEMU_GID,
    QEMU_UID,
    QEMU_USER,
    RUNTIME_DIR,
    SETUP_UNIT,
    SOCKETS_TARGET,
    STATE_ROOT,
    TMPFILES_FILE,
    VSWITCH_UNIT,
    WRAPPER_DIR,
)
from virthost.config.manager import parse_host_config
from virthost.config.models import HostConfig
from virthost.errors import ValidationError
from virthost.models.plan import ResourcePlan
from virthost.models.resource import (
    ActivationTrigger,
    AuthorizationRule,
    ExternalUnit,
    GeneratedFile,
    KernelModule,
    OverwritePolicy,
    PrincipalGroup,
    PrincipalUser,
    PrivilegeGrant,
    Resource,
    RestartPolicy,
    SeedData,
    Service,
    Socket,
    SymlinkEntry,
    SymlinkSet,
)

logger = logging.getLogger(__name__)

SEED_PATTERNS = (
    "libvirt/qemu/networks/*.xml",
    "libvirt/qemu/networks/autostart/*.xml",
    "libvirt/nwfilter/*.xml",
)

COMPANIONS = {
    "virtlogd": "Virtual machine log manager",
    "virtlockd": "Virtual machine lock manager",
}


def _sub_dirs(*names: str) -> tuple[str, ...]:
    return (DIR_NAME, *(f"{DIR_NAME}/{name}" for name in names))


def check_prerequisites(cfg: HostConfig) -> None:
    if not cfg.security.polkit_enable:
        raise ValidationError(
            "libvirtd requires polkit to be enabled (security.polkit_enable = true)"
        )


def external_units(cfg: HostConfig) -> list[Resource]:
    units: list[Resource] = [
        ExternalUnit(name=MULTI_USER_TARGET),
        ExternalUnit(name=SOCKETS_TARGET),
    ]
    if cfg.vswitch.enable:
        units.append(ExternalUnit(name=VSWITCH_UNIT))
    return units


def principals(cfg: HostConfig) -> list[Resource]:
    # libvirtd runs qemu as this user and group when privileges are dropped
    return [
        PrincipalGroup(name=LIBVIRTD_GROUP, gid=LIBVIRTD_GID),
        PrincipalGroup(name=QEMU_USER, gid=QEMU_GID),
        PrincipalUser(
            name=QEMU_USER, uid=QEMU_UID, group=QEMU_USER,
            description="QEMU guests run by libvirtd",
        ),
    ]


def host_integration(cfg: HostConfig) -> list[Resource]:
    return [
        PrivilegeGrant(
            name="qemu-bridge-helper",
            executable_path=HELPER_DIR / "qemu-bridge-helper",
            wrapper_dir=WRAPPER_DIR,
        ),
        KernelModule(name="tun"),
        # qemu-bridge-helper reads this from /etc/qemu, not the libvirt tree
        GeneratedFile(path=BRIDGE_CONF, content=conffiles.bridge_conf(cfg)),
        GeneratedFile(path=LIBVIRTD_CONF, content=conffiles.libvirtd_conf(cfg)),
        AuthorizationRule(action_id=MANAGE_ACTION_ID, group=LIBVIRTD_GROUP),
    ]


def setup_service(cfg: HostConfig) -> Service:
    return Service(
        name=SETUP_UNIT,
        description="Libvirt Virtual Machine Management Daemon - configuration",
        service_type="oneshot",
        command=(cfg.setup_executable, "setup", "--config", str(cfg.config_file)),
        post_command=("/usr/bin/systemd-tmpfiles", "--create", f"/{TMPFILES_FILE}"),
        activation=ActivationTrigger.DEPENDENCY,
        runtime_directories=_sub_dirs("emulators", "helpers", "ovmf"),
        runtime_directory_preserve=True,
        logs_directories=_sub_dirs("qemu"),
        state_directories=_sub_dirs("dnsmasq"),
    )


def setup_products(cfg: HostConfig) -> list[Resource]:
    """Files and links the setup service materializes on every activation."""
    libvirt = cfg.packages.libvirt
    qemu = cfg.packages.qemu
    products: list[Resource] = [
        SeedData(
            source_root=libvirt / "var/lib",
            patterns=SEED_PATTERNS,
            dest_root=STATE_ROOT,
            producer=SETUP_UNIT,
        ),
        GeneratedFile(
            path=QEMU_CONF,
            content=conffiles.qemu_conf(cfg),
            overwrite=OverwritePolicy.ALWAYS,
            producer=SETUP_UNIT,
        ),
        # Stable paths for the <emulator> element of guest definitions
        SymlinkSet(
            target_dir=EMULATOR_DIR,
            entries=(
                SymlinkEntry(source=str(libvirt / "libexec/libvirt_lxc"), optional=True),
                SymlinkEntry(source=str(qemu / "bin/qemu-kvm"), optional=True),
                SymlinkEntry(source=str(qemu / "bin/qemu-system-*"), optional=True),
            ),
            producer=SETUP_UNIT,
        ),
        SymlinkSet(
            target_dir=HELPER_DIR,
            entries=(
                SymlinkEntry(source=str(qemu / "libexec/qemu-bridge-helper")),
                SymlinkEntry(source=str(qemu / "bin/qemu-pr-helper")),
            ),
            producer=SETUP_UNIT,
        ),
    ]
    if cfg.qemu_ovmf:
        products.append(
            SymlinkSet(
                target_dir=OVMF_DIR,
                entries=tuple(
                    SymlinkEntry(source=str(cfg.packages.ovmf / "FV" / name))
                    for name in conffiles.firmware_names(cfg)
                ),
                producer=SETUP_UNIT,
            )
        )
    return products


def daemon(cfg: HostConfig) -> list[Resource]:
    after = [SETUP_UNIT]
    path = [cfg.packages.qemu]  # libvirtd needs qemu-img to manage disk images
    if cfg.vswitch.enable:
        after.append(VSWITCH_UNIT)
        path.append(cfg.vswitch.package)
    args = [
        "--config", str(LIBVIRTD_CONF),
        "--timeout", str(DAEMON_IDLE_TIMEOUT),
        *cfg.extra_options,
    ]
    return [
        # libvirtd tells its listeners apart by socket unit name
        Socket(
            name=DAEMON_SOCKET,
            description="Libvirt local socket",
            listen_paths=(RUNTIME_DIR / "libvirt-sock",),
            service=DAEMON_UNIT,
            wanted_by=(SOCKETS_TARGET,),
        ),
        Socket(
            name=DAEMON_RO_SOCKET,
            description="Libvirt local read-only socket",
            listen_paths=(RUNTIME_DIR / "libvirt-sock-ro",),
            service=DAEMON_UNIT,
            wanted_by=(SOCKETS_TARGET,),
        ),
        Service(
            name=DAEMON_UNIT,
            description="Virtualization daemon",
            service_type="notify",
            command=(str(cfg.packages.libvirt / "sbin/libvirtd"), "$LIBVIRTD_ARGS"),
            depends_on=(SETUP_UNIT,),
            run_after=tuple(after),
            activation=ActivationTrigger.FIRST_CONNECTION,
            # Restarting would disrupt running guests; leave it to the operator
            restart_policy=RestartPolicy.NO,
            restart_if_changed=False,
            kill_mode="process",
            start_timeout_sec=DAEMON_START_TIMEOUT,
            environment={"LIBVIRTD_ARGS": shlex.join(args)},
            path=tuple(path),
        ),
    ]


def companions(cfg: HostConfig) -> list[Resource]:
    """Log and lock managers, each started lazily by its socket."""
    resources: list[Resource] = []
    for name, description in COMPANIONS.items():
        resources.append(
            Socket(
                name=f"{name}.socket",
                description=f"{description} socket",
                listen_paths=(RUNTIME_DIR / f"{name}-sock",),
                service=f"{name}.service",
                wanted_by=(SOCKETS_TARGET,),
            )
        )
        resources.append(
            Service(
                name=f"{name}.service",
                description=description,
                command=(str(cfg.packages.libvirt / "sbin" / name),),
                argv0=name,
                activation=ActivationTrigger.FIRST_CONNECTION,
                restart_if_changed=False,
            )
        )
    return resources


def guests(cfg: HostConfig) -> Service:
    script = str(cfg.packages.libvirt / "libexec/libvirt-guests.sh")
    return Service(
        name=GUESTS_UNIT,
        description="Suspend/Resume Running libvirt Guests",
        service_type="oneshot",
        command=(script, "start"),
        stop_command=(script, "stop"),
        remain_after_exit=True,
        wanted_by=(MULTI_USER_TARGET,),
        restart_if_changed=False,
        environment={"ON_BOOT": cfg.on_boot, "ON_SHUTDOWN": cfg.on_shutdown},
        path=(cfg.packages.libvirt,),
    )


def compile_host(cfg: HostConfig) -> ResourcePlan:
    """Compile *cfg* into a validated, ordered resource plan.

    Raises ValidationError, UnresolvedReferenceError, or DependencyCycleError
    without producing any declarations.
    """
    # Copies made with model_copy(update=...) bypass field validation
    cfg = parse_host_config(cfg.model_dump(warnings=False))
    check_prerequisites(cfg)
    if not cfg.enable:
        logger.info("libvirtd is disabled; nothing to manage")
        return ResourcePlan()

    resources: list[Resource] = [
        *external_units(cfg),
        *principals(cfg),
        *host_integration(cfg),
        setup_service(cfg),
        *setup_products(cfg),
        *daemon(cfg),
        *companions(cfg),
        guests(cfg),
    ]
    graph = DependencyGraph(resources)
    order = graph.start_order()
    logger.debug("Compiled %d resources; start order %s", len(resources), order)
    return ResourcePlan(resources=tuple(resources), start_order=tuple(order))
