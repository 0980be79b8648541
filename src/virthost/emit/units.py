"""systemd unit and drop-in configuration rendering."""

from __future__ import annotations

from collections.abc import Iterable

from virthost.models.resource import (
    AuthorizationRule,
    KernelModule,
    PrincipalGroup,
    PrincipalUser,
    PrivilegeGrant,
    Service,
    Socket,
)


def _escape(text: str) -> str:
    """Backslash-escape for a double-quoted systemd word; ``%`` is doubled."""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("%", "%%")
    )


def _quote_word(word: str) -> str:
    if word and not any(ch.isspace() or ch in "\"'\\" for ch in word):
        return word.replace("%", "%%")
    return f'"{_escape(word)}"'


def _exec_line(command: Iterable[str], argv0: str | None = None) -> str:
    parts = list(command)
    if argv0 is not None and parts:
        # systemd's "@" prefix: the second word becomes argv[0]
        parts = [f"@{parts[0]}", argv0, *parts[1:]]
    return " ".join(_quote_word(part) for part in parts)


def _env_assignment(key: str, value: str) -> str:
    return f'"{key}={_escape(value)}"'


def _section(title: str, entries: list[tuple[str, str]]) -> list[str]:
    for key, value in entries:
        if "\n" in value:
            raise ValueError(f"{key}= value for [{title}] spans more than one line")
    return [f"[{title}]", *(f"{key}={value}" for key, value in entries), ""]


def _unit_entries(description: str, requires=(), after=()) -> list[tuple[str, str]]:
    entries = [("Description", description)]
    if requires:
        entries.append(("Requires", " ".join(requires)))
    if after:
        entries.append(("After", " ".join(after)))
    return entries


def render_service(svc: Service) -> str:
    """Render a .service unit."""
    unit = _unit_entries(svc.description or svc.name, svc.depends_on, svc.run_after)
    if not svc.restart_if_changed:
        unit.append(("X-RestartIfChanged", "false"))

    service: list[tuple[str, str]] = [("Type", svc.service_type)]
    for key, value in sorted(svc.environment.items()):
        service.append(("Environment", _env_assignment(key, value)))
    if svc.path:
        search = ":".join(f"{p}/bin:{p}/sbin" for p in svc.path)
        service.append(("Environment", _env_assignment("PATH", f"{search}:/usr/bin:/bin")))
    if svc.command:
        service.append(("ExecStart", _exec_line(svc.command, svc.argv0)))
    if svc.post_command:
        service.append(("ExecStartPost", _exec_line(svc.post_command)))
    if svc.stop_command:
        service.append(("ExecStop", _exec_line(svc.stop_command)))
    if svc.remain_after_exit:
        service.append(("RemainAfterExit", "yes"))
    service.append(("Restart", svc.restart_policy.value))
    if svc.kill_mode:
        service.append(("KillMode", svc.kill_mode))
    if svc.start_timeout_sec is not None:
        service.append(("TimeoutStartSec", str(svc.start_timeout_sec)))
    if svc.runtime_directories:
        service.append(("RuntimeDirectory", " ".join(svc.runtime_directories)))
    if svc.runtime_directory_preserve:
        service.append(("RuntimeDirectoryPreserve", "yes"))
    if svc.logs_directories:
        service.append(("LogsDirectory", " ".join(svc.logs_directories)))
    if svc.state_directories:
        service.append(("StateDirectory", " ".join(svc.state_directories)))

    lines = _section("Unit", unit) + _section("Service", service)
    if svc.wanted_by:
        lines += _section("Install", [("WantedBy", " ".join(svc.wanted_by))])
    return "\n".join(lines)


def render_socket(sock: Socket) -> str:
    """Render a .socket unit."""
    socket_entries = [("ListenStream", str(path)) for path in sock.listen_paths]
    socket_entries.append(("Service", sock.service))
    lines = _section("Unit", _unit_entries(sock.description or sock.name))
    lines += _section("Socket", socket_entries)
    if sock.wanted_by:
        lines += _section("Install", [("WantedBy", " ".join(sock.wanted_by))])
    return "\n".join(lines)


def render_sysusers(groups: list[PrincipalGroup], users: list[PrincipalUser]) -> str:
    lines = [f"g {g.name} {g.gid}" for g in groups]
    for u in users:
        lines.append(f'u {u.name} {u.uid}:{u.group} "{u.description or u.name}" - -')
    return "".join(f"{line}\n" for line in lines)


def render_tmpfiles(grants: list[PrivilegeGrant]) -> str:
    """Copy each helper into the wrapper dir, then fix mode and owner."""
    lines: list[str] = []
    for grant in grants:
        mode = "4755" if grant.setuid else "0755"
        lines.append(f"d {grant.wrapper_dir} 0755 root root -")
        lines.append(f"C+ {grant.wrapper_path} - - - - {grant.executable_path}")
        lines.append(f"z {grant.wrapper_path} {mode} {grant.owner} {grant.group} -")
    return "".join(f"{line}\n" for line in dict.fromkeys(lines))


def render_modules_load(modules: list[KernelModule]) -> str:
    return "".join(f"{m.name}\n" for m in modules)


def render_polkit_rules(rules: list[AuthorizationRule]) -> str:
    chunks = []
    for rule in rules:
        chunks.append(
            "polkit.addRule(function(action, subject) {\n"
            f'  if (action.id == "{rule.action_id}" &&\n'
            f'    subject.isInGroup("{rule.group}")) {{\n'
            f"    return polkit.Result.{rule.result.upper()};\n"
            "  }\n"
            "});\n"
        )
    return "\n".join(chunks)
