"""Typed exceptions and error handling decorator."""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from rich.console import Console
from rich.markup import escape

F = TypeVar("F", bound=Callable[..., Any])

err_console = Console(stderr=True)


class VirtHostError(Exception):
    """Base exception for virthost."""

    exit_code: int = 1


class ConfigurationError(VirtHostError):
    """The configuration file cannot be located or read."""

    exit_code = 2


class ValidationError(VirtHostError):
    """Configuration values are malformed or a prerequisite is missing."""

    exit_code = 3

    def __init__(self, message: str = "", errors: list[str] | None = None) -> None:
        self.errors = list(errors or [])
        if not message:
            message = "Validation error"
        if self.errors:
            message = message + ":\n  " + "\n  ".join(self.errors)
        super().__init__(message)


class UnresolvedReferenceError(VirtHostError):
    """A resource refers to an id that was never declared."""

    exit_code = 4

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"{source} references undeclared resource '{target}'")


class DependencyCycleError(VirtHostError):
    """Ordering edges between units form a cycle."""

    exit_code = 5

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Dependency cycle: " + " -> ".join(cycle))


class SetupExecutionError(VirtHostError):
    """The one-shot setup step could not complete."""

    exit_code = 6


class RuntimeServiceFailure(VirtHostError):
    """One or more managed units are in a failed state."""

    exit_code = 7

    def __init__(self, units: list[str]) -> None:
        self.units = units
        super().__init__("Failed units: " + ", ".join(units))


def error_handler(func: F) -> F:
    """Decorator that catches VirtHostError and prints user-friendly messages."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except VirtHostError as exc:
            err_console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False)
            raise SystemExit(exc.exit_code)
        except ValueError as exc:
            err_console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False)
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]
