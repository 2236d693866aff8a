"""Colored status output on stdout/stderr via rich.

Verbose-only helpers (dprint, print_command) are no-ops until
set_verbose(True) is called by the CLI.
"""

import shlex

from rich.console import Console
from rich.markup import escape

CONSOLE = Console(highlight=False)
ECONSOLE = Console(stderr=True, highlight=False)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose


def cprint(*args, **kwargs):
    CONSOLE.print(*args, **kwargs)


def eprint(*args, **kwargs):
    ECONSOLE.print(*args, **kwargs)


def dprint(*args, **kwargs):
    if not _verbose:
        return
    CONSOLE.print(*args, style="dim", **kwargs)


def info(message: str) -> None:
    cprint(f"[cyan]{message}[/]")


def success(message: str) -> None:
    cprint(f"[green]{message}[/]")


def warn(message: str) -> None:
    eprint(f"[yellow]warning:[/] {message}")


def error(category: str, message: str) -> None:
    eprint(f"[bold red]error:[/] [red]{escape(category)}: {escape(message)}[/]")


def print_command(text: str, command: list[str]) -> None:
    """Show a shell-quoted engine command line (verbose only)."""
    if not _verbose:
        return
    if text:
        cprint(f"[violet]{escape(text)}[/]:")
    str_command = " ".join(shlex.quote(str(part)) for part in command)
    cprint(str_command, style="royal_blue1", markup=False, soft_wrap=True)


__all__ = [
    "CONSOLE", "ECONSOLE", "escape",
    "set_verbose", "is_verbose",
    "cprint", "eprint", "dprint", "info", "success", "warn", "error",
    "print_command",
]
