"""Shared rich console and message helpers.

All diagnostic output goes to stderr so stdout stays free for the
pipeline: errors bold red, remarks bold white, echoed commands yellow,
success banners green.
"""

from __future__ import annotations

import shlex
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True, highlight=False)


def format_command(argv: Sequence[str]) -> str:
    """Render a command the way a shell would accept it."""
    return shlex.join(argv)


def format_pipeline(stages: Sequence[Sequence[str]]) -> str:
    """Render several commands joined by pipes."""
    return " | ".join(format_command(argv) for argv in stages)


def echo_command(text: str, out: Optional[Console] = None) -> None:
    """Show a command that is about to run (or would run in dry-run)."""
    (out or console).print(f"[yellow]# {escape(text)}[/]")


def remark(message: str, out: Optional[Console] = None) -> None:
    """Show a verbose-mode remark."""
    (out or console).print(f"+ \\[[bold white]{escape(message)}[/]]")


def error(message: str, out: Optional[Console] = None) -> None:
    """Show a fatal error."""
    (out or console).print(f"[bold red]{escape(message)}[/]")


def success(message: str, out: Optional[Console] = None) -> None:
    """Show a success line."""
    (out or console).print(f"[bold green]{escape(message)}[/]")
