"""Shared console helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def exit_error(message: str, code: int = 1) -> NoReturn:
    """Print *message* in red on stderr and exit with *code*."""
    err_console.print(f"[red]Error:[/] {message}")
    raise typer.Exit(code=code)


__all__ = ["console", "err_console", "exit_error"]
