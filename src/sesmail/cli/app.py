"""Typer application entry point for the ``sesmail`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from sesmail import meta
from sesmail.cli.common import console, exit_error
from sesmail.cli.commands import build, send
from sesmail.config import ConfigError, load_config
from sesmail.logging import init_logging

app = typer.Typer(
    name=meta.__app_name__,
    help=f"{meta.__app_name__}: {meta.__description__}.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{meta.__app_name__} {meta.__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a sesmail.conf.yml file.", dir_okay=False),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Console log level (TRACE, DEBUG, INFO, WARNING...)."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = False,
) -> None:
    """Load configuration and set up logging before running a command."""
    try:
        loaded = load_config(config)
    except ConfigError as e:
        exit_error(str(e))

    logging_config = dict(loaded.get("logging") or {})
    if log_level:
        logging_config["level"] = log_level
    init_logging(preset="prod", config=logging_config)


app.command("build")(build)
app.command("send")(send)


def main() -> None:
    """Run the CLI."""
    app()


__all__ = ["app", "main"]
