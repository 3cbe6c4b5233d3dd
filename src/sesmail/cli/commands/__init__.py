"""CLI command implementations."""

from sesmail.cli.commands.mail import build, send

__all__ = ["build", "send"]
