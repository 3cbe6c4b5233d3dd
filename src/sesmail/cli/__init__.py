"""Command-line interface for sesmail."""

from sesmail.cli.app import app, main

__all__ = ["app", "main"]
