"""Shared pytest fixtures for the sesmail test suite."""

from __future__ import annotations

# Disable Rich colors and force wide terminal BEFORE any imports
# Rich checks these at import time
import os

os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"
os.environ["COLUMNS"] = "200"  # Prevent text wrapping in CLI output

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from sesmail.config import CONFIG_ENV_VAR, clear_config
from sesmail.mail import Attachment

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run every test away from any real sesmail.conf.yml.

    The working and home directories point to empty temporary directories
    and the cached configuration is dropped before and after each test.
    """
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    clear_config()
    yield workdir
    clear_config()


@pytest.fixture
def write_config(isolated_config: Path) -> Callable[[str], Path]:
    """Return a helper writing sesmail.conf.yml into the working directory."""

    def _write(content: str) -> Path:
        path = isolated_config / "sesmail.conf.yml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def pdf_attachment() -> Attachment:
    """Return a small binary attachment."""
    return Attachment(name="report.pdf", mime_type="application/pdf", contents=b"%PDF-1.7\n" + bytes(range(256)))
