"""YAML configuration loader.

Configuration is read from a single ``sesmail.conf.yml`` file and exposed as
a :class:`box.Box` so sections can be reached with attribute access
(``config.ses.region``). ``${VAR}`` and ``${VAR:-default}`` references in
string values are expanded from the environment at load time.

Search order when no explicit path is given:

1. ``$SESMAIL_CONFIG``
2. ``./sesmail.conf.yml``
3. ``~/.config/sesmail/sesmail.conf.yml``

A missing file yields an empty configuration, so every consumer must fall
back to its own defaults.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from box import Box

from sesmail.config.exceptions import ConfigFileNotFoundError, ConfigFormatError

log = logging.getLogger(__name__)

CONFIG_FILENAME = "sesmail.conf.yml"
CONFIG_ENV_VAR = "SESMAIL_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z_][a-zA-Z0-9_]*)(?::-([^}]*))?\}")

_config: Box | None = None


def _expand_env_vars(value: str) -> str:
    """Expand environment variables in a string value.

    Unset variables without a default expand to an empty string.

    Examples:
        >>> os.environ["SESMAIL_DOC_VAR"] = "hello"
        >>> _expand_env_vars("${SESMAIL_DOC_VAR} world")
        'hello world'
        >>> _expand_env_vars("${SESMAIL_MISSING:-fallback}")
        'fallback'
    """

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(replacer, value)


def _expand_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _expand_env_vars_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars_recursive(item) for item in data]
    if isinstance(data, str):
        return _expand_env_vars(data)
    return data


def _candidate_paths() -> list[Path]:
    candidates: list[Path] = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / ".config" / "sesmail" / CONFIG_FILENAME)
    return candidates


def load_from_file(path: str | Path) -> Box:
    """Load and parse a single YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration with environment variables expanded.

    Raises:
        ConfigFileNotFoundError: If *path* does not exist.
        ConfigFormatError: If the YAML is invalid or not a mapping.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise ConfigFileNotFoundError(f"Config file not found: {file_path}")

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigFormatError(str(file_path), str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigFormatError(str(file_path), f"expected a mapping, got {type(data).__name__}")

    log.debug("Loaded config from %s", file_path)
    return Box(_expand_env_vars_recursive(data), default_box=False)


def load_config(path: str | Path | None = None) -> Box:
    """Load the configuration and cache it for :func:`get_config`.

    Args:
        path: Explicit config file. When omitted the standard search order
            is used and a missing file yields an empty config.

    Returns:
        The loaded configuration.

    Raises:
        ConfigFileNotFoundError: If an explicit *path* does not exist.
        ConfigFormatError: If the file cannot be parsed.
    """
    global _config  # pylint: disable=global-statement

    if path is not None:
        _config = load_from_file(path)
        return _config

    for candidate in _candidate_paths():
        if candidate.is_file():
            _config = load_from_file(candidate)
            return _config

    log.debug("No %s found, using empty configuration", CONFIG_FILENAME)
    _config = Box()
    return _config


def get_config() -> Box:
    """Return the cached configuration, loading it on first use."""
    if _config is None:
        return load_config()
    return _config


def clear_config() -> None:
    """Drop the cached configuration so the next access reloads it."""
    global _config  # pylint: disable=global-statement
    _config = None


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_file",
]
