"""Base exception and configuration errors for sesmail.

Exception hierarchy::

    SesmailError
        ConfigError (base for configuration errors)
            ConfigFileNotFoundError (explicit config path missing)
            ConfigFormatError (unparsable YAML or non-mapping document)
"""

from __future__ import annotations


class SesmailError(Exception):
    """Root of every exception raised by sesmail."""


class ConfigError(SesmailError):
    """Base exception for configuration loading errors."""


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """An explicitly requested configuration file does not exist."""


class ConfigFormatError(ConfigError, ValueError):
    """A configuration file could not be parsed into a mapping.

    Attributes:
        path: Path of the offending file.
        reason: Parser or validation message.
    """

    def __init__(self, path: str, reason: str) -> None:
        """Initialize ConfigFormatError.

        Args:
            path: Path of the offending file.
            reason: Parser or validation message.
        """
        super().__init__(f"Invalid config file '{path}': {reason}")
        self.path = path
        self.reason = reason


__all__ = [
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "SesmailError",
]
