"""Configuration loading for sesmail.

Examples:
    >>> from sesmail.config import get_config
    >>> config = get_config()  # doctest: +SKIP
    >>> config.ses.region  # doctest: +SKIP
    'eu-west-3'
"""

from sesmail.config.exceptions import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigFormatError,
    SesmailError,
)
from sesmail.config.loader import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    clear_config,
    get_config,
    load_config,
    load_from_file,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "SesmailError",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_file",
]
