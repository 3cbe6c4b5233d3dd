"""Logging helpers for sesmail.

Library modules log through plain ``logging.getLogger(__name__)`` loggers
under the ``sesmail`` namespace. Applications (and the CLI) call
:func:`init_logging` once to attach a rich console handler to that
namespace.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sesmail.logging.manager import SUCCESS_LEVEL, TRACE_LEVEL, LogManager

_root_logger: LogManager | None = None


def init_logging(
    *,
    preset: str | None = None,
    config: Mapping[str, Any] | None = None,
) -> LogManager:
    """Create the package LogManager and wire its handlers into ``sesmail``.

    Calling it again replaces the previously installed handlers.

    Args:
        preset: Logging preset name (``dev``, ``prod``, ``debug``).
        config: Explicit configuration, usually the ``logging`` section of
            the loaded config file.

    Returns:
        The LogManager instance.
    """
    global _root_logger  # pylint: disable=global-statement

    std_logger = logging.getLogger("sesmail")
    if _root_logger is not None:
        for handler in _root_logger.handlers:
            std_logger.removeHandler(handler)

    _root_logger = LogManager(name="sesmail", preset=preset, config=config)
    std_logger.setLevel(TRACE_LEVEL)
    for handler in _root_logger.handlers:
        std_logger.addHandler(handler)
    return _root_logger


def get_logger() -> LogManager:
    """Return the package LogManager, initializing it with defaults if needed."""
    if _root_logger is None:
        return init_logging()
    return _root_logger


__all__ = [
    "SUCCESS_LEVEL",
    "TRACE_LEVEL",
    "LogManager",
    "get_logger",
    "init_logging",
]
