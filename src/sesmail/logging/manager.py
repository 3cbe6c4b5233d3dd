"""Rich-backed logger with TRACE and SUCCESS levels.

:class:`LogManager` is a :class:`logging.Logger` subclass that owns its
console handler and accepts structured context as keyword arguments::

    logger = LogManager(name="sesmail.cli", preset="dev")
    logger.info("Message built", size=2048, attachments=1)
    # -> "Message built | size=2048 attachments=1"

The logger level is always TRACE; handlers decide what is shown.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

TRACE_LEVEL = 5
SUCCESS_LEVEL = 25

logging.addLevelName(TRACE_LEVEL, "TRACE")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

PRESETS: dict[str, dict[str, Any]] = {
    "dev": {"console": {"enabled": True, "level": "DEBUG"}},
    "prod": {"console": {"enabled": True, "level": "WARNING"}},
    "debug": {"console": {"enabled": True, "level": "TRACE"}},
}

DEFAULT_PRESET = "dev"

# Keyword arguments understood by logging.Logger._log
_LOG_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


def _resolve_level(value: str | int | None, default: int = logging.INFO) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else default


def _format_context(context: Mapping[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in context.items())


class LogManager(logging.Logger):
    """Logger with a rich console handler and structured context.

    Args:
        name: Logger name.
        preset: One of ``dev``, ``prod`` or ``debug``.
        config: Explicit handler configuration, merged over the preset.
            Supported keys: ``console.enabled``, ``console.level``.
        console: Rich console to render to (defaults to stderr).
    """

    def __init__(
        self,
        name: str = "sesmail",
        *,
        preset: str | None = None,
        config: Mapping[str, Any] | None = None,
        console: Console | None = None,
    ) -> None:
        super().__init__(name, level=TRACE_LEVEL)
        settings = dict(PRESETS.get(preset or DEFAULT_PRESET, PRESETS[DEFAULT_PRESET]))
        if config:
            for section, values in config.items():
                if isinstance(values, Mapping):
                    settings[section] = {**settings.get(section, {}), **values}
            if "level" in config and "console" not in config:
                settings["console"] = {**settings["console"], "level": config["level"]}

        console_cfg = settings.get("console", {})
        if console_cfg.get("enabled", True):
            handler = RichHandler(
                console=console or Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
                markup=False,
            )
            handler.setLevel(_resolve_level(console_cfg.get("level")))
            self.addHandler(handler)

    def _log_with_context(self, level: int, msg: object, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        if not self.isEnabledFor(level):
            return
        log_kwargs = {key: kwargs.pop(key) for key in list(kwargs) if key in _LOG_KWARGS}
        if kwargs:
            msg = f"{msg} | {_format_context(kwargs)}"
        self._log(level, msg, args, **log_kwargs)

    def trace(self, msg: object, *args: Any, **kwargs: Any) -> None:
        """Log at TRACE level."""
        self._log_with_context(TRACE_LEVEL, msg, args, kwargs)

    def debug(self, msg: object, *args: Any, **kwargs: Any) -> None:  # noqa: D102
        self._log_with_context(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: object, *args: Any, **kwargs: Any) -> None:  # noqa: D102
        self._log_with_context(logging.INFO, msg, args, kwargs)

    def success(self, msg: object, *args: Any, **kwargs: Any) -> None:
        """Log at SUCCESS level."""
        self._log_with_context(SUCCESS_LEVEL, msg, args, kwargs)

    def warning(self, msg: object, *args: Any, **kwargs: Any) -> None:  # noqa: D102
        self._log_with_context(logging.WARNING, msg, args, kwargs)

    def error(self, msg: object, *args: Any, **kwargs: Any) -> None:  # noqa: D102
        self._log_with_context(logging.ERROR, msg, args, kwargs)

    def critical(self, msg: object, *args: Any, **kwargs: Any) -> None:  # noqa: D102
        self._log_with_context(logging.CRITICAL, msg, args, kwargs)

    def traceback(self, exc: BaseException, msg: str = "Unhandled exception") -> None:
        """Log *exc* with its traceback at ERROR level."""
        self._log_with_context(logging.ERROR, msg, (), {"exc_info": exc})


__all__ = [
    "DEFAULT_PRESET",
    "PRESETS",
    "SUCCESS_LEVEL",
    "TRACE_LEVEL",
    "LogManager",
]
