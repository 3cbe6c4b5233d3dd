"""Config-driven limits for raw message assembly.

Values are read from the ``mail.limits`` section of ``sesmail.conf.yml``
and clamped to hard bounds so a configuration file can tighten the defaults
but never produce a message the dispatch service would reject::

    mail:
      limits:
        max_message_size: 10000000   # or "9.5MB"
        max_name_length: 60
        base64_line_length: 996

Invalid values fall back to the defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sesmail.utils.formatting import format_bytes, parse_size_string

log = logging.getLogger(__name__)

#: SES rejects raw messages above 10 MB (decimal).
DEFAULT_MAX_MESSAGE_SIZE = 10_000_000
HARD_MAX_MESSAGE_SIZE = DEFAULT_MAX_MESSAGE_SIZE
HARD_MIN_MESSAGE_SIZE = 1024

DEFAULT_MAX_NAME_LENGTH = 60
HARD_MAX_NAME_LENGTH = 255
HARD_MIN_NAME_LENGTH = 1

#: Base64 wrap width. 996 is wider than the 76 columns of RFC 2045 but stays
#: under the 998 character line limit of RFC 5322.
DEFAULT_BASE64_LINE_LENGTH = 996
HARD_MAX_BASE64_LINE_LENGTH = 998
HARD_MIN_BASE64_LINE_LENGTH = 4


@dataclass(frozen=True, slots=True)
class MailLimits:
    """Resolved limits applied by the message builder.

    Attributes:
        max_message_size: Maximum serialized message size in bytes.
        max_name_length: Maximum attachment name length in characters.
        base64_line_length: Column at which base64 attachment bodies wrap.
    """

    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH
    base64_line_length: int = DEFAULT_BASE64_LINE_LENGTH

    @property
    def max_message_size_display(self) -> str:
        """Return the message size limit in SI units (e.g. ``10.0 MB``)."""
        return format_bytes(self.max_message_size, binary=False)


def _get_nested(config: Mapping[str, Any], *keys: str) -> Any:
    current: Any = config
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(value, maximum))


def _read_size(raw: Any, default: int) -> int:
    if raw is None:
        return default
    try:
        return parse_size_string(raw)
    except ValueError:
        log.warning("Invalid mail size limit %r, using default %d", raw, default)
        return default


def _read_int(raw: Any, default: int, name: str) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        log.warning("Invalid mail limit %s=%r, using default %d", name, raw, default)
        return default


def get_mail_limits(config: Mapping[str, Any] | None = None) -> MailLimits:
    """Build :class:`MailLimits` from configuration.

    Args:
        config: Configuration mapping. When ``None`` the loaded sesmail
            configuration is used.

    Returns:
        Limits with every value clamped to its hard bounds.

    Examples:
        >>> get_mail_limits(config={}).max_message_size
        10000000
        >>> get_mail_limits(config={"mail": {"limits": {"max_name_length": 1000}}}).max_name_length
        255
    """
    if config is None:
        from sesmail.config import get_config

        config = get_config()

    section = _get_nested(config, "mail", "limits")
    if not isinstance(section, Mapping):
        section = {}

    size = _read_size(section.get("max_message_size"), DEFAULT_MAX_MESSAGE_SIZE)
    name_length = _read_int(section.get("max_name_length"), DEFAULT_MAX_NAME_LENGTH, "max_name_length")
    line_length = _read_int(section.get("base64_line_length"), DEFAULT_BASE64_LINE_LENGTH, "base64_line_length")

    return MailLimits(
        max_message_size=_clamp(size, HARD_MIN_MESSAGE_SIZE, HARD_MAX_MESSAGE_SIZE),
        max_name_length=_clamp(name_length, HARD_MIN_NAME_LENGTH, HARD_MAX_NAME_LENGTH),
        base64_line_length=_clamp(line_length, HARD_MIN_BASE64_LINE_LENGTH, HARD_MAX_BASE64_LINE_LENGTH),
    )


__all__ = [
    "DEFAULT_BASE64_LINE_LENGTH",
    "DEFAULT_MAX_MESSAGE_SIZE",
    "DEFAULT_MAX_NAME_LENGTH",
    "HARD_MAX_BASE64_LINE_LENGTH",
    "HARD_MAX_MESSAGE_SIZE",
    "HARD_MAX_NAME_LENGTH",
    "HARD_MIN_BASE64_LINE_LENGTH",
    "HARD_MIN_MESSAGE_SIZE",
    "HARD_MIN_NAME_LENGTH",
    "MailLimits",
    "get_mail_limits",
]
