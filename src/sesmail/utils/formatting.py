"""Human-friendly byte size formatting and parsing."""

from __future__ import annotations

import re

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")

# Bare letters are binary (10M == 10 MiB); explicit "B" suffixes are SI.
_SIZE_UNITS: dict[str, int] = {
    "": 1,
    "b": 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "kb": 1000,
    "mb": 1000**2,
    "gb": 1000**3,
}

_BINARY_SUFFIXES = ("B", "KiB", "MiB", "GiB", "TiB")
_SI_SUFFIXES = ("B", "KB", "MB", "GB", "TB")


def parse_size_string(value: str | int) -> int:
    """Parse a size such as ``"10M"``, ``"9.5MB"`` or ``2048`` into bytes.

    Args:
        value: Integer byte count or size string.

    Returns:
        Size in bytes.

    Raises:
        ValueError: If *value* cannot be parsed or is negative.

    Examples:
        >>> parse_size_string("10M")
        10485760
        >>> parse_size_string("10MB")
        10000000
        >>> parse_size_string(512)
        512
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Size cannot be negative: {value}")
        return value

    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"Unknown size unit {unit!r} in {value!r}")
    return int(float(number) * multiplier)


def format_bytes(size: int, *, binary: bool = True) -> str:
    """Format a byte count for display.

    Examples:
        >>> format_bytes(10_000_000, binary=False)
        '10.0 MB'
        >>> format_bytes(512)
        '512 B'
    """
    base = 1024 if binary else 1000
    suffixes = _BINARY_SUFFIXES if binary else _SI_SUFFIXES
    if size < base:
        return f"{size} B"
    value = float(size)
    for suffix in suffixes[1:]:
        value /= base
        if value < base or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}"
    return f"{size} B"  # pragma: no cover


__all__ = ["format_bytes", "parse_size_string"]
