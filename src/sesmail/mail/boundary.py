"""Multipart boundary tokens.

Tokens are ``_Part_`` followed by random hex digits drawn from
:mod:`secrets`, so uniqueness does not depend on clock resolution and
concurrent builds cannot produce the same token in practice. The ``_``
characters also keep every token out of base64 output, whose alphabet has
no underscore.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable, Iterable

BOUNDARY_PREFIX = "_Part_"

#: Random bytes per token (hex-encoded to twice as many characters).
DEFAULT_TOKEN_BYTES = 16

#: Attempts before giving up on finding a token absent from the content.
MAX_BOUNDARY_ATTEMPTS = 8

BoundaryFactory = Callable[[], str]


def generate_boundary(nbytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """Return a fresh random boundary token.

    Examples:
        >>> token = generate_boundary()
        >>> token.startswith("_Part_"), len(token)
        (True, 38)
    """
    return f"{BOUNDARY_PREFIX}{secrets.token_hex(nbytes)}"


def boundary_collides(boundary: str, contents: Iterable[str]) -> bool:
    """Return True if *boundary* occurs literally in any of *contents*."""
    return any(boundary in chunk for chunk in contents)


__all__ = [
    "BOUNDARY_PREFIX",
    "DEFAULT_TOKEN_BYTES",
    "MAX_BOUNDARY_ATTEMPTS",
    "BoundaryFactory",
    "boundary_collides",
    "generate_boundary",
]
