"""Transport interfaces for raw message delivery.

A transport receives a :class:`~sesmail.mail.models.RawMimeMessage` and
hands it to a dispatch service. Transports never modify the message and
never retry; errors are surfaced to the caller as :class:`MailError`
subclasses.
"""

from __future__ import annotations

import asyncio
import functools
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from concurrent.futures import Executor

    from sesmail.mail.models import RawMimeMessage

__all__ = ["AsyncMailTransport", "AsyncTransportWrapper", "MailTransport"]


class MailTransport(ABC):
    """Blocking transport."""

    @abstractmethod
    def send(self, message: RawMimeMessage) -> Any:
        """Deliver *message* and return the service result."""


class AsyncMailTransport(ABC):
    """Non-blocking transport."""

    @abstractmethod
    async def send(self, message: RawMimeMessage) -> Any:
        """Deliver *message* and return the service result."""


class AsyncTransportWrapper(AsyncMailTransport):
    """Expose a blocking transport through the async interface.

    Each ``send`` runs the wrapped transport in *executor* (the loop's
    default executor when ``None``), so the event loop is never blocked.

    Args:
        transport: The blocking transport to wrap.
        executor: Optional executor to run sends in.

    Examples:
        >>> from sesmail.mail.transports import SesTransport
        >>> wrapper = AsyncTransportWrapper(SesTransport(region="eu-west-1"))
        >>> await wrapper.send(raw_message)  # doctest: +SKIP
    """

    def __init__(self, transport: MailTransport, *, executor: Executor | None = None) -> None:
        self._transport = transport
        self._executor = executor

    @property
    def transport(self) -> MailTransport:
        """Return the wrapped blocking transport."""
        return self._transport

    async def send(self, message: RawMimeMessage) -> Any:
        """Run the wrapped transport's ``send`` in the executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(self._transport.send, message))
