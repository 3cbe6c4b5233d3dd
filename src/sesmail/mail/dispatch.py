"""One-call sending and bounded bulk dispatch.

:func:`send_html_mail` builds and sends a single message in one call.
:func:`dispatch_many` sends already built messages through one transport
using a bounded thread pool, so callers can stay within the dispatch
service's concurrency limits. Neither function retries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from sesmail.mail.builder import AttachmentInput, build_raw_message
from sesmail.mail.exceptions import MailConfigurationError, MailError
from sesmail.mail.models import RawMimeMessage, Recipients
from sesmail.mail.transport import MailTransport
from sesmail.mail.transports.ses import SesResponse, SesTransport

__all__ = ["DEFAULT_MAX_WORKERS", "DispatchOutcome", "dispatch_many", "send_html_mail"]

log = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def send_html_mail(
    sender: str,
    to: str | Sequence[str] | Recipients,
    subject: str,
    html_body: str,
    attachments: Iterable[AttachmentInput],
    ses_config: Mapping[str, Any] | None,
    reply_to: str | None = None,
    *,
    transport: MailTransport | None = None,
) -> SesResponse:
    """Build an HTML message with attachments and send it through SES.

    The message is built before any client is created, so validation and
    size errors never reach the network.

    Args:
        sender: ``From`` address.
        to: One address or a list of addresses.
        subject: Subject text.
        html_body: HTML body.
        attachments: ``{"name", "mime", "contents"}`` mappings or
            :class:`~sesmail.mail.models.Attachment` objects.
        ses_config: ``{key, secret, version, region}`` mapping passed to
            :meth:`SesTransport.from_config`; ``None`` reads the ``ses``
            config section. Ignored when *transport* is given.
        reply_to: Optional ``Reply-To`` address.
        transport: Transport to use instead of building an SES one.

    Returns:
        The transport's response.

    Raises:
        MailValidationError: If the inputs are invalid.
        MessageTooLargeError: If the message exceeds the size limit.
        DispatchError: If SES rejects the message.
    """
    message = build_raw_message(sender, to, subject, html_body, attachments, reply_to)
    if transport is None:
        transport = SesTransport.from_config(ses_config)
    return transport.send(message)


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Result of sending one message in a bulk dispatch.

    Attributes:
        message: The message that was sent.
        result: The transport result on success.
        error: The mail error raised on failure.
    """

    message: RawMimeMessage
    result: Any = None
    error: MailError | None = None

    @property
    def ok(self) -> bool:
        """Return True when the message was dispatched."""
        return self.error is None


def _send_one(transport: MailTransport, message: RawMimeMessage) -> DispatchOutcome:
    try:
        return DispatchOutcome(message=message, result=transport.send(message))
    except MailError as e:
        log.warning("Dispatch to %s failed: %s", ",".join(message.destinations), e)
        return DispatchOutcome(message=message, error=e)


def dispatch_many(
    transport: MailTransport,
    messages: Iterable[RawMimeMessage],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[DispatchOutcome]:
    """Send *messages* through *transport* with at most *max_workers* in flight.

    Failures are captured per message; errors other than
    :class:`~sesmail.mail.exceptions.MailError` propagate.

    Args:
        transport: A thread-safe blocking transport.
        messages: Messages to send.
        max_workers: Maximum number of concurrent sends.

    Returns:
        One outcome per message, in input order.

    Raises:
        MailConfigurationError: If *max_workers* is lower than 1.
    """
    if max_workers < 1:
        raise MailConfigurationError("max_workers must be at least 1")

    pending = list(messages)
    if not pending:
        return []

    with ThreadPoolExecutor(max_workers=min(max_workers, len(pending))) as executor:
        outcomes = list(executor.map(lambda message: _send_one(transport, message), pending))

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    log.info("Dispatched %d message(s), %d failed", len(outcomes), failed)
    return outcomes
