"""Raw MIME message assembly.

:func:`build_raw_message` turns a sender, recipients, subject, HTML body and
attachments into the exact bytes passed to ``SendRawEmail``. The layout is
fixed::

    From: a@x.com
    To: b@x.com,c@x.com
    Subject: =?utf-8?b?...?=
    Content-Type: multipart/mixed; boundary="_Part_<hex>"
    MIME-Version: 1.0

    --_Part_<hex>
    Content-Type: text/html; charset="utf-8"

    <p>html</p>
    --_Part_<hex>
    Content-Type: application/pdf; name="report.pdf"
    Content-Description: report.pdf
    Content-Disposition: attachment; filename="report.pdf"
    Content-Transfer-Encoding: base64

    JVBERi0...

    --_Part_<hex>

The message ends with an opening-style delimiter unless ``close_boundary``
is set, in which case the closing ``--<token>--`` form is used. The HTML
part's ``Content-Type`` header is always followed by a blank line before the
markup, so the part has a well-formed header block.

:class:`MailBuilder` wraps the same routine in a fluent API and can hand the
result to a transport.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from collections.abc import Iterable, Mapping, Sequence
from email.header import Header
from pathlib import Path
from typing import Any

from sesmail.limits import MailLimits, get_mail_limits
from sesmail.logging import TRACE_LEVEL
from sesmail.mail.boundary import MAX_BOUNDARY_ATTEMPTS, BoundaryFactory, boundary_collides, generate_boundary
from sesmail.mail.exceptions import MailConfigurationError, MailValidationError, MessageTooLargeError
from sesmail.mail.models import (
    DEFAULT_MIME_TYPE,
    Attachment,
    RawMimeMessage,
    Recipients,
    as_recipients,
    coerce_attachment,
    normalize_address,
    recipient_list,
    render_recipients,
)
from sesmail.mail.transport import AsyncMailTransport, AsyncTransportWrapper, MailTransport

__all__ = [
    "LINESEP",
    "MailBuilder",
    "build_raw_message",
    "encode_base64_lines",
    "encode_subject",
    "truncate_name",
]

log = logging.getLogger(__name__)

LINESEP = "\n"

# RFC 2046: boundaries are 1 to 70 characters, no trailing space
_MAX_BOUNDARY_LENGTH = 70
_BOUNDARY_FORBIDDEN = frozenset(' "\r\n\t')

AttachmentInput = Attachment | Mapping[str, Any]


def encode_subject(subject: str) -> str:
    """Return *subject* ready for the ``Subject`` header.

    Plain ASCII subjects are returned unchanged; anything else (including
    embedded line breaks) becomes RFC 2047 UTF-8 encoded-words, folded with
    :data:`LINESEP` plus a space when long.

    Examples:
        >>> encode_subject("Hello")
        'Hello'
        >>> encode_subject("Café").startswith("=?utf-8?")
        True
    """
    if subject.isascii() and "\r" not in subject and "\n" not in subject:
        return subject
    return Header(subject, charset="utf-8", header_name="Subject").encode(linesep=LINESEP)


def truncate_name(name: str, limit: int) -> str:
    """Truncate an attachment name to *limit* characters (code points, not bytes).

    Examples:
        >>> truncate_name("é" * 80, 60) == "é" * 60
        True
    """
    return name[:limit]


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def encode_base64_lines(contents: bytes, line_length: int) -> str:
    """Base64-encode *contents*, wrapping every *line_length* characters.

    Every line, the last one included, ends with :data:`LINESEP`. Empty
    contents produce an empty string.

    Examples:
        >>> encode_base64_lines(b"hello world", 8)
        'aGVsbG8g\\nd29ybGQ=\\n'
    """
    encoded = base64.b64encode(contents).decode("ascii")
    return "".join(f"{encoded[i : i + line_length]}{LINESEP}" for i in range(0, len(encoded), line_length))


def _check_boundary(token: str) -> str:
    if not token or len(token) > _MAX_BOUNDARY_LENGTH or any(char in _BOUNDARY_FORBIDDEN for char in token):
        raise MailConfigurationError(f"Invalid multipart boundary token: {token!r}")
    return token


def _choose_boundary(factory: BoundaryFactory, contents: Sequence[str]) -> str:
    for attempt in range(1, MAX_BOUNDARY_ATTEMPTS + 1):
        token = _check_boundary(factory())
        if not boundary_collides(token, contents):
            return token
        log.debug("Boundary token collided with message content (attempt %d)", attempt)
    raise MailValidationError(
        f"Could not generate a boundary absent from the message content after {MAX_BOUNDARY_ATTEMPTS} attempts"
    )


def build_raw_message(
    sender: str,
    to: str | Sequence[str] | Recipients,
    subject: str,
    html_body: str,
    attachments: Iterable[AttachmentInput] = (),
    reply_to: str | None = None,
    *,
    limits: MailLimits | None = None,
    boundary_factory: BoundaryFactory | None = None,
    close_boundary: bool = False,
) -> RawMimeMessage:
    """Assemble a raw ``multipart/mixed`` message.

    Args:
        sender: ``From`` address. Not validated beyond header safety.
        to: One address, a sequence of addresses, or a recipient variant.
        subject: Subject text, encoded when not plain ASCII.
        html_body: HTML inserted verbatim as the only body part.
        attachments: :class:`Attachment` objects or ``{"name", "mime",
            "contents"}`` mappings, emitted in order.
        reply_to: Optional ``Reply-To`` address.
        limits: Size, name length and base64 width limits. Defaults to the
            configured :func:`~sesmail.limits.get_mail_limits`.
        boundary_factory: Callable returning boundary tokens. Defaults to
            :func:`~sesmail.mail.boundary.generate_boundary`.
        close_boundary: Terminate with ``--<token>--`` instead of the
            opening-style ``--<token>`` delimiter.

    Returns:
        The serialized message with its envelope sender and destinations.

    Raises:
        MailValidationError: If sender, recipients or body are invalid.
        InvalidAttachmentError: If an attachment descriptor is malformed.
        MessageTooLargeError: If the message exceeds ``limits.max_message_size``.
        MailConfigurationError: If *boundary_factory* returns an unusable token.

    Examples:
        >>> raw = build_raw_message("a@x.com", ["b@x.com", "c@x.com"], "Hello", "<p>hi</p>")
        >>> raw.destinations
        ('b@x.com', 'c@x.com')
        >>> b"To: b@x.com,c@x.com" in raw.data
        True
    """
    limits = limits or get_mail_limits()

    sender = normalize_address(sender)
    if not sender:
        raise MailValidationError("Sender address is required")
    recipients = as_recipients(to)
    if reply_to is not None:
        reply_to = normalize_address(reply_to) or None
    if not isinstance(subject, str):
        raise MailValidationError(f"Subject must be a string, got {type(subject).__name__}")
    if not isinstance(html_body, str):
        raise MailValidationError(f"HTML body must be a string, got {type(html_body).__name__}")

    parts = [coerce_attachment(item, index=index) for index, item in enumerate(attachments)]

    raw_size = len(html_body.encode("utf-8")) + sum(len(part.contents) for part in parts)
    if raw_size > limits.max_message_size:
        raise MessageTooLargeError(raw_size, limits.max_message_size)

    headers = [f"From: {sender}", f"To: {render_recipients(recipients)}"]
    if reply_to:
        headers.append(f"Reply-To: {reply_to}")
    headers.append(f"Subject: {encode_subject(subject)}")

    names = [truncate_name(part.name, limits.max_name_length) for part in parts]
    bodies = [encode_base64_lines(part.contents, limits.base64_line_length) for part in parts]

    boundary = _choose_boundary(
        boundary_factory or generate_boundary,
        [*headers, html_body, *names, *(part.mime_type for part in parts), *bodies],
    )
    if log.isEnabledFor(TRACE_LEVEL):
        log.log(TRACE_LEVEL, "Using multipart boundary %s", boundary)

    chunks = [f"{line}{LINESEP}" for line in headers]
    chunks.append(f'Content-Type: multipart/mixed; boundary="{boundary}"{LINESEP}')
    chunks.append(f"MIME-Version: 1.0{LINESEP}{LINESEP}")

    chunks.append(f"--{boundary}{LINESEP}")
    chunks.append(f'Content-Type: text/html; charset="utf-8"{LINESEP}{LINESEP}')
    chunks.append(html_body)
    chunks.append(LINESEP)

    for part, name, body in zip(parts, names, bodies):
        quoted = _quote(name)
        chunks.append(f"--{boundary}{LINESEP}")
        chunks.append(f'Content-Type: {part.mime_type}; name="{quoted}"{LINESEP}')
        chunks.append(f"Content-Description: {name}{LINESEP}")
        chunks.append(f'Content-Disposition: attachment; filename="{quoted}"{LINESEP}')
        chunks.append(f"Content-Transfer-Encoding: base64{LINESEP}{LINESEP}")
        chunks.append(body)
        chunks.append(LINESEP)

    chunks.append(f"--{boundary}--{LINESEP}" if close_boundary else f"--{boundary}{LINESEP}")

    data = "".join(chunks).encode("utf-8")
    if len(data) > limits.max_message_size:
        raise MessageTooLargeError(len(data), limits.max_message_size)

    log.debug(
        "Built raw message: %d bytes, %d attachment(s), %d recipient(s)",
        len(data),
        len(parts),
        len(recipient_list(recipients)),
    )
    return RawMimeMessage(
        data=data,
        source=sender,
        destinations=recipient_list(recipients),
        boundary=boundary,
    )


class MailBuilder:
    """Fluent builder for raw HTML messages.

    Examples:
        >>> raw = (
        ...     MailBuilder()
        ...     .sender("a@x.com")
        ...     .to("b@x.com", "c@x.com")
        ...     .subject("Monthly report")
        ...     .message("<p>See attached.</p>")
        ...     .attach_bytes("report.csv", b"id,value\\n1,2\\n")
        ...     .build()
        ... )
        >>> raw.destinations
        ('b@x.com', 'c@x.com')
    """

    def __init__(
        self,
        *,
        transport: MailTransport | AsyncMailTransport | None = None,
        limits: MailLimits | None = None,
        boundary_factory: BoundaryFactory | None = None,
        close_boundary: bool = False,
    ) -> None:
        self._transport = transport
        self._limits = limits
        self._boundary_factory = boundary_factory
        self._close_boundary = close_boundary
        self._sender: str | None = None
        self._to: list[str] = []
        self._reply_to: str | None = None
        self._subject = ""
        self._html: str | None = None
        self._attachments: list[Attachment] = []

    def transport(self, transport: MailTransport | AsyncMailTransport) -> MailBuilder:
        """Set the transport used by :meth:`send` and :meth:`send_async`."""
        self._transport = transport
        return self

    def sender(self, address: str) -> MailBuilder:
        """Set the ``From`` address."""
        address = normalize_address(address)
        if not address:
            raise MailValidationError("Sender address is required")
        self._sender = address
        return self

    def to(self, *addresses: str) -> MailBuilder:
        """Append one or more ``To`` addresses."""
        for address in addresses:
            address = normalize_address(address)
            if not address:
                raise MailValidationError("Recipient address cannot be empty")
            self._to.append(address)
        return self

    def reply_to(self, address: str) -> MailBuilder:
        """Set the ``Reply-To`` address."""
        self._reply_to = normalize_address(address) or None
        return self

    def subject(self, text: str) -> MailBuilder:
        """Set the subject."""
        self._subject = text
        return self

    def message(self, html: str) -> MailBuilder:
        """Set the HTML body."""
        if not isinstance(html, str):
            raise MailValidationError("HTML body must be a string")
        self._html = html
        return self

    def attach(self, *items: str | Path | AttachmentInput) -> MailBuilder:
        """Attach files by path, :class:`Attachment` or descriptor mapping.

        Raises:
            MailValidationError: If called without arguments.
            InvalidAttachmentError: If a path is missing or a descriptor is
                malformed.
        """
        if not items:
            raise MailValidationError("attach() requires at least one attachment")
        for item in items:
            if isinstance(item, (str, Path)):
                self._attachments.append(Attachment.from_path(item))
            else:
                self._attachments.append(coerce_attachment(item, index=len(self._attachments)))
        return self

    def attach_bytes(self, name: str, contents: bytes, mime_type: str | None = None) -> MailBuilder:
        """Attach in-memory contents under *name*."""
        if mime_type is None:
            mime_type = mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE
        self._attachments.append(Attachment(name=name, mime_type=mime_type, contents=contents))
        return self

    def _recipients(self) -> Recipients:
        if not self._to:
            raise MailValidationError("At least one recipient is required")
        if len(self._to) == 1:
            return as_recipients(self._to[0])
        return as_recipients(self._to)

    def build(self) -> RawMimeMessage:
        """Assemble the message.

        Raises:
            MailValidationError: If sender, recipients or body are missing.
            MessageTooLargeError: If the message exceeds the size limit.
        """
        if self._sender is None:
            raise MailValidationError("Sender address is required")
        if self._html is None:
            raise MailValidationError("HTML body is required")
        return build_raw_message(
            self._sender,
            self._recipients(),
            self._subject,
            self._html,
            self._attachments,
            self._reply_to,
            limits=self._limits,
            boundary_factory=self._boundary_factory,
            close_boundary=self._close_boundary,
        )

    def send(self) -> Any:
        """Build the message and deliver it through a sync transport.

        Returns:
            Whatever the transport returns (``SesResponse`` for SES).

        Raises:
            MailConfigurationError: If no sync transport is configured.
        """
        if self._transport is None:
            raise MailConfigurationError("No transport configured")
        if isinstance(self._transport, AsyncMailTransport):
            raise MailConfigurationError("Async transport configured, use send_async()")
        return self._transport.send(self.build())

    async def send_async(self) -> Any:
        """Build the message and deliver it without blocking the event loop.

        Sync transports are run in the default executor.

        Raises:
            MailConfigurationError: If no transport is configured.
        """
        if self._transport is None:
            raise MailConfigurationError("No transport configured")
        message = self.build()
        if isinstance(self._transport, AsyncMailTransport):
            return await self._transport.send(message)
        return await AsyncTransportWrapper(self._transport).send(message)
