"""Value types for raw message assembly.

- Attachment: frozen attachment descriptor (name, MIME type, raw bytes)
- SingleRecipient / MultipleRecipients: the two shapes a ``To`` value takes
- RawMimeMessage: the serialized message with its envelope addresses
"""

from __future__ import annotations

import mimetypes
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sesmail.mail.exceptions import InvalidAttachmentError, MailValidationError

DEFAULT_MIME_TYPE = "application/octet-stream"

_FORBIDDEN_HEADER_CHARS = ("\r", "\n")


def _has_line_break(value: str) -> bool:
    return any(char in value for char in _FORBIDDEN_HEADER_CHARS)


@dataclass(frozen=True, slots=True)
class Attachment:
    """A file attached to a message.

    Attributes:
        name: File name shown to the recipient. Truncated by the builder,
            never here.
        mime_type: MIME type, e.g. ``application/pdf``.
        contents: Raw (not yet base64 encoded) file contents.

    Examples:
        >>> Attachment(name="report.pdf", mime_type="application/pdf", contents=b"%PDF")
        Attachment(name='report.pdf', mime_type='application/pdf', contents=b'%PDF')
    """

    name: str
    mime_type: str
    contents: bytes

    def __post_init__(self) -> None:
        """Validate field types and values.

        Raises:
            InvalidAttachmentError: If a field is empty, of the wrong type,
                or would break the header it is rendered into.
        """
        if not isinstance(self.name, str) or not self.name:
            raise InvalidAttachmentError("name must be a non-empty string")
        if not isinstance(self.mime_type, str) or not self.mime_type:
            raise InvalidAttachmentError("mime type must be a non-empty string")
        if _has_line_break(self.name) or _has_line_break(self.mime_type):
            raise InvalidAttachmentError("name and mime type cannot contain line breaks")
        if not isinstance(self.contents, bytes):
            raise InvalidAttachmentError("contents must be bytes")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, index: int | None = None) -> Attachment:
        """Build an attachment from a ``{"name", "mime", "contents"}`` mapping.

        ``mime_type`` is accepted as an alias of ``mime``. String contents
        are encoded as UTF-8.

        Args:
            data: Attachment descriptor.
            index: Position in the caller's sequence, used in error messages.

        Raises:
            InvalidAttachmentError: If a required field is missing or invalid.
        """
        present = set(data)
        if "mime_type" in present:
            present.add("mime")
        missing = [field for field in ("name", "mime", "contents") if field not in present]
        if missing:
            raise InvalidAttachmentError(f"missing required field(s): {', '.join(missing)}", index=index)

        contents = data["contents"]
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        elif isinstance(contents, (bytearray, memoryview)):
            contents = bytes(contents)

        try:
            return cls(
                name=data["name"],
                mime_type=data.get("mime", data.get("mime_type")),
                contents=contents,
            )
        except InvalidAttachmentError as e:
            raise InvalidAttachmentError(e.reason, index=index) from e

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> Attachment:
        """Read a file from disk into an attachment.

        The MIME type is guessed from the file extension when not given,
        falling back to ``application/octet-stream``.

        Raises:
            InvalidAttachmentError: If the path is not a readable file.
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise InvalidAttachmentError(f"file not found: {file_path}")
        if mime_type is None:
            guessed, _ = mimetypes.guess_type(file_path.name)
            mime_type = guessed or DEFAULT_MIME_TYPE
        return cls(name=file_path.name, mime_type=mime_type, contents=file_path.read_bytes())


def coerce_attachment(value: Attachment | Mapping[str, Any], *, index: int | None = None) -> Attachment:
    """Return *value* as an :class:`Attachment`.

    Raises:
        InvalidAttachmentError: If *value* is neither an Attachment nor a
            valid descriptor mapping.
    """
    if isinstance(value, Attachment):
        return value
    if isinstance(value, Mapping):
        return Attachment.from_mapping(value, index=index)
    raise InvalidAttachmentError(
        f"expected Attachment or mapping, got {type(value).__name__}",
        index=index,
    )


def normalize_address(address: Any) -> str:
    """Strip *address* and reject values that would break a header line.

    Raises:
        MailValidationError: If *address* is not a string or contains a line break.
    """
    if not isinstance(address, str):
        raise MailValidationError(f"Address must be a string, got {type(address).__name__}")
    address = address.strip()
    if _has_line_break(address):
        raise MailValidationError("Address cannot contain line breaks")
    return address


@dataclass(frozen=True, slots=True)
class SingleRecipient:
    """A ``To`` value holding exactly one address."""

    address: str

    @property
    def addresses(self) -> tuple[str, ...]:
        """Return the address as a one-element tuple."""
        return (self.address,)


@dataclass(frozen=True, slots=True)
class MultipleRecipients:
    """A ``To`` value holding an ordered list of addresses."""

    addresses: tuple[str, ...]


Recipients = SingleRecipient | MultipleRecipients


def as_recipients(value: str | Sequence[str] | Recipients) -> Recipients:
    """Normalize a ``To`` argument into one of the two recipient variants.

    Args:
        value: A single address, a sequence of addresses, or an existing
            variant. Variants are rebuilt from their normalized addresses.

    Returns:
        ``SingleRecipient`` for a string, ``MultipleRecipients`` for a
        sequence. Blank entries of a sequence are dropped.

    Raises:
        MailValidationError: If no usable address remains.

    Examples:
        >>> as_recipients("a@x.com")
        SingleRecipient(address='a@x.com')
        >>> as_recipients(["a@x.com", "b@x.com"])
        MultipleRecipients(addresses=('a@x.com', 'b@x.com'))
    """
    if isinstance(value, SingleRecipient):
        recipients: Recipients = SingleRecipient(normalize_address(value.address))
    elif isinstance(value, MultipleRecipients):
        recipients = MultipleRecipients(tuple(addr for addr in map(normalize_address, value.addresses) if addr))
    elif isinstance(value, str):
        recipients = SingleRecipient(normalize_address(value))
    elif isinstance(value, Sequence):
        recipients = MultipleRecipients(tuple(addr for addr in map(normalize_address, value) if addr))
    else:
        raise MailValidationError(f"Recipients must be a string or a sequence, got {type(value).__name__}")

    if not any(recipients.addresses):
        raise MailValidationError("At least one recipient is required")
    return recipients


def recipient_list(recipients: Recipients) -> tuple[str, ...]:
    """Return the envelope destinations for *recipients*, stripped, blanks dropped."""
    return tuple(addr for addr in (entry.strip() for entry in recipients.addresses) if addr)


def render_recipients(recipients: Recipients) -> str:
    """Render the ``To`` header value: comma-joined, no trailing comma.

    Entries are stripped of surrounding whitespace and blank entries are
    dropped, so no empty slot between commas survives.

    Examples:
        >>> render_recipients(MultipleRecipients(("b@x.com", "c@x.com")))
        'b@x.com,c@x.com'
        >>> render_recipients(SingleRecipient("b@x.com"))
        'b@x.com'
        >>> render_recipients(MultipleRecipients((" b@x.com", "", "c@x.com ")))
        'b@x.com,c@x.com'
    """
    return ",".join(recipient_list(recipients))


@dataclass(frozen=True, slots=True)
class RawMimeMessage:
    """A fully serialized message ready for ``SendRawEmail``.

    Attributes:
        data: Raw RFC 5322 bytes.
        source: Envelope sender.
        destinations: Envelope recipients, in input order.
        boundary: Multipart boundary token used in *data*.
    """

    data: bytes
    source: str
    destinations: tuple[str, ...]
    boundary: str

    @property
    def size(self) -> int:
        """Return the serialized size in bytes."""
        return len(self.data)

    def as_string(self) -> str:
        """Return the message decoded as UTF-8 text."""
        return self.data.decode("utf-8")


__all__ = [
    "DEFAULT_MIME_TYPE",
    "Attachment",
    "MultipleRecipients",
    "RawMimeMessage",
    "Recipients",
    "SingleRecipient",
    "as_recipients",
    "coerce_attachment",
    "normalize_address",
    "recipient_list",
    "render_recipients",
]
