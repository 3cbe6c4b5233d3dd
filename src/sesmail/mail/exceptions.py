"""Exceptions raised by the sesmail.mail module.

Exception hierarchy::

    SesmailError
        MailError (base for all mail errors)
            MailValidationError (bad sender, recipients or body, also ValueError)
                InvalidAttachmentError (malformed attachment descriptor)
            MessageTooLargeError (serialized message over the size limit)
            MailConfigurationError (transport misconfiguration)
            MailTransportError (delivery failed)
                DispatchError (dispatch service rejected or was unreachable)
"""

from __future__ import annotations

from sesmail.config.exceptions import SesmailError


class MailError(SesmailError):
    """Base exception for all mail module errors."""


class MailValidationError(MailError, ValueError):
    """Message inputs are invalid (sender, recipients, body)."""


class InvalidAttachmentError(MailValidationError):
    """An attachment descriptor is missing a field or has the wrong type.

    Attributes:
        index: Position of the attachment in the input sequence, if known.
        reason: Description of the problem.
    """

    def __init__(self, reason: str, *, index: int | None = None) -> None:
        """Initialize InvalidAttachmentError.

        Args:
            reason: Description of the problem.
            index: Position of the attachment in the input sequence.
        """
        prefix = f"Attachment #{index}" if index is not None else "Attachment"
        super().__init__(f"{prefix}: {reason}")
        self.index = index
        self.reason = reason


class MessageTooLargeError(MailError):
    """The assembled message exceeds the configured size limit.

    Nothing is dispatched when this is raised.

    Attributes:
        size: Size of the message (or of its raw parts) in bytes.
        limit: Configured maximum in bytes.
    """

    def __init__(self, size: int, limit: int) -> None:
        """Initialize MessageTooLargeError.

        Args:
            size: Size of the message in bytes.
            limit: Configured maximum in bytes.
        """
        super().__init__(f"Message too large: {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class MailConfigurationError(MailError):
    """A transport or builder is misconfigured."""


class MailTransportError(MailError):
    """Delivery through a transport failed."""


class DispatchError(MailTransportError):
    """The dispatch service rejected the message or could not be reached.

    The original client exception is chained as ``__cause__``.

    Attributes:
        code: Service error code (e.g. ``MessageRejected``, ``Throttling``),
            or ``None`` for connection-level failures.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Initialize DispatchError.

        Args:
            message: Human-readable error message.
            code: Service error code, if the service returned one.
        """
        super().__init__(message)
        self.code = code


__all__ = [
    "DispatchError",
    "InvalidAttachmentError",
    "MailConfigurationError",
    "MailError",
    "MailTransportError",
    "MailValidationError",
    "MessageTooLargeError",
]
