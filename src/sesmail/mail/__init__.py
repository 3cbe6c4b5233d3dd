"""Raw MIME mail assembly and SES dispatch.

Examples:
    Build and send in one call:

    >>> from sesmail.mail import send_html_mail
    >>> send_html_mail(
    ...     "sender@example.com",
    ...     ["ops@example.com", "dev@example.com"],
    ...     "Daily report",
    ...     "<p>See attached.</p>",
    ...     [{"name": "report.pdf", "mime": "application/pdf", "contents": b"%PDF-1.7"}],
    ...     {"region": "eu-west-3"},
    ... )  # doctest: +SKIP

    Build only:

    >>> from sesmail.mail import build_raw_message
    >>> raw = build_raw_message("a@x.com", "b@x.com", "Hello", "<p>hi</p>")
    >>> raw.destinations
    ('b@x.com',)
"""

from sesmail.mail.boundary import generate_boundary
from sesmail.mail.builder import MailBuilder, build_raw_message, encode_subject, truncate_name
from sesmail.mail.dispatch import DispatchOutcome, dispatch_many, send_html_mail
from sesmail.mail.exceptions import (
    DispatchError,
    InvalidAttachmentError,
    MailConfigurationError,
    MailError,
    MailTransportError,
    MailValidationError,
    MessageTooLargeError,
)
from sesmail.mail.models import (
    Attachment,
    MultipleRecipients,
    RawMimeMessage,
    Recipients,
    SingleRecipient,
    as_recipients,
    render_recipients,
)
from sesmail.mail.transport import AsyncMailTransport, AsyncTransportWrapper, MailTransport
from sesmail.mail.transports import SesResponse, SesTransport

__all__ = [
    "AsyncMailTransport",
    "AsyncTransportWrapper",
    "Attachment",
    "DispatchError",
    "DispatchOutcome",
    "InvalidAttachmentError",
    "MailBuilder",
    "MailConfigurationError",
    "MailError",
    "MailTransport",
    "MailTransportError",
    "MailValidationError",
    "MessageTooLargeError",
    "MultipleRecipients",
    "RawMimeMessage",
    "Recipients",
    "SesResponse",
    "SesTransport",
    "SingleRecipient",
    "as_recipients",
    "build_raw_message",
    "dispatch_many",
    "encode_subject",
    "generate_boundary",
    "render_recipients",
    "send_html_mail",
    "truncate_name",
]
