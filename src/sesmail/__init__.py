"""sesmail: raw MIME mail assembly with AWS SES dispatch.

Examples:
    >>> from sesmail import build_raw_message
    >>> raw = build_raw_message("a@x.com", ["b@x.com", "c@x.com"], "Hello", "<p>hi</p>")
    >>> raw.destinations
    ('b@x.com', 'c@x.com')
"""

from sesmail.mail import (
    Attachment,
    DispatchError,
    InvalidAttachmentError,
    MailBuilder,
    MailError,
    MessageTooLargeError,
    RawMimeMessage,
    SesTransport,
    build_raw_message,
    send_html_mail,
)
from sesmail.meta import __version__

__all__ = [
    "Attachment",
    "DispatchError",
    "InvalidAttachmentError",
    "MailBuilder",
    "MailError",
    "MessageTooLargeError",
    "RawMimeMessage",
    "SesTransport",
    "__version__",
    "build_raw_message",
    "send_html_mail",
]
