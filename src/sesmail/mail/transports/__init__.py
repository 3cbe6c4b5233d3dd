"""Transport implementations for raw message delivery.

Available transports:
    - SesTransport: AWS SES ``SendRawEmail`` (sync, wrap for async use)
"""

from sesmail.mail.transports.ses import SesResponse, SesTransport

__all__ = [
    "SesResponse",
    "SesTransport",
]
