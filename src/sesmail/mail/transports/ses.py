"""AWS SES transport for raw message delivery.

Sends an already serialized :class:`~sesmail.mail.models.RawMimeMessage`
through the SES ``SendRawEmail`` API. The message bytes, the envelope
sender and the destination list are passed through untouched; SES errors
are surfaced as :class:`DispatchError` without retrying.

The boto3 client is blocking. Wrap the transport in
:class:`~sesmail.mail.transport.AsyncTransportWrapper` to use it from async
code.

Examples:
    Basic usage with the default credential chain (recommended on EC2)::

        from sesmail.mail import build_raw_message
        from sesmail.mail.transports import SesTransport

        transport = SesTransport(region="eu-west-3")
        raw = build_raw_message("you@example.com", "user@example.com", "Hi", "<p>Hi</p>")
        response = transport.send(raw)

    With the ``{key, secret, version, region}`` mapping::

        transport = SesTransport.from_config(
            {"key": "AKIA...", "secret": "...", "version": "2010-12-01", "region": "us-east-1"}
        )
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError, NoCredentialsError

from sesmail.logging import TRACE_LEVEL
from sesmail.mail.exceptions import DispatchError, MailConfigurationError
from sesmail.mail.transport import MailTransport

if TYPE_CHECKING:
    from sesmail.mail.models import RawMimeMessage

__all__ = ["DEFAULT_REGION", "SesResponse", "SesTransport"]

log = logging.getLogger(__name__)

DEFAULT_REGION = "eu-west-3"


@dataclass(frozen=True, slots=True)
class SesResponse:
    """Response from AWS SES after sending an email.

    Attributes:
        message_id: The unique message ID assigned by SES.
        request_id: The AWS request ID, when SES returned one.
    """

    message_id: str
    request_id: str | None = None


class SesTransport(MailTransport):
    """Transport for sending raw messages via AWS SES.

    Args:
        region: AWS region for the SES endpoint (default: ``eu-west-3``).
        aws_access_key_id: Explicit AWS access key. If omitted, boto3 uses
            its default credential chain (env vars, instance profile, etc.).
        aws_secret_access_key: Explicit AWS secret key. Must be provided
            together with *aws_access_key_id*.
        api_version: SES API version passed to boto3 (e.g. ``2010-12-01``).
        timeout: Boto3 connect/read timeout in seconds (default: 30.0).

    Raises:
        MailConfigurationError: If *region* is empty, *timeout* is not
            positive, or only one of the two credential arguments is given.
    """

    def __init__(
        self,
        *,
        region: str = DEFAULT_REGION,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        api_version: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not region:
            raise MailConfigurationError("AWS region is required")

        has_key = aws_access_key_id is not None
        has_secret = aws_secret_access_key is not None
        if has_key != has_secret:
            raise MailConfigurationError("Both aws_access_key_id and aws_secret_access_key must be provided together")

        if timeout <= 0:
            raise MailConfigurationError("Timeout must be greater than 0")

        self._region = region
        self._aws_access_key_id = aws_access_key_id
        self._aws_secret_access_key = aws_secret_access_key
        self._api_version = api_version
        self._timeout = timeout
        self._client: Any = None
        self._client_lock = threading.Lock()
        self._last_response: SesResponse | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None = None) -> SesTransport:
        """Create a transport from a ``{key, secret, version, region}`` mapping.

        Args:
            config: SES settings. When ``None`` the ``ses`` section of the
                loaded sesmail configuration is used. An optional ``timeout``
                key is honoured. The region is used as given, never defaulted.

        Raises:
            MailConfigurationError: If the region is missing or the settings
                are inconsistent.
        """
        if config is None:
            from sesmail.config import get_config

            config = get_config().get("ses") or {}

        timeout = config.get("timeout", 30.0)
        try:
            timeout = float(timeout)
        except (TypeError, ValueError) as e:
            raise MailConfigurationError(f"Invalid SES timeout: {timeout!r}") from e

        # YAML reads an unquoted 2010-12-01 as a date
        version = config.get("version")

        return cls(
            region=config.get("region"),
            aws_access_key_id=config.get("key") or None,
            aws_secret_access_key=config.get("secret") or None,
            api_version=str(version) if version else None,
            timeout=timeout,
        )

    @property
    def region(self) -> str:
        """Return the configured AWS region."""
        return self._region

    @property
    def last_response(self) -> SesResponse | None:
        """Return the response from the last successful send."""
        return self._last_response

    def send(self, message: RawMimeMessage) -> SesResponse:
        """Send a raw message via ``send_raw_email``.

        When TRACE logging is enabled, request metadata is logged.

        Args:
            message: The serialized message.

        Returns:
            The SES response holding the assigned message ID.

        Raises:
            DispatchError: If SES rejects the message or cannot be reached.
            MailConfigurationError: If AWS credentials cannot be resolved.
        """
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SES] Sending email via AWS SES (region=%s)", self._region)
            log.log(
                TRACE_LEVEL,
                "[SES] Source: %s, Destinations: %s, Size: %d bytes",
                message.source,
                ",".join(message.destinations),
                message.size,
            )

        client = self._get_client()

        try:
            response: dict[str, Any] = client.send_raw_email(
                RawMessage={"Data": message.data},
                Source=message.source,
                Destinations=list(message.destinations),
            )
        except ClientError as e:
            error = e.response.get("Error", {})
            error_msg = error.get("Message", str(e))
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SES] ClientError: %s", error_msg)
            raise DispatchError(f"SES API error: {error_msg}", code=error.get("Code")) from e
        except NoCredentialsError as e:
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SES] NoCredentialsError: %s", e)
            raise MailConfigurationError(f"AWS credentials not found: {e}") from e
        except EndpointConnectionError as e:
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SES] EndpointConnectionError: %s", e)
            raise DispatchError(f"SES endpoint connection failed: {e}") from e
        except BotoCoreError as e:
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SES] BotoCoreError: %s", e)
            raise DispatchError(f"SES request failed: {e}") from e

        message_id = response.get("MessageId", "")
        request_id = response.get("ResponseMetadata", {}).get("RequestId")
        self._last_response = SesResponse(message_id=message_id, request_id=request_id)
        log.debug("Email sent via SES: %s", message_id)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SES] Message sent successfully, MessageId=%s", message_id)
        return self._last_response

    def _get_client(self) -> Any:
        """Return the shared boto3 client, creating it on first use.

        Client creation from the default session is not thread-safe, so it
        happens once under a lock; the client itself is shared by threads.
        """
        with self._client_lock:
            if self._client is None:
                self._client = self._create_client()
            return self._client

    def _create_client(self) -> Any:
        """Create a boto3 SES client with stored configuration."""
        kwargs: dict[str, Any] = {
            "service_name": "ses",
            "region_name": self._region,
            "config": BotoConfig(
                connect_timeout=self._timeout,
                read_timeout=self._timeout,
            ),
        }

        if self._api_version is not None:
            kwargs["api_version"] = self._api_version

        if self._aws_access_key_id is not None:
            kwargs["aws_access_key_id"] = self._aws_access_key_id
            kwargs["aws_secret_access_key"] = self._aws_secret_access_key

        return boto3.client(**kwargs)
