"""Build and send raw HTML messages from the command line."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from sesmail.cli.common import console, exit_error
from sesmail.config import get_config
from sesmail.mail import (
    Attachment,
    DispatchError,
    MailError,
    RawMimeMessage,
    SesTransport,
    build_raw_message,
)

SenderOption = Annotated[str, typer.Option("--from", "-f", help="Sender address.")]
ToOption = Annotated[list[str], typer.Option("--to", "-t", help="Recipient address (repeatable).")]
SubjectOption = Annotated[str, typer.Option("--subject", "-s", help="Subject line.")]
HtmlOption = Annotated[
    Path,
    typer.Option("--html", help="File holding the HTML body.", exists=True, dir_okay=False, readable=True),
]
AttachOption = Annotated[
    list[Path] | None,
    typer.Option("--attach", "-a", help="File to attach (repeatable).", exists=True, dir_okay=False, readable=True),
]
ReplyToOption = Annotated[str | None, typer.Option("--reply-to", help="Reply-To address.")]
CloseBoundaryOption = Annotated[
    bool,
    typer.Option("--close-boundary", help="End the message with the closing '--boundary--' delimiter."),
]


def _assemble(
    sender: str,
    to: list[str],
    subject: str,
    html: Path,
    attach: list[Path] | None,
    reply_to: str | None,
    close_boundary: bool,
) -> RawMimeMessage:
    try:
        html_body = html.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        exit_error(f"Cannot read HTML body {html}: {e}")
    try:
        attachments = [Attachment.from_path(path) for path in attach or []]
        return build_raw_message(
            sender,
            to if len(to) > 1 else to[0],
            subject,
            html_body,
            attachments,
            reply_to,
            close_boundary=close_boundary,
        )
    except MailError as e:
        exit_error(str(e))


def build(
    sender: SenderOption,
    to: ToOption,
    subject: SubjectOption,
    html: HtmlOption,
    attach: AttachOption = None,
    reply_to: ReplyToOption = None,
    close_boundary: CloseBoundaryOption = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the raw message here instead of stdout.", dir_okay=False),
    ] = None,
) -> None:
    """Assemble a raw message without sending it.

    Examples:
        # Print the raw message
        sesmail build -f a@x.com -t b@x.com -s Hello --html body.html

        # Write an .eml file with an attachment
        sesmail build -f a@x.com -t b@x.com -s Report --html body.html -a report.pdf -o report.eml
    """
    message = _assemble(sender, to, subject, html, attach, reply_to, close_boundary)
    if output is None:
        typer.echo(message.as_string(), nl=False)
        return
    output.write_bytes(message.data)
    console.print(f"[green]Wrote {message.size} bytes to {output}[/]")


def send(
    sender: SenderOption,
    to: ToOption,
    subject: SubjectOption,
    html: HtmlOption,
    attach: AttachOption = None,
    reply_to: ReplyToOption = None,
    close_boundary: CloseBoundaryOption = False,
    region: Annotated[
        str | None,
        typer.Option("--region", "-r", help="AWS region (overrides the 'ses.region' config value)."),
    ] = None,
) -> None:
    """Assemble a raw message and send it through AWS SES.

    Credentials come from the 'ses' config section or the default AWS
    credential chain.

    Examples:
        sesmail send -f a@x.com -t b@x.com -t c@x.com -s Hello --html body.html --region us-east-1
    """
    message = _assemble(sender, to, subject, html, attach, reply_to, close_boundary)

    settings = dict(get_config().get("ses") or {})
    if region:
        settings["region"] = region

    try:
        response = SesTransport.from_config(settings).send(message)
    except DispatchError as e:
        code = f" ({e.code})" if e.code else ""
        exit_error(f"{e}{code}")
    except MailError as e:
        exit_error(str(e))

    console.print(f"[green]Sent[/] {message.size} bytes to {len(message.destinations)} recipient(s)")
    console.print(f"MessageId: [cyan]{response.message_id}[/]")


__all__ = ["build", "send"]
