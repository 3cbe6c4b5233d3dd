"""Tests for raw MIME message assembly."""

from __future__ import annotations

import base64
import email
import os
import re
from email import policy
from email.header import decode_header, make_header
from pathlib import Path
from typing import Any

import pytest

from sesmail.limits import MailLimits
from sesmail.mail import (
    Attachment,
    InvalidAttachmentError,
    MailBuilder,
    MailConfigurationError,
    MailValidationError,
    MessageTooLargeError,
    MultipleRecipients,
    RawMimeMessage,
    SingleRecipient,
    build_raw_message,
    encode_subject,
    truncate_name,
)
from sesmail.mail.transport import AsyncMailTransport, MailTransport

BOUNDARY = "_Part_0123456789abcdef"


def _fixed_boundary() -> str:
    return BOUNDARY


def _build(**overrides: Any) -> RawMimeMessage:
    kwargs: dict[str, Any] = {
        "sender": "a@x.com",
        "to": ["b@x.com", "c@x.com"],
        "subject": "Hello",
        "html_body": "<p>hi</p>",
        "attachments": (),
        "boundary_factory": _fixed_boundary,
    }
    kwargs.update(overrides)
    return build_raw_message(**kwargs)


def _header_block(raw: RawMimeMessage) -> str:
    return raw.as_string().partition("\n\n")[0]


def _header_value(raw: RawMimeMessage, name: str) -> str:
    """Return an unfolded top-level header value."""
    unfolded = re.sub(r"\n[ \t]+", " ", _header_block(raw))
    for line in unfolded.split("\n"):
        key, _, value = line.partition(": ")
        if key == name:
            return value
    raise AssertionError(f"header {name} not found")


def _parts(raw: RawMimeMessage) -> list[str]:
    """Split a message on its delimiter lines: [headers, html, *attachments, trailer]."""
    return raw.as_string().split(f"--{raw.boundary}\n")


def _decode_part(part: str) -> tuple[str, bytes]:
    head, _, body = part.partition("\n\n")
    return head, base64.b64decode("".join(body.split()))


class TestScenarios:
    """End-to-end scenarios for the raw message layout."""

    def test_two_recipients_no_attachments(self) -> None:
        """Scenario A: list recipients, one HTML part, final delimiter present."""
        raw = build_raw_message("a@x.com", ["b@x.com", "c@x.com"], "Hello", "<p>hi</p>", [])

        text = raw.as_string()
        assert "To: b@x.com,c@x.com\n" in text
        parts = _parts(raw)
        assert len(parts) == 3
        assert parts[1] == 'Content-Type: text/html; charset="utf-8"\n\n<p>hi</p>\n'
        assert parts[2] == ""
        assert text.endswith(f"--{raw.boundary}\n")
        assert raw.source == "a@x.com"
        assert raw.destinations == ("b@x.com", "c@x.com")

    def test_long_name_and_binary_round_trip(self) -> None:
        """Scenario B: name truncated to 60 characters, bytes survive base64."""
        contents = os.urandom(1024)
        attachment = {"name": "a" * 100 + ".pdf", "mime": "application/pdf", "contents": contents}

        raw = _build(attachments=[attachment])

        head, decoded = _decode_part(_parts(raw)[2])
        assert f'name="{"a" * 60}"' in head
        assert f'filename="{"a" * 60}"' in head
        assert f"Content-Description: {'a' * 60}\n" in head
        assert decoded == contents

    def test_oversized_attachment_fails(self) -> None:
        """Scenario C: contents alone above 10,000,000 bytes raise MessageTooLargeError."""
        attachment = Attachment(name="big.bin", mime_type="application/octet-stream", contents=b"\0" * 10_000_001)

        with pytest.raises(MessageTooLargeError) as exc_info:
            build_raw_message("a@x.com", "b@x.com", "Big", "<p>big</p>", [attachment], limits=MailLimits())

        assert exc_info.value.limit == 10_000_000
        assert exc_info.value.size > 10_000_000


class TestRecipients:
    """Rendering of the To header."""

    def test_list_is_comma_joined(self) -> None:
        """Lists render comma-joined with no spaces or trailing comma."""
        raw = _build(to=["b@x.com", "c@x.com", "d@x.com"])
        assert _header_value(raw, "To") == "b@x.com,c@x.com,d@x.com"

    def test_single_address(self) -> None:
        """A single address renders as itself."""
        raw = _build(to="b@x.com")
        assert _header_value(raw, "To") == "b@x.com"
        assert raw.destinations == ("b@x.com",)

    def test_single_and_one_element_list_render_identically(self) -> None:
        """Both recipient shapes normalize to the same header."""
        single = _build(to="b@x.com")
        listed = _build(to=["b@x.com"])
        assert single.data == listed.data

    def test_variants_are_accepted(self) -> None:
        """Explicit recipient variants are passed through."""
        raw = _build(to=MultipleRecipients(("b@x.com", "c@x.com")))
        assert _header_value(raw, "To") == "b@x.com,c@x.com"
        raw = _build(to=SingleRecipient("b@x.com"))
        assert _header_value(raw, "To") == "b@x.com"

    def test_blank_entries_leave_no_trailing_comma(self) -> None:
        """Blank list entries are dropped before joining."""
        raw = _build(to=["b@x.com", "c@x.com", ""])
        assert _header_value(raw, "To") == "b@x.com,c@x.com"
        assert raw.destinations == ("b@x.com", "c@x.com")

    def test_empty_list_raises(self) -> None:
        """An empty recipient list is rejected."""
        with pytest.raises(MailValidationError, match="recipient"):
            _build(to=[])

    def test_header_injection_rejected(self) -> None:
        """Addresses cannot smuggle extra header lines."""
        with pytest.raises(MailValidationError, match="line breaks"):
            _build(to="b@x.com\nBcc: evil@x.com")

    @pytest.mark.parametrize(
        "to",
        [MultipleRecipients(("b@x.com\nBcc: evil@x.com",)), SingleRecipient("b@x.com\r\nBcc: evil@x.com")],
    )
    def test_header_injection_through_variant_rejected(self, to: object) -> None:
        """Prebuilt recipient variants cannot add a Bcc header either."""
        with pytest.raises(MailValidationError, match="line breaks"):
            _build(to=to)


class TestHeaders:
    """Header order and encoding."""

    def test_fixed_header_order(self) -> None:
        """Headers appear in a fixed order, followed by a blank line."""
        raw = _build(reply_to="r@x.com")
        names = [line.split(":", 1)[0] for line in _header_block(raw).split("\n")]
        assert names == ["From", "To", "Reply-To", "Subject", "Content-Type", "MIME-Version"]
        assert _header_value(raw, "Content-Type") == f'multipart/mixed; boundary="{BOUNDARY}"'
        assert _header_value(raw, "MIME-Version") == "1.0"

    def test_reply_to_omitted_by_default(self) -> None:
        """No Reply-To header without a reply_to address."""
        raw = _build()
        assert "Reply-To" not in _header_block(raw)

    def test_ascii_subject_left_plain(self) -> None:
        """ASCII subjects are not encoded."""
        raw = _build(subject="Monthly report")
        assert _header_value(raw, "Subject") == "Monthly report"

    @pytest.mark.parametrize(
        "subject",
        [
            "Café crème",
            "Отчёт за месяц",
            "会議のお知らせ",
            " ".join(["Ünïcödé"] * 20),
        ],
    )
    def test_non_ascii_subject_round_trip(self, subject: str) -> None:
        """Non-ASCII subjects become encoded-words that decode back to the original."""
        raw = _build(subject=subject)
        rendered = _header_value(raw, "Subject")

        assert rendered.isascii()
        assert rendered.startswith("=?utf-8?")
        assert str(make_header(decode_header(rendered))) == subject

    def test_subject_line_break_is_encoded(self) -> None:
        """A line break in the subject cannot start a new header."""
        raw = _build(subject="Hello\nBcc: evil@x.com")
        unfolded = re.sub(r"\n[ \t]+", " ", _header_block(raw))
        names = [line.split(":", 1)[0] for line in unfolded.split("\n")]
        assert names == ["From", "To", "Subject", "Content-Type", "MIME-Version"]
        assert "Bcc" in str(make_header(decode_header(_header_value(raw, "Subject"))))

    def test_parsed_subject_matches(self) -> None:
        """The stdlib parser reads back the encoded subject."""
        raw = _build(subject="Résumé attached", close_boundary=True)
        parsed = email.message_from_bytes(raw.data, policy=policy.default)
        assert parsed["Subject"] == "Résumé attached"

    def test_encode_subject_helper(self) -> None:
        """encode_subject leaves ASCII alone."""
        assert encode_subject("plain") == "plain"
        assert encode_subject("naïve") != "naïve"


class TestAttachments:
    """Attachment part encoding."""

    def test_parts_keep_input_order(self, pdf_attachment: Attachment) -> None:
        """Attachments are emitted in input order and round-trip exactly."""
        second = Attachment(name="data.csv", mime_type="text/csv", contents=b"id,value\n1,2\n")
        raw = _build(attachments=[pdf_attachment, second])

        parts = _parts(raw)
        assert len(parts) == 5
        first_head, first_body = _decode_part(parts[2])
        second_head, second_body = _decode_part(parts[3])
        assert 'Content-Type: application/pdf; name="report.pdf"' in first_head
        assert first_body == pdf_attachment.contents
        assert 'Content-Type: text/csv; name="data.csv"' in second_head
        assert second_body == second.contents

    def test_part_header_layout(self, pdf_attachment: Attachment) -> None:
        """Each attachment part carries the four headers in order."""
        raw = _build(attachments=[pdf_attachment])
        head = _parts(raw)[2].partition("\n\n")[0]
        assert head.split("\n") == [
            'Content-Type: application/pdf; name="report.pdf"',
            "Content-Description: report.pdf",
            'Content-Disposition: attachment; filename="report.pdf"',
            "Content-Transfer-Encoding: base64",
        ]

    def test_base64_wrapped_at_996_columns(self) -> None:
        """Encoded lines are 996 characters wide by default."""
        contents = os.urandom(3000)  # 4000 base64 characters
        raw = _build(attachments=[Attachment(name="x.bin", mime_type="application/octet-stream", contents=contents)])

        body = _parts(raw)[2].partition("\n\n")[2]
        lines = body.split("\n")
        assert [len(line) for line in lines] == [996, 996, 996, 996, 16, 0, 0]

    def test_custom_line_length(self) -> None:
        """The wrap width follows the configured limits."""
        contents = os.urandom(600)
        limits = MailLimits(base64_line_length=76)
        raw = _build(
            attachments=[Attachment(name="x.bin", mime_type="application/octet-stream", contents=contents)],
            limits=limits,
        )

        body = _parts(raw)[2].partition("\n\n")[2]
        encoded_lines = [line for line in body.split("\n") if line]
        assert all(len(line) <= 76 for line in encoded_lines)
        assert base64.b64decode("".join(encoded_lines)) == contents

    def test_name_truncated_by_characters_not_bytes(self) -> None:
        """Multibyte names keep 60 characters, not 60 bytes."""
        name = "é" * 75
        raw = _build(attachments=[Attachment(name=name, mime_type="text/plain", contents=b"x")])
        head = _parts(raw)[2].partition("\n\n")[0]
        assert f'name="{"é" * 60}"' in head
        assert f'name="{"é" * 61}' not in head

    def test_truncate_name_helper(self) -> None:
        """truncate_name keeps short names intact."""
        assert truncate_name("short.txt", 60) == "short.txt"
        assert truncate_name("abcdef", 3) == "abc"

    def test_quotes_in_name_are_escaped(self) -> None:
        """Double quotes in names do not end the quoted parameter."""
        raw = _build(attachments=[Attachment(name='say "hi".txt', mime_type="text/plain", contents=b"hi")])
        assert 'name="say \\"hi\\".txt"' in raw.as_string()

    def test_empty_contents(self) -> None:
        """Empty attachments produce an empty base64 body."""
        raw = _build(attachments=[Attachment(name="empty.txt", mime_type="text/plain", contents=b"")])
        _, decoded = _decode_part(_parts(raw)[2])
        assert decoded == b""

    def test_string_contents_in_mapping_are_utf8(self) -> None:
        """String contents in a descriptor are encoded as UTF-8."""
        raw = _build(attachments=[{"name": "note.txt", "mime": "text/plain", "contents": "héllo"}])
        _, decoded = _decode_part(_parts(raw)[2])
        assert decoded == "héllo".encode()

    @pytest.mark.parametrize("missing", ["name", "mime", "contents"])
    def test_missing_descriptor_field_raises(self, missing: str) -> None:
        """Descriptors missing a field are rejected before assembly."""
        descriptor = {"name": "a.txt", "mime": "text/plain", "contents": b"a"}
        del descriptor[missing]

        with pytest.raises(InvalidAttachmentError, match=missing) as exc_info:
            _build(attachments=[{"name": "ok.txt", "mime": "text/plain", "contents": b"ok"}, descriptor])

        assert exc_info.value.index == 1

    def test_wrong_descriptor_type_raises(self) -> None:
        """Non-mapping attachments are rejected."""
        with pytest.raises(InvalidAttachmentError, match="expected Attachment or mapping"):
            _build(attachments=["not-an-attachment"])

    def test_attachment_from_path_detects_mime(self, tmp_path: Path) -> None:
        """Attachments read from disk guess their MIME type."""
        csv_path = tmp_path / "data.csv"
        csv_path.write_text("a,b\n", encoding="utf-8")
        blob_path = tmp_path / "blob"
        blob_path.write_bytes(b"\x00\x01")

        assert Attachment.from_path(csv_path).mime_type == "text/csv"
        assert Attachment.from_path(blob_path).mime_type == "application/octet-stream"


class TestBoundary:
    """Boundary generation and placement."""

    def test_boundary_absent_from_content(self, pdf_attachment: Attachment) -> None:
        """The random boundary occurs only on delimiter lines and in Content-Type."""
        raw = build_raw_message("a@x.com", "b@x.com", "Hi", "<p>hi</p>", [pdf_attachment])
        text = raw.as_string()

        occurrences = text.count(raw.boundary)
        # Content-Type header + html delimiter + one attachment delimiter + final delimiter
        assert occurrences == 4
        for part in _parts(raw)[1:]:
            assert raw.boundary not in part

    def test_boundary_unique_per_build(self) -> None:
        """Two builds never share a boundary."""
        first = build_raw_message("a@x.com", "b@x.com", "Hi", "<p>hi</p>")
        second = build_raw_message("a@x.com", "b@x.com", "Hi", "<p>hi</p>")
        assert first.boundary != second.boundary

    def test_colliding_token_is_regenerated(self) -> None:
        """A token found in the body is discarded for a fresh one."""
        tokens = iter(["_Part_collide", "_Part_fresh"])
        raw = _build(html_body="<p>_Part_collide</p>", boundary_factory=lambda: next(tokens))
        assert raw.boundary == "_Part_fresh"

    def test_persistent_collision_raises(self) -> None:
        """A factory that always collides eventually fails."""
        with pytest.raises(MailValidationError, match="boundary"):
            _build(html_body="<p>_Part_same</p>", boundary_factory=lambda: "_Part_same")

    @pytest.mark.parametrize("token", ["", "has space", 'quo"te', "x" * 71])
    def test_invalid_token_rejected(self, token: str) -> None:
        """Tokens that cannot be a MIME boundary are refused."""
        with pytest.raises(MailConfigurationError, match="boundary"):
            _build(boundary_factory=lambda: token)

    def test_default_terminator_is_opening_form(self) -> None:
        """The message ends with an opening-style delimiter by default."""
        raw = _build()
        assert raw.as_string().endswith(f"\n--{BOUNDARY}\n")
        assert f"--{BOUNDARY}--" not in raw.as_string()

    def test_close_boundary_emits_closing_form(self, pdf_attachment: Attachment) -> None:
        """close_boundary yields a well-formed multipart the stdlib can parse."""
        raw = _build(attachments=[pdf_attachment], close_boundary=True)
        assert raw.as_string().endswith(f"--{BOUNDARY}--\n")

        parsed = email.message_from_bytes(raw.data, policy=policy.default)
        parts = list(parsed.iter_parts())
        assert len(parts) == 2
        assert parts[0].get_content_type() == "text/html"
        assert parts[0].get_content().strip() == "<p>hi</p>"
        assert parts[1].get_filename() == "report.pdf"
        assert parts[1].get_content() == pdf_attachment.contents


class TestSizeGuard:
    """Message size limit."""

    def test_exact_limit_passes_and_one_byte_less_fails(self, pdf_attachment: Attachment) -> None:
        """The limit is inclusive."""
        size = _build(attachments=[pdf_attachment], limits=MailLimits()).size

        assert _build(attachments=[pdf_attachment], limits=MailLimits(max_message_size=size)).size == size
        with pytest.raises(MessageTooLargeError) as exc_info:
            _build(attachments=[pdf_attachment], limits=MailLimits(max_message_size=size - 1))
        assert exc_info.value.size == size

    def test_base64_growth_counts(self) -> None:
        """Raw contents under the limit can still exceed it once encoded."""
        attachment = Attachment(name="x.bin", mime_type="application/octet-stream", contents=b"\xff" * 1500)
        with pytest.raises(MessageTooLargeError):
            _build(attachments=[attachment], limits=MailLimits(max_message_size=1800))

    def test_limits_from_config(self, write_config: Any) -> None:
        """Default limits come from the loaded configuration."""
        write_config("mail:\n  limits:\n    max_message_size: 2048\n")
        attachment = Attachment(name="x.bin", mime_type="application/octet-stream", contents=b"\x01" * 2000)
        with pytest.raises(MessageTooLargeError) as exc_info:
            build_raw_message("a@x.com", "b@x.com", "Hi", "<p>hi</p>", [attachment])
        assert exc_info.value.limit == 2048


class TestValidation:
    """Input validation."""

    def test_missing_sender_raises(self) -> None:
        """An empty sender is rejected."""
        with pytest.raises(MailValidationError, match="Sender"):
            _build(sender="  ")

    def test_non_string_body_raises(self) -> None:
        """The HTML body must be text."""
        with pytest.raises(MailValidationError, match="HTML body"):
            _build(html_body=b"<p>bytes</p>")

    def test_html_inserted_verbatim(self) -> None:
        """HTML is not escaped or re-wrapped."""
        html = "<html><body><h1>foo &amp; bar</h1>\n<p>" + "x" * 2000 + "</p></body></html>"
        raw = _build(html_body=html)
        assert _parts(raw)[1] == f'Content-Type: text/html; charset="utf-8"\n\n{html}\n'


class FakeTransport(MailTransport):
    """In-memory transport used for assertions in tests."""

    def __init__(self) -> None:
        self.sent: list[RawMimeMessage] = []

    def send(self, message: RawMimeMessage) -> str:
        """Store the message and return a fake id."""
        self.sent.append(message)
        return f"id-{len(self.sent)}"


class FakeAsyncTransport(AsyncMailTransport):
    """Async in-memory transport."""

    def __init__(self) -> None:
        self.sent: list[RawMimeMessage] = []

    async def send(self, message: RawMimeMessage) -> str:
        """Store the message and return a fake id."""
        self.sent.append(message)
        return "async-id"


class TestMailBuilder:
    """Behavioural coverage for the fluent ``MailBuilder``."""

    def test_builds_message(self, pdf_attachment: Attachment) -> None:
        """Fluent calls feed build_raw_message."""
        raw = (
            MailBuilder(boundary_factory=_fixed_boundary)
            .sender("a@x.com")
            .to("b@x.com", "c@x.com")
            .reply_to("r@x.com")
            .subject("Report")
            .message("<p>see attached</p>")
            .attach(pdf_attachment)
            .build()
        )

        assert raw.destinations == ("b@x.com", "c@x.com")
        assert _header_value(raw, "Reply-To") == "r@x.com"
        assert _decode_part(_parts(raw)[2])[1] == pdf_attachment.contents

    def test_attach_path_and_bytes(self, tmp_path: Path) -> None:
        """Paths and in-memory bytes can be attached."""
        path = tmp_path / "notes.txt"
        path.write_text("notes", encoding="utf-8")

        raw = (
            MailBuilder()
            .sender("a@x.com")
            .to("b@x.com")
            .message("<p>x</p>")
            .attach(path)
            .attach_bytes("logo.png", b"\x89PNG")
            .build()
        )

        text = raw.as_string()
        assert 'Content-Type: text/plain; name="notes.txt"' in text
        assert 'Content-Type: image/png; name="logo.png"' in text

    def test_missing_sender_raises(self) -> None:
        """Reject builds without a sender."""
        with pytest.raises(MailValidationError):
            MailBuilder().to("b@x.com").message("<p>x</p>").build()

    def test_missing_recipients_raise(self) -> None:
        """Reject builds without recipients."""
        with pytest.raises(MailValidationError):
            MailBuilder().sender("a@x.com").message("<p>x</p>").build()

    def test_missing_body_raises(self) -> None:
        """Reject builds without an HTML body."""
        with pytest.raises(MailValidationError):
            MailBuilder().sender("a@x.com").to("b@x.com").build()

    def test_attach_without_arguments_raises(self) -> None:
        """attach() needs at least one item."""
        with pytest.raises(MailValidationError):
            MailBuilder().attach()

    def test_attach_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing files are reported as invalid attachments."""
        with pytest.raises(InvalidAttachmentError, match="not found"):
            MailBuilder().attach(tmp_path / "missing.pdf")

    def test_send_uses_transport(self) -> None:
        """send() returns the transport's result."""
        transport = FakeTransport()
        result = MailBuilder(transport=transport).sender("a@x.com").to("b@x.com").message("<p>x</p>").send()

        assert result == "id-1"
        assert len(transport.sent) == 1

    def test_send_without_transport_raises(self) -> None:
        """send() requires a transport."""
        builder = MailBuilder().sender("a@x.com").to("b@x.com").message("<p>x</p>")
        with pytest.raises(MailConfigurationError):
            builder.send()

    def test_send_with_async_transport_raises(self) -> None:
        """send() refuses async transports."""
        builder = MailBuilder(transport=FakeAsyncTransport()).sender("a@x.com").to("b@x.com").message("<p>x</p>")
        with pytest.raises(MailConfigurationError, match="send_async"):
            builder.send()

    def test_size_error_skips_transport(self) -> None:
        """An oversized message never reaches the transport."""
        transport = FakeTransport()
        builder = (
            MailBuilder(transport=transport, limits=MailLimits(max_message_size=1024))
            .sender("a@x.com")
            .to("b@x.com")
            .message("<p>x</p>")
            .attach_bytes("big.bin", b"\0" * 2048)
        )

        with pytest.raises(MessageTooLargeError):
            builder.send()
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_send_async_with_async_transport(self) -> None:
        """send_async() awaits async transports directly."""
        transport = FakeAsyncTransport()
        builder = MailBuilder().transport(transport).sender("a@x.com").to("b@x.com").message("<p>x</p>")

        assert await builder.send_async() == "async-id"
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_send_async_wraps_sync_transport(self) -> None:
        """send_async() runs sync transports in an executor."""
        transport = FakeTransport()
        builder = MailBuilder(transport=transport).sender("a@x.com").to("b@x.com").message("<p>x</p>")

        assert await builder.send_async() == "id-1"
