"""
Shared pytest fixtures for the mail intake tests.

Backend-dependent tests use the parser_type fixture, which runs each test
once per MIME backend. The flanker run is skipped when flanker cannot be
imported.
"""

import base64
import struct

import pytest

from mailtri.intake.models import Attachment
from mailtri.intake.utils.email import EmailParser

PARSER_TYPES = ["flanker", "legacy"]


@pytest.fixture(params=PARSER_TYPES)
def parser_type(request):
    """
    MIME backend name, parametrized over all backends
    """
    if request.param == "flanker":
        pytest.importorskip("flanker.mime")
    return request.param


@pytest.fixture
def email_parser(parser_type):
    """
    EmailParser bound to the current backend
    """
    return EmailParser(parser_type=parser_type)


@pytest.fixture
def make_png():
    """
    Build a minimal PNG header with the given dimensions
    """
    def _make(width, height):
        return (
            b"\x89PNG\r\n\x1a\n"
            + struct.pack(">I", 13)
            + b"IHDR"
            + struct.pack(">II", width, height)
            + b"\x08\x06\x00\x00\x00"
            + b"\x00\x00\x00\x00"
        )
    return _make


@pytest.fixture
def make_gif():
    """
    Build a minimal GIF header with the given dimensions
    """
    def _make(width, height):
        return b"GIF89a" + struct.pack("<HH", width, height) + b"\x00\x00\x00"
    return _make


@pytest.fixture
def make_attachment():
    """
    Build an Attachment with size derived from content
    """
    def _make(filename, content_type, content=b"", **kwargs):
        return Attachment(
            filename=filename,
            content_type=content_type,
            size=kwargs.pop("size", len(content)),
            content=content,
            **kwargs
        )
    return _make


@pytest.fixture
def simple_email():
    return (
        b"From: Test User <Test.User@Example.COM>\n"
        b"To: recipient@example.com\n"
        b"Subject: Re: Hello\n"
        b"Date: Mon, 1 Jan 2024 12:00:00 +0000\n"
        b"Message-ID: <test@example.com>\n"
        b"\n"
        b"This is a test email body.\n"
    )


@pytest.fixture
def ics_content():
    return "\r\n".join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "BEGIN:VEVENT",
        "SUMMARY:Team Meeting",
        "DTSTART;TZID=Europe/Paris:20240101T100000",
        "DTEND:20240101T110000",
        "LOCATION:",
        "DESCRIPTION:Agenda: rev",
        " iew",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "SUMMARY:Second",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]).encode("utf-8")


@pytest.fixture
def multipart_email(make_png, ics_content):
    """
    multipart/mixed message with a text body, an inline PNG and an ICS
    attachment
    """
    png = base64.b64encode(make_png(100, 100)).decode("ascii")
    ics = ics_content.decode("utf-8").replace("\r\n", "\n")
    return (
        "From: sender@example.com\n"
        "To: recipient@example.com\n"
        "Subject: With attachments\n"
        "Date: Tue, 2 Jan 2024 09:30:00 +0100\n"
        "Message-ID: <multi@example.com>\n"
        "MIME-Version: 1.0\n"
        'Content-Type: multipart/mixed; boundary="BOUNDARY"\n'
        "\n"
        "--BOUNDARY\n"
        'Content-Type: text/plain; charset="utf-8"\n'
        "\n"
        "Hello with attachments.\n"
        "--BOUNDARY\n"
        'Content-Type: image/png; name="logo.png"\n'
        'Content-Disposition: inline; filename="logo.png"\n'
        "Content-ID: <logo@example.com>\n"
        "Content-Transfer-Encoding: base64\n"
        "\n"
        f"{png}\n"
        "--BOUNDARY\n"
        'Content-Type: text/calendar; name="invite.ics"\n'
        'Content-Disposition: attachment; filename="invite.ics"\n'
        "\n"
        f"{ics}"
        "--BOUNDARY--\n"
    ).encode("utf-8")
