"""
Unit tests for the package-level convenience functions.
"""

import pytest

import mailtri
from mailtri.core import settings


@pytest.mark.unit
class TestPublicApi:

    def test_parse_email_uses_configured_backend(
        self, monkeypatch, simple_email
    ):
        monkeypatch.setattr(settings, "MIME_PARSER", "legacy")

        parsed = mailtri.parse_email(simple_email)

        assert parsed.subject == "Hello"

    def test_parse_email_failure(self, monkeypatch):
        monkeypatch.setattr(settings, "MIME_PARSER", "legacy")

        with pytest.raises(mailtri.ParsingFailure):
            mailtri.parse_email(b"This is not a valid email format")

    def test_process_attachments(self, make_attachment, make_gif):
        attachments = [
            make_attachment("anim.gif", "image/gif", make_gif(16, 8)),
            make_attachment("blob.bin", "application/octet-stream"),
        ]

        single = mailtri.process_attachment(attachments[0])
        batch = mailtri.process_attachments(attachments)

        assert single.metadata.format == "gif"
        assert [r.processed for r in batch] == [True, False]

    def test_handle_parsing_error(self):
        email = mailtri.handle_parsing_error(
            mailtri.ParsingFailure("bad"), b"Subject: kept\n\n"
        )

        assert email.subject == "kept"
        assert email.message_id == "unknown"
