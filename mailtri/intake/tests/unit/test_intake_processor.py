"""
Unit tests for EmailIntakeProcessor: the parse, recover and attachment
pipeline.
"""

from unittest.mock import MagicMock

import pytest

from mailtri.intake.exceptions import ParsingFailure
from mailtri.intake.models import ParsedEmail
from mailtri.intake.utils.email import (
    EmailIntakeProcessor,
    EmailParser,
    ParsingErrorHandler,
)


@pytest.fixture
def intake(parser_type):
    return EmailIntakeProcessor(parser_type=parser_type)


@pytest.mark.unit
class TestProcess:
    """Single message processing."""

    def test_valid_email(self, intake, simple_email):
        result = intake.process(simple_email)

        assert result.recovered is False
        assert result.error is None
        assert result.email.subject == "Hello"
        assert result.attachments == ()

    def test_attachments_processed(self, intake, multipart_email):
        """Test that parsed attachments run through the processor."""
        result = intake.process(multipart_email)

        image, invite = result.attachments
        assert image.processed is True
        assert image.metadata.width == 100
        assert image.metadata.height == 100
        assert invite.processed is True
        assert invite.metadata.events[0].summary == "Team Meeting"

    def test_malformed_recovered(self, intake):
        """Test that unparseable input comes back from the fallback."""
        result = intake.process(b"This is not a valid email format")

        assert result.recovered is True
        assert result.error.startswith("Failed to parse email")
        assert result.email.message_id == "unknown"
        assert result.attachments == ()

    def test_gate_failure_recovered(self, intake):
        result = intake.process(b"X-Custom: value\n\n")

        assert result.recovered is True
        assert result.email.headers["x-custom"] == "value"

    def test_to_dict(self, intake, multipart_email):
        document = intake.process(multipart_email).to_dict()

        assert document["recovered"] is False
        assert document["from"]["address"] == "sender@example.com"
        assert [a["filename"] for a in document["attachments"]] == [
            "logo.png", "invite.ics"
        ]
        assert document["attachments"][0]["metadata"]["type"] == "image"
        assert "content" not in document["attachments"][0]
        assert "error" not in document


@pytest.mark.unit
class TestCollaborators:
    """Injected parser and handler."""

    def test_handler_receives_failure(self):
        failure = ParsingFailure("nope")
        parser = MagicMock(spec=EmailParser)
        parser.parse_email.side_effect = failure
        parser.decomposer = MagicMock()
        handler = MagicMock(spec=ParsingErrorHandler)
        handler.handle_parsing_error.return_value = ParsedEmail(
            message_id="recovered"
        )
        intake = EmailIntakeProcessor(parser=parser, error_handler=handler)

        result = intake.process(b"raw")

        handler.handle_parsing_error.assert_called_once_with(failure, b"raw")
        assert result.email.message_id == "recovered"
        assert result.error == "nope"


@pytest.mark.unit
class TestFiles:
    """File and directory entry points."""

    def test_process_file(self, tmp_path, simple_email):
        path = tmp_path / "one.eml"
        path.write_bytes(simple_email)

        result = EmailIntakeProcessor(parser_type="legacy").process_file(
            str(path)
        )

        assert result.email.message_id == "<test@example.com>"

    def test_process_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            EmailIntakeProcessor(parser_type="legacy").process_file(
                str(tmp_path / "missing.eml")
            )

    def test_iter_directory(self, tmp_path, simple_email):
        """Test that only .eml files are processed, in name order."""
        (tmp_path / "b.eml").write_bytes(simple_email)
        (tmp_path / "a.EML").write_bytes(b"garbage")
        (tmp_path / "notes.txt").write_bytes(simple_email)

        results = list(
            EmailIntakeProcessor(parser_type="legacy").iter_directory(
                str(tmp_path)
            )
        )

        assert [path.rsplit("/", 1)[-1] for path, _ in results] == [
            "a.EML", "b.eml"
        ]
        assert results[0][1].recovered is True
        assert results[1][1].recovered is False

    def test_iter_not_a_directory(self, tmp_path):
        intake = EmailIntakeProcessor(parser_type="legacy")

        assert list(intake.iter_directory(str(tmp_path / "nope"))) == []
