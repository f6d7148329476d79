"""
Unit tests for the normalization helpers.

These are pure functions, so every case is checked directly without a
MIME backend.
"""

from datetime import datetime, timedelta, timezone

import pytest

from mailtri.intake.utils.email.normalizers import (
    format_header_date,
    normalize_address,
    normalize_addresses,
    normalize_body,
    normalize_headers,
    normalize_line_endings,
    normalize_subject,
    strip_html_tags,
)
from mailtri.intake.utils.email.parsers.base import DecomposedAddress


@pytest.mark.unit
class TestNormalizeSubject:
    """Reply/forward marker stripping."""

    @pytest.mark.parametrize("subject,expected", [
        ("Re: Hello", "Hello"),
        ("RE: Hello", "Hello"),
        ("Fwd: Hello", "Hello"),
        ("FW: Hello", "Hello"),
        ("fw:Hello", "Hello"),
        ("Re: Re: Hello", "Re: Hello"),
        ("Hello Re: there", "Hello Re: there"),
        ("  Plain  ", "Plain"),
        ("", ""),
        (None, ""),
    ])
    def test_markers(self, subject, expected):
        """Test that exactly one leading marker is removed."""
        assert normalize_subject(subject) == expected

    def test_nfc(self):
        """Test that decomposed characters are composed."""
        assert normalize_subject("Re: Cafe\u0301") == "Caf\u00e9"


@pytest.mark.unit
class TestNormalizeAddress:
    """Address canonicalization."""

    def test_lowercase_and_original(self):
        """Test canonical address with the backend original preserved."""
        result = normalize_address(DecomposedAddress(
            address=" John.Doe@Example.COM ",
            name="John Doe",
            original="John Doe <John.Doe@Example.COM>",
        ))

        assert result.address == "john.doe@example.com"
        assert result.name == "John Doe"
        assert result.original == "John Doe <John.Doe@Example.COM>"

    def test_original_rebuilt(self):
        """Test that a missing original is rebuilt from name and address."""
        named = normalize_address(
            DecomposedAddress(address="A@X.org", name="Ann")
        )
        bare = normalize_address(DecomposedAddress(address="B@X.org"))

        assert named.original == "Ann <A@X.org>"
        assert bare.original == "B@X.org"
        assert bare.name == ""

    @pytest.mark.parametrize("value", [
        None, DecomposedAddress(address=""), DecomposedAddress(address="  ")
    ])
    def test_empty(self, value):
        """Test that a missing address yields an empty record."""
        result = normalize_address(value)

        assert result.address == ""
        assert result.name == ""
        assert result.original == ""

    def test_list(self):
        assert normalize_addresses(None) == ()
        assert [a.address for a in normalize_addresses([
            DecomposedAddress("A@x.org"), DecomposedAddress("B@y.org")
        ])] == ["a@x.org", "b@y.org"]


@pytest.mark.unit
class TestBodyNormalization:
    """HTML stripping and line endings."""

    def test_line_endings(self):
        """Test CRLF/CR unification and blank-line squeezing."""
        assert normalize_line_endings("a\r\nb\rc\n\n\nd") == "a\nb\nc\n\nd"

    def test_trims(self):
        assert normalize_line_endings("\n\n  text  \n\n") == "text"

    def test_strip_html(self):
        """Test tag removal with script and style content dropped."""
        html = (
            "<style>\nbody { margin: 0; }\n</style>"
            "<p>One&nbsp;two</p>"
            "<SCRIPT type=\"text/javascript\">\nvar x = 1;\n</SCRIPT>"
        )

        assert strip_html_tags(html) == "One two"

    def test_strip_html_entities(self):
        """Test that only the fixed entity set is decoded, in one pass."""
        html = "&lt;b&gt; &quot;x&quot; &#39;y&#39; &copy; &amp;lt;"

        assert strip_html_tags(html) == "<b> \"x\" 'y' &copy; &lt;"

    def test_body_prefers_text(self):
        body = normalize_body("plain\r\n", "<p>html</p>")

        assert body.normalized == "plain"
        assert body.text == "plain\r\n"
        assert body.html == "<p>html</p>"

    def test_body_falls_back_to_html(self):
        body = normalize_body(None, "<div>Hi<br>there</div>")

        assert body.normalized == "Hithere"
        assert body.text is None

    def test_body_empty(self):
        body = normalize_body(None, None)

        assert body.normalized == ""
        assert body.text is None
        assert body.html is None


@pytest.mark.unit
class TestNormalizeHeaders:
    """Header map construction."""

    def test_repeated_headers_joined(self):
        """Test lowercase keys and repeated headers joined in order."""
        headers = normalize_headers([
            ("Received", "from a by b"),
            ("Subject", "Hi"),
            ("RECEIVED", "from c by d"),
        ])

        assert headers["received"] == "from a by b, from c by d"
        assert headers["subject"] == "Hi"
        assert list(headers) == ["received", "subject"]

    def test_date_values(self):
        """Test that datetime values are rendered as UTC ISO-8601."""
        tz = timezone(timedelta(hours=2))
        headers = normalize_headers([
            ("Date", datetime(2024, 3, 1, 10, 0, tzinfo=tz)),
        ])

        assert headers["date"] == "2024-03-01T08:00:00+00:00"

    def test_list_values(self):
        headers = normalize_headers([("X-Tags", ["a", "b"])])

        assert headers["x-tags"] == "a, b"

    def test_naive_date_is_utc(self):
        assert format_header_date(datetime(2024, 1, 1)) == (
            "2024-01-01T00:00:00+00:00"
        )

    def test_empty(self):
        assert len(normalize_headers(None)) == 0
