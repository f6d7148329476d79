"""
Recovery path for emails that EmailParser rejected.

ParsingErrorHandler degrades in two tiers and never raises:

1. Basic info: scan the header block line by line and split address
   headers with a regex, without touching any MIME backend.
2. Minimal record: if the scan itself fails, return a placeholder with a
   synthesized id, empty fields and the input size.

Either way the pipeline receives a well-formed ParsedEmail.
"""

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from ....core import settings
from ...models import EmailAddress, EmailBody, HeaderMap, ParsedEmail
from .parsers.base import parse_header_date

logger = logging.getLogger(__name__)

# "Name <addr>" or a bare address
ADDRESS_PATTERN = re.compile(r"^\s*(.+?)\s*<\s*(.+?)\s*>\s*$|^\s*(.+?)\s*$")

UNKNOWN_MESSAGE_ID = "unknown"
MINIMAL_MESSAGE_ID_PREFIX = "minimal"


class HeaderScanner:
    """
    Minimal header grammar: one "name: value" per line up to the first
    blank line.

    - Keys are lowercased; a repeated key keeps its last value
    - Lines starting with whitespace continue the previous value
    - Lines without a colon are ignored
    """

    def scan(self, raw: Any) -> HeaderMap:
        content = self._decode(raw)
        headers = {}
        last_key = None

        for line in content.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                break

            if line[0] in " \t" and last_key:
                headers[last_key] = f"{headers[last_key]} {trimmed}".strip()
                continue

            if ":" not in trimmed:
                last_key = None
                continue

            key, _, value = trimmed.partition(":")
            key = key.strip().lower()
            if not key:
                last_key = None
                continue
            headers[key] = value.strip()
            last_key = key

        return HeaderMap(headers)

    def _decode(self, raw: Any) -> str:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, (bytes, bytearray, memoryview)):
            return bytes(raw).decode("utf-8", errors="replace")
        raise TypeError(f"Cannot scan headers from {type(raw).__name__}")


def parse_address(value: Optional[str]) -> EmailAddress:
    """Parse "Name <addr>" or a bare address with a regex."""
    if not value or not value.strip():
        return EmailAddress()

    match = ADDRESS_PATTERN.match(value)
    if match and match.group(2):
        return EmailAddress(
            address=match.group(2).strip().lower(),
            name=match.group(1).strip().strip('"').strip(),
            original=value,
        )
    if match and match.group(3):
        return EmailAddress(
            address=match.group(3).strip().lower(),
            name="",
            original=value,
        )
    return EmailAddress(address=value.strip().lower(), original=value)


def parse_address_list(value: Optional[str]) -> Tuple[EmailAddress, ...]:
    """Split on commas and parse each entry; empty entries are dropped."""
    if not value:
        return ()
    return tuple(
        parse_address(entry.strip())
        for entry in value.split(",")
        if entry.strip()
    )


class ParsingErrorHandler:
    """
    Turns a parse failure into a best-effort ParsedEmail.
    """

    def __init__(
        self,
        scanner: Optional[HeaderScanner] = None,
        logger: Optional[logging.Logger] = None,
        header_preview: Optional[int] = None
    ):
        self.scanner = scanner or HeaderScanner()
        self.logger = logger or logging.getLogger(__name__)
        self.header_preview = (
            settings.FALLBACK_HEADER_PREVIEW
            if header_preview is None else header_preview
        )

    def handle_parsing_error(
        self, error: BaseException, raw_email: Any
    ) -> ParsedEmail:
        """
        Recover a ParsedEmail from input that failed to parse.

        Args:
            error: The failure raised by EmailParser
            raw_email: The original raw input

        Returns:
            ParsedEmail, never raises
        """
        try:
            self._log_error(error, raw_email)
            return self._extract_basic_info(raw_email)
        except Exception as e:
            self.logger.warning(
                f"Basic info extraction failed, using minimal email: {e}"
            )
            return self._create_minimal_email(raw_email)

    def _log_error(self, error: BaseException, raw_email: Any) -> None:
        try:
            headers = self.scanner.scan(raw_email).to_dict()
        except Exception as e:
            self.logger.debug(f"Failed to extract headers for logging: {e}")
            headers = {}
        preview = dict(list(headers.items())[:self.header_preview])
        self.logger.error(
            f"Email parsing error: {error} "
            f"(size={_input_size(raw_email)}, headers={preview})"
        )

    def _extract_basic_info(self, raw_email: Any) -> ParsedEmail:
        headers = self.scanner.scan(raw_email)

        return ParsedEmail(
            message_id=headers.get("message-id") or UNKNOWN_MESSAGE_ID,
            sender=parse_address(headers.get("from", "")),
            to=parse_address_list(headers.get("to", "")),
            cc=parse_address_list(headers.get("cc", "")),
            bcc=parse_address_list(headers.get("bcc", "")),
            subject=headers.get("subject", ""),
            body=EmailBody(normalized=""),
            attachments=(),
            headers=headers,
            date=(
                parse_header_date(headers.get("date"))
                or datetime.now(timezone.utc)
            ),
            size=_input_size(raw_email),
        )

    def _create_minimal_email(self, raw_email: Any) -> ParsedEmail:
        return ParsedEmail(
            message_id=(
                f"{MINIMAL_MESSAGE_ID_PREFIX}-{int(time.time() * 1000)}"
            ),
            sender=EmailAddress(),
            body=EmailBody(normalized=""),
            headers=HeaderMap(),
            date=datetime.now(timezone.utc),
            size=_input_size(raw_email),
        )


def _input_size(raw_email: Any) -> int:
    try:
        return len(raw_email)
    except TypeError:
        return 0
