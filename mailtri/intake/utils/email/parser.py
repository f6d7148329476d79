"""
Email parser: raw bytes to a normalized ParsedEmail.

File: mailtri/intake/utils/email/parser.py

Parsing Flow:
1. Reject oversized input
2. Decompose the raw bytes with the injected MIME backend
3. Validation gate: at least one of sender, recipient, subject or body
   must be present, otherwise the payload is not an email
4. Normalize addresses, subject, body and headers
5. Resolve the message id (Message-ID header, else synthesized)
6. Build the attachment list

Any failure is raised as ParsingFailure carrying the cause and context.
The caller is expected to route the raw bytes to ParsingErrorHandler.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from ....core import settings
from ...exceptions import ParsingFailure
from ...models import Attachment, ParsedEmail
from .normalizers import (
    normalize_address,
    normalize_addresses,
    normalize_body,
    normalize_headers,
    normalize_subject,
)
from .parsers import MimeDecomposer, ParserType, create_decomposer
from .parsers.base import DecomposedPart, MimeDecomposition

logger = logging.getLogger(__name__)


class EmailParser:
    """
    Top-level email parser.

    The MIME backend is injected; by default it is built from
    settings.MIME_PARSER.
    """

    MESSAGE_ID_PREFIX = "msg"
    MESSAGE_ID_SUFFIX_LENGTH = 9
    DEFAULT_FILENAME = "unknown"
    DEFAULT_CONTENT_TYPE = "application/octet-stream"

    def __init__(
        self,
        decomposer: Optional[MimeDecomposer] = None,
        parser_type: Union[ParserType, str, None] = None,
        logger: Optional[logging.Logger] = None,
        max_size: Optional[int] = None
    ):
        """
        Initialize email parser.

        Args:
            decomposer: MIME backend; overrides parser_type when given
            parser_type: 'flanker' or 'legacy' (default: settings)
            logger: Logger for parse diagnostics
            max_size: Largest accepted input in bytes, 0 disables the check
                (default: settings.MAX_EMAIL_SIZE)
        """
        self.logger = logger or logging.getLogger(__name__)
        self.decomposer = decomposer or create_decomposer(
            parser_type or settings.MIME_PARSER, logger=self.logger
        )
        self.max_size = (
            settings.MAX_EMAIL_SIZE if max_size is None else max_size
        )

    def parse_email(self, raw_email: Union[bytes, str]) -> ParsedEmail:
        """
        Parse raw email bytes.

        Args:
            raw_email: Raw email as bytes; str is encoded as UTF-8

        Returns:
            ParsedEmail

        Raises:
            ParsingFailure: the input cannot be interpreted as an email
        """
        raw = self._coerce_bytes(raw_email)
        context = {"size": len(raw)}

        if self.max_size and len(raw) > self.max_size:
            raise ParsingFailure(
                f"Email size {len(raw)} exceeds limit {self.max_size}",
                context=context,
            )

        try:
            decomposed = self.decomposer.decompose(raw)
        except Exception as e:
            self.logger.warning(f"MIME decomposition failed: {e}")
            raise ParsingFailure(
                "Failed to parse email", cause=e, context=context
            ) from e

        self._validate_structure(decomposed, context)

        try:
            parsed = self._build_email(decomposed, raw)
        except Exception as e:
            self.logger.warning(f"Failed to normalize parsed email: {e}")
            raise ParsingFailure(
                "Failed to normalize email", cause=e, context=context
            ) from e

        if parsed.sender.address and not parsed.sender.is_valid:
            self.logger.warning(
                f"Sender address has invalid syntax: {parsed.sender.original}"
            )

        self.logger.debug(
            f"Parsed email {parsed.message_id}: "
            f"{len(parsed.to)} recipients, "
            f"{len(parsed.attachments)} attachments"
        )
        return parsed

    def parse_email_file(self, file_path: str) -> ParsedEmail:
        """
        Parse an email stored on disk.

        Raises:
            OSError: the file cannot be read
            ParsingFailure: the content is not an email
        """
        with open(file_path, "rb") as f:
            email_data = f.read()
        return self.parse_email(email_data)

    def _coerce_bytes(self, raw_email) -> bytes:
        if isinstance(raw_email, str):
            return raw_email.encode("utf-8")
        if isinstance(raw_email, (bytes, bytearray, memoryview)):
            return bytes(raw_email)
        raise ParsingFailure(
            f"Unsupported email input type: {type(raw_email).__name__}"
        )

    def _validate_structure(
        self, decomposed: MimeDecomposition, context: dict
    ) -> None:
        has_from = bool(decomposed.sender and decomposed.sender[0].address)
        has_to = bool(decomposed.to and decomposed.to[0].address)
        has_subject = bool(decomposed.subject)
        has_body = bool(decomposed.text or decomposed.html)

        if not (has_from or has_to or has_subject or has_body):
            raise ParsingFailure(
                "Email appears to be completely malformed - "
                "no recognizable email structure found",
                context=context,
            )

    def _build_email(
        self, decomposed: MimeDecomposition, raw: bytes
    ) -> ParsedEmail:
        headers = normalize_headers(decomposed.headers)
        sender = decomposed.sender[0] if decomposed.sender else None

        return ParsedEmail(
            message_id=self._resolve_message_id(headers.get("message-id")),
            sender=normalize_address(sender),
            to=normalize_addresses(decomposed.to),
            cc=normalize_addresses(decomposed.cc),
            bcc=normalize_addresses(decomposed.bcc),
            subject=normalize_subject(decomposed.subject),
            body=normalize_body(decomposed.text, decomposed.html),
            attachments=self._build_attachments(decomposed.attachments),
            headers=headers,
            date=decomposed.date or datetime.now(timezone.utc),
            size=len(raw),
        )

    def _resolve_message_id(self, header_value: Optional[str]) -> str:
        """
        Use the Message-ID header verbatim, or synthesize a unique id from
        the current time and a random suffix.
        """
        if header_value and header_value.strip():
            return header_value
        timestamp = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:self.MESSAGE_ID_SUFFIX_LENGTH]
        return f"{self.MESSAGE_ID_PREFIX}-{timestamp}-{suffix}"

    def _build_attachments(self, parts) -> Tuple[Attachment, ...]:
        return tuple(self._build_attachment(part) for part in parts or ())

    def _build_attachment(self, part: DecomposedPart) -> Attachment:
        content = part.content or b""
        cid = (part.content_id or "").strip().strip("<>") or None
        return Attachment(
            filename=part.filename or self.DEFAULT_FILENAME,
            content_type=part.content_type or self.DEFAULT_CONTENT_TYPE,
            size=len(content),
            content=content,
            cid=cid,
            is_inline=(part.disposition or "").lower() == "inline",
        )
