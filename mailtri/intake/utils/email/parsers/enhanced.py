"""
Enhanced MIME backend using the flanker library.

File: mailtri/intake/utils/email/parsers/enhanced.py

Decomposition Flow:
1. Parse raw email data using flanker.mime.from_string()
2. Collect decoded headers, turning date headers into datetimes
3. Split From/To/Cc/Bcc into verbatim segments and parse each one with
   flanker.addresslib
4. Walk the MIME tree:
   - text/plain and text/html leaves become body text
   - every other leaf (including enclosed messages) becomes an
     attachment part with its raw decoded bytes
5. Return a MimeDecomposition; normalization happens in EmailParser

Flanker is preferred over the standard library for its tolerant handling
of broken multipart boundaries and mis-declared charsets.
"""

import logging
from typing import Any, Iterator, List, Optional, Tuple

from flanker import mime
from flanker.addresslib import address as address_lib

from ....exceptions import DecompositionError
from .base import (
    DATE_HEADERS,
    DecomposedAddress,
    DecomposedPart,
    HeaderValue,
    MimeDecomposer,
    MimeDecomposition,
    is_body_text_part,
    parse_header_date,
    split_address_list,
)

logger = logging.getLogger(__name__)


class FlankerDecomposer(MimeDecomposer):
    """
    MIME decomposition using flanker.
    """

    ADDRESS_HEADERS = ("From", "To", "Cc", "Bcc")

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize flanker decomposer.

        Args:
            logger: Logger for debug and warning output; defaults to the
                module logger
        """
        self.logger = logger or logging.getLogger(__name__)

    def decompose(self, raw: bytes) -> MimeDecomposition:
        """
        Decompose raw email bytes using flanker.

        Args:
            raw: Raw email data as bytes

        Returns:
            MimeDecomposition with decoded headers, addresses and parts

        Raises:
            DecompositionError: flanker rejected the payload or it has no
                header fields
        """
        try:
            message = mime.from_string(raw)
        except Exception as e:
            raise DecompositionError(
                f"Failed to parse email with mime library: {e}"
            ) from e

        if not message or not list(message.headers.items()):
            raise DecompositionError(
                "No header fields found, payload is not a MIME message"
            )

        try:
            headers = self._collect_headers(message)
            text, html, attachments = self._extract_content(message)
            addresses = {
                name: self._extract_addresses(message, name)
                for name in self.ADDRESS_HEADERS
            }
            date = next(
                (value for key, value in headers
                 if key.lower() == "date" and not isinstance(value, str)),
                None
            )
            subject = message.headers.get("Subject")
            return MimeDecomposition(
                sender=addresses["From"],
                to=addresses["To"],
                cc=addresses["Cc"],
                bcc=addresses["Bcc"],
                subject=str(subject) if subject is not None else None,
                text=text,
                html=html,
                attachments=attachments,
                headers=headers,
                date=date,
            )
        except DecompositionError:
            raise
        except Exception as e:
            raise DecompositionError(
                f"Failed to decompose message: {e}"
            ) from e

    def _collect_headers(self, message) -> List[Tuple[str, HeaderValue]]:
        headers = []
        for name, value in message.headers.items():
            text = self._header_text(value)
            if name.lower() in DATE_HEADERS:
                parsed = parse_header_date(text)
                headers.append((name, parsed if parsed else text))
            else:
                headers.append((name, text))
        return headers

    def _header_text(self, value: Any) -> str:
        """
        Render a flanker header value as text.

        Most values are already decoded strings. Content-Type values are
        ContentType objects and Content-Disposition values are
        (value, params) tuples.
        """
        if isinstance(value, str):
            return value
        to_string = getattr(value, "to_string", None)
        if callable(to_string):
            rendered = to_string()
            if isinstance(rendered, bytes):
                return rendered.decode("utf-8", errors="replace")
            return str(rendered)
        if hasattr(value, "value") and isinstance(value, tuple):
            return str(value.value or "")
        return str(value)

    def _extract_addresses(
        self, message, header_name: str
    ) -> List[DecomposedAddress]:
        addresses = []
        for value in message.headers.getall(header_name):
            for segment in split_address_list(self._header_text(value)):
                parsed = address_lib.parse(segment)
                if not isinstance(parsed, address_lib.EmailAddress):
                    self.logger.debug(
                        f"Skipping unparseable {header_name} entry: {segment}"
                    )
                    continue
                addresses.append(
                    DecomposedAddress(
                        address=str(parsed.address),
                        name=str(parsed.display_name or ""),
                        original=segment,
                    )
                )
        return addresses

    def _iter_leaves(self, part) -> Iterator[Any]:
        # Enclosed messages stay leaves and are reported as attachments
        if part.content_type.is_multipart():
            for subpart in part.parts:
                yield from self._iter_leaves(subpart)
        else:
            yield part

    def _extract_content(
        self, message
    ) -> Tuple[Optional[str], Optional[str], List[DecomposedPart]]:
        """
        Extract text, HTML and attachment parts from the message.

        Returns:
            tuple: (text_content, html_content, attachment_parts)
        """
        text_parts = []
        html_parts = []
        attachments = []

        for part in self._iter_leaves(message):
            main_type = part.content_type.main
            sub_type = part.content_type.sub
            disposition = self._get_disposition(part)
            filename = self._get_filename(part)

            self.logger.debug(
                f"Processing part - "
                f"content_type: {main_type}/{sub_type}, "
                f"content_disposition: {disposition}, "
                f"filename: {filename or 'None'}"
            )

            if is_body_text_part(main_type, sub_type, disposition, filename):
                part_content = self._get_part_content(part)
                if not part_content.strip():
                    continue
                if sub_type == "plain":
                    text_parts.append(part_content)
                else:
                    html_parts.append(part_content)
                continue

            content_id = part.headers.get("Content-Id")
            attachments.append(
                DecomposedPart(
                    content=self._get_part_bytes(part),
                    filename=filename,
                    content_type=f"{main_type}/{sub_type}",
                    content_id=str(content_id) if content_id else None,
                    disposition=disposition,
                )
            )

        # Combine all text parts, use the first HTML part as main content
        text_content = "\n\n".join(text_parts) if text_parts else None
        html_content = html_parts[0] if html_parts else None

        return text_content, html_content, attachments

    def _get_disposition(self, part) -> Optional[str]:
        disposition = part.content_disposition
        value = getattr(disposition, "value", None) if disposition else None
        return str(value).lower() if value else None

    def _get_filename(self, part) -> Optional[str]:
        filename = None
        disposition = part.content_disposition
        if disposition and getattr(disposition, "params", None):
            filename = disposition.params.get("filename")
        if not filename and getattr(part.content_type, "params", None):
            filename = part.content_type.params.get("name")
        return filename or None

    def _get_part_content(self, part) -> str:
        """
        Get text content from email part with proper decoding.

        Args:
            part: Email part object

        Returns:
            str: Decoded content as string
        """
        body = part.body
        if not body:
            return ""
        if isinstance(body, bytes):
            charset = "utf-8"
            if hasattr(part.content_type, "params"):
                charset = part.content_type.params.get("charset", "utf-8")
            try:
                return body.decode(charset, errors="replace")
            except LookupError:
                self.logger.warning(
                    f"Unknown charset '{charset}', decoding as utf-8"
                )
                return body.decode("utf-8", errors="replace")
        return str(body)

    def _get_part_bytes(self, part) -> bytes:
        if part.content_type.is_message_container():
            enclosed = part.enclosed
            rendered = enclosed.to_string() if enclosed is not None else b""
        else:
            rendered = part.body
        if not rendered:
            return b""
        if isinstance(rendered, bytes):
            return rendered
        return str(rendered).encode("utf-8")
