"""
Legacy MIME backend built on Python's email package.

Kept alongside the flanker backend for environments where flanker is not
installed, and as a cross-check: both backends must produce the same
decomposition for well-formed mail.
"""

import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parseaddr
from typing import Iterator, List, Optional, Tuple

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


class LegacyDecomposer(MimeDecomposer):
    """
    MIME decomposition using email.parser.BytesParser with the modern
    (policy.default) header registry.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def decompose(self, raw: bytes) -> MimeDecomposition:
        try:
            message = BytesParser(policy=policy.default).parsebytes(raw)
        except Exception as e:
            raise DecompositionError(f"Failed to parse message: {e}") from e

        if not message.keys():
            raise DecompositionError(
                "No header fields found, payload is not a MIME message"
            )

        try:
            headers = self._collect_headers(message)
            text, html, attachments = self._extract_parts(message)
            date = next(
                (value for key, value in headers
                 if key.lower() == "date" and not isinstance(value, str)),
                None
            )
            subject = message.get("Subject")
            return MimeDecomposition(
                sender=self._extract_addresses(message, "From"),
                to=self._extract_addresses(message, "To"),
                cc=self._extract_addresses(message, "Cc"),
                bcc=self._extract_addresses(message, "Bcc"),
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

    def _collect_headers(
        self, message: EmailMessage
    ) -> List[Tuple[str, HeaderValue]]:
        headers = []
        for name, value in message.items():
            text = str(value)
            if name.lower() in DATE_HEADERS:
                parsed = parse_header_date(text)
                headers.append((name, parsed if parsed else text))
            else:
                headers.append((name, text))
        return headers

    def _extract_addresses(
        self, message: EmailMessage, header_name: str
    ) -> List[DecomposedAddress]:
        addresses = []
        for value in message.get_all(header_name) or []:
            for segment in split_address_list(str(value)):
                name, address = parseaddr(segment)
                if not address:
                    self.logger.debug(
                        f"Skipping unparseable {header_name} entry: {segment}"
                    )
                    continue
                addresses.append(
                    DecomposedAddress(
                        address=address, name=name, original=segment
                    )
                )
        return addresses

    def _iter_leaves(self, part: EmailMessage) -> Iterator[EmailMessage]:
        # message/rfc822 parts are leaves: the enclosed mail is an attachment
        if part.get_content_maintype() == "multipart":
            for subpart in part.get_payload() or []:
                yield from self._iter_leaves(subpart)
        else:
            yield part

    def _extract_parts(
        self, message: EmailMessage
    ) -> Tuple[Optional[str], Optional[str], List[DecomposedPart]]:
        text_parts = []
        html_parts = []
        attachments = []

        for part in self._iter_leaves(message):
            main_type = part.get_content_maintype()
            sub_type = part.get_content_subtype()
            disposition = part.get_content_disposition()
            filename = part.get_filename()

            self.logger.debug(
                f"Processing part - content_type: {main_type}/{sub_type}, "
                f"content_disposition: {disposition}, filename: {filename}"
            )

            if is_body_text_part(main_type, sub_type, disposition, filename):
                content = self._get_text_content(part)
                if not content.strip():
                    continue
                if sub_type == "plain":
                    text_parts.append(content)
                else:
                    html_parts.append(content)
                continue

            content_id = part.get("Content-ID")
            attachments.append(
                DecomposedPart(
                    content=self._get_binary_content(part),
                    filename=filename,
                    content_type=part.get_content_type(),
                    content_id=str(content_id) if content_id else None,
                    disposition=disposition,
                )
            )

        text = "\n\n".join(text_parts) if text_parts else None
        html = html_parts[0] if html_parts else None
        return text, html, attachments

    def _get_text_content(self, part: EmailMessage) -> str:
        try:
            return part.get_content()
        except (LookupError, UnicodeDecodeError) as e:
            self.logger.warning(f"Failed to decode text part, using utf-8: {e}")
            payload = part.get_payload(decode=True) or b""
            return payload.decode("utf-8", errors="replace")

    def _get_binary_content(self, part: EmailMessage) -> bytes:
        if part.get_content_type() == "message/rfc822":
            enclosed = part.get_payload()
            if isinstance(enclosed, list) and enclosed:
                return enclosed[0].as_bytes()
        payload = part.get_payload(decode=True)
        return payload if payload else b""
