"""
Normalization helpers applied by EmailParser to a MIME decomposition.

- Addresses: canonical lowercase mailbox, display name, verbatim original
- Subject: one leading reply/forward marker removed, NFC normalized
- Body: plain text preferred, HTML stripped as a fallback, line endings
  unified and blank-line runs collapsed
- Headers: lowercase keys, repeated headers joined, dates as ISO-8601

All functions are pure and never log.
"""

import re
import unicodedata
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from ...models import EmailAddress, EmailBody, HeaderMap
from .parsers.base import DecomposedAddress, HeaderValue

# Single leading reply/forward marker. Nested markers are left in place.
REPLY_PREFIX_PATTERN = re.compile(r"^(re:|fwd?:|fw:)\s*", re.IGNORECASE)

SCRIPT_BLOCK_PATTERN = re.compile(
    r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL
)
STYLE_BLOCK_PATTERN = re.compile(
    r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL
)
HTML_TAG_PATTERN = re.compile(r"<[^>]+>")

# The only entities decoded when deriving text from HTML
HTML_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}
HTML_ENTITY_PATTERN = re.compile(
    "|".join(re.escape(entity) for entity in HTML_ENTITIES)
)

BLANK_LINE_RUN_PATTERN = re.compile(r"\n{3,}")

HEADER_VALUE_SEPARATOR = ", "


def normalize_address(address: Optional[DecomposedAddress]) -> EmailAddress:
    """
    Canonicalize a single address.

    The original keeps the backend's verbatim text when it has one and is
    otherwise rebuilt as "Name <addr>" from the uncanonicalized address.
    """
    if address is None or not (address.address or "").strip():
        return EmailAddress()

    raw_address = address.address.strip()
    name = (address.name or "").strip()

    original = address.original
    if not original:
        original = f"{name} <{raw_address}>" if name else raw_address

    return EmailAddress(
        address=raw_address.lower(),
        name=name,
        original=original,
    )


def normalize_addresses(
    addresses: Optional[Iterable[DecomposedAddress]]
) -> Tuple[EmailAddress, ...]:
    return tuple(normalize_address(addr) for addr in addresses or ())


def normalize_subject(subject: Optional[str]) -> str:
    """
    Strip one leading Re:/Fwd:/Fw: marker and NFC-normalize.

    "Re: Re: Hello" becomes "Re: Hello": only a single marker is removed
    per call.
    """
    if not subject:
        return ""
    stripped = REPLY_PREFIX_PATTERN.sub("", subject, count=1).strip()
    return unicodedata.normalize("NFC", stripped)


def strip_html_tags(html: str) -> str:
    """
    Derive plain text from HTML.

    Script and style blocks are removed with their content, every other
    tag is dropped, and only the entities in HTML_ENTITIES are decoded.
    """
    if not html:
        return ""
    text = SCRIPT_BLOCK_PATTERN.sub("", html)
    text = STYLE_BLOCK_PATTERN.sub("", text)
    text = HTML_TAG_PATTERN.sub("", text)
    text = HTML_ENTITY_PATTERN.sub(lambda m: HTML_ENTITIES[m.group(0)], text)
    return text.strip()


def normalize_line_endings(text: str) -> str:
    """
    Collapse CRLF and CR to LF, squeeze 3+ newlines to one blank line and
    trim surrounding whitespace.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = BLANK_LINE_RUN_PATTERN.sub("\n\n", text)
    return text.strip()


def normalize_body(
    text: Optional[str], html: Optional[str]
) -> EmailBody:
    """
    Build the body record. normalized prefers the plain text part and
    falls back to stripped HTML; it is an empty string when neither exists.
    """
    normalized = text or ""
    if not normalized and html:
        normalized = strip_html_tags(html)

    return EmailBody(
        normalized=normalize_line_endings(normalized),
        text=text or None,
        html=html or None,
    )


def format_header_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _header_value_text(value: HeaderValue) -> str:
    if isinstance(value, datetime):
        return format_header_date(value)
    if isinstance(value, (list, tuple)):
        return HEADER_VALUE_SEPARATOR.join(str(item) for item in value)
    return str(value)


def normalize_headers(
    headers: Optional[Iterable[Tuple[str, HeaderValue]]]
) -> HeaderMap:
    """
    Lowercase header names and merge repeated headers.

    Repeated headers (Received, for example) keep their source order and
    are joined with ", ".
    """
    merged: dict = {}
    for name, value in headers or ():
        key = str(name).lower()
        values: List[str] = merged.setdefault(key, [])
        values.append(_header_value_text(value))

    return HeaderMap(
        (key, HEADER_VALUE_SEPARATOR.join(values))
        for key, values in merged.items()
    )
