"""
MIME decomposition contract shared by all parser backends.

A backend turns raw bytes into a MimeDecomposition: decoded headers,
address lists, body text and the leaf parts that are attachments. It does
no normalization; EmailParser owns that.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# Header values whose type is a date
DATE_HEADERS = ("date", "resent-date")

HeaderValue = Union[str, datetime, List[str]]


@dataclass(frozen=True)
class DecomposedAddress:
    """Address as seen by the backend, before canonicalization."""

    address: str
    name: str = ""
    original: Optional[str] = None


@dataclass(frozen=True)
class DecomposedPart:
    """A leaf MIME part that is not body text."""

    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None
    content_id: Optional[str] = None
    disposition: Optional[str] = None


@dataclass(frozen=True)
class MimeDecomposition:
    sender: List[DecomposedAddress] = field(default_factory=list)
    to: List[DecomposedAddress] = field(default_factory=list)
    cc: List[DecomposedAddress] = field(default_factory=list)
    bcc: List[DecomposedAddress] = field(default_factory=list)
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    attachments: List[DecomposedPart] = field(default_factory=list)
    headers: List[Tuple[str, HeaderValue]] = field(default_factory=list)
    date: Optional[datetime] = None


class MimeDecomposer(ABC):
    """Interface for MIME decomposition backends."""

    @abstractmethod
    def decompose(self, raw: bytes) -> MimeDecomposition:
        """
        Split raw email bytes into headers and parts.

        Raises:
            DecompositionError: the payload is not a MIME message
        """
        pass


def split_address_list(value: str) -> List[str]:
    """
    Split an address header into verbatim per-address segments.

    Commas inside quoted display names, angle brackets or comments do not
    split. Empty segments are dropped.

    Example:
        '"Doe, Jane" <jane@x.org>, bob@y.org'
        -> ['"Doe, Jane" <jane@x.org>', 'bob@y.org']
    """
    if not value:
        return []

    segments = []
    current = []
    in_quotes = False
    escaped = False
    angle_depth = 0
    comment_depth = 0

    for char in value:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\":
            current.append(char)
            escaped = True
            continue
        if char == '"' and not comment_depth:
            in_quotes = not in_quotes
        elif not in_quotes:
            if char == "<":
                angle_depth += 1
            elif char == ">" and angle_depth:
                angle_depth -= 1
            elif char == "(":
                comment_depth += 1
            elif char == ")" and comment_depth:
                comment_depth -= 1
            elif char == "," and not angle_depth and not comment_depth:
                segments.append("".join(current))
                current = []
                continue
        current.append(char)

    segments.append("".join(current))
    return [segment.strip() for segment in segments if segment.strip()]


def parse_header_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 5322 date header into an aware datetime.

    Naive results are taken as UTC. Returns None when the value is empty
    or unparseable.
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(str(value).strip())
    except (TypeError, ValueError, IndexError) as e:
        logger.debug(f"Failed to parse date header '{value}': {e}")
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_body_text_part(
    main_type: str,
    sub_type: str,
    disposition: Optional[str],
    filename: Optional[str]
) -> bool:
    """
    A leaf part is body text when it is text/plain or text/html, carries no
    filename and is not marked as an attachment. Everything else is an
    attachment part.
    """
    if main_type != "text" or sub_type not in ("plain", "html"):
        return False
    if filename:
        return False
    return (disposition or "").lower() != "attachment"
