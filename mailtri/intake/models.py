"""
Value objects produced by the mail intake core.

Every object here is created once per raw input and never mutated
afterwards. Collections are tuples and headers are a read-only,
case-insensitive mapping, so a parsed record can be handed to any
downstream consumer without defensive copies.

The to_dict() methods return plain JSON-ready structures. Attachment
bytes are omitted unless explicitly requested, in which case they are
base64-encoded.
"""

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union

from email_validator import EmailNotValidError, validate_email


def validate_email_address(email_address: str) -> bool:
    """
    Validate email address syntax using email-validator.

    Deliverability (DNS) is never checked: the core has no network access.
    """
    if not email_address:
        return False
    try:
        validate_email(email_address, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


class HeaderMap(Mapping):
    """
    Read-only header mapping with case-insensitive lookup.

    Keys are stored lowercase. When the same key is supplied twice the
    later value wins.
    """

    def __init__(
        self,
        items: Union[Mapping, Iterable[Tuple[str, str]], None] = None
    ):
        if isinstance(items, Mapping):
            items = items.items()
        self._items: Dict[str, str] = {}
        for key, value in items or ():
            self._items[str(key).lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()]

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"

    def to_dict(self) -> Dict[str, str]:
        return dict(self._items)


@dataclass(frozen=True)
class EmailAddress:
    """
    A single mailbox.

    Attributes:
        address: Canonical mailbox, trimmed and lowercase
        name: Display name, empty when the source had none
        original: Verbatim source text, kept for audit
    """

    address: str = ""
    name: str = ""
    original: str = ""

    @property
    def is_valid(self) -> bool:
        return validate_email_address(self.address)

    def to_dict(self) -> Dict[str, str]:
        return {
            "address": self.address,
            "name": self.name,
            "original": self.original,
        }


@dataclass(frozen=True)
class EmailBody:
    """Body text. normalized is always present, possibly empty."""

    normalized: str = ""
    text: Optional[str] = None
    html: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        result = {"normalized": self.normalized}
        if self.text:
            result["text"] = self.text
        if self.html:
            result["html"] = self.html
        return result


@dataclass(frozen=True)
class Attachment:
    filename: str
    content_type: str
    size: int
    content: bytes = field(default=b"", repr=False)
    cid: Optional[str] = None
    is_inline: bool = False

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        result = {
            "filename": self.filename,
            "content_type": self.content_type,
            "size": self.size,
            "is_inline": self.is_inline,
        }
        if self.cid:
            result["cid"] = self.cid
        if include_content:
            result["content"] = base64.b64encode(self.content).decode("ascii")
        return result


@dataclass(frozen=True)
class CalendarEvent:
    """One VEVENT block. Fields absent from the source stay None."""

    summary: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class CalendarMetadata:
    events: Tuple[CalendarEvent, ...] = ()
    type: str = field(default="calendar", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "events": [event.to_dict() for event in self.events],
        }


@dataclass(frozen=True)
class ImageMetadata:
    width: int = 0
    height: int = 0
    format: str = "unknown"
    size: int = 0
    type: str = field(default="image", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "size": self.size,
        }


@dataclass(frozen=True)
class DocumentMetadata:
    """Document stub. type is one of 'document', 'pdf' or 'docx'."""

    type: str = "document"
    pages: int = 0
    author: str = ""
    title: str = ""
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "pages": self.pages,
            "author": self.author,
            "title": self.title,
            "size": self.size,
        }


@dataclass(frozen=True)
class ArchiveMetadata:
    file_count: int = 0
    compressed_size: int = 0
    uncompressed_size: int = 0
    format: str = "unknown"
    type: str = field(default="archive", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "file_count": self.file_count,
            "compressed_size": self.compressed_size,
            "uncompressed_size": self.uncompressed_size,
            "format": self.format,
        }


AttachmentMetadata = Union[
    CalendarMetadata, ImageMetadata, DocumentMetadata, ArchiveMetadata
]


@dataclass(frozen=True)
class ProcessedAttachment(Attachment):
    """
    An attachment after classification and extraction.

    States:
        processed=True, metadata set: an extractor succeeded
        processed=False, error set: an extractor raised
        processed=False, no error, metadata None: unrecognized type
    """

    processed: bool = False
    metadata: Optional[AttachmentMetadata] = None
    error: Optional[str] = None

    @classmethod
    def from_attachment(
        cls, attachment: Attachment, **changes: Any
    ) -> "ProcessedAttachment":
        values = {
            f.name: getattr(attachment, f.name) for f in fields(Attachment)
        }
        values.update(changes)
        return cls(**values)

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        result = super().to_dict(include_content=include_content)
        result["processed"] = self.processed
        result["metadata"] = self.metadata.to_dict() if self.metadata else {}
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class ParsedEmail:
    message_id: str
    sender: EmailAddress = field(default_factory=EmailAddress)
    to: Tuple[EmailAddress, ...] = ()
    cc: Tuple[EmailAddress, ...] = ()
    bcc: Tuple[EmailAddress, ...] = ()
    subject: str = ""
    body: EmailBody = field(default_factory=EmailBody)
    attachments: Tuple[Attachment, ...] = ()
    headers: HeaderMap = field(default_factory=HeaderMap)
    date: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    size: int = 0

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        return {
            "message_id": self.message_id,
            "from": self.sender.to_dict(),
            "to": [addr.to_dict() for addr in self.to],
            "cc": [addr.to_dict() for addr in self.cc],
            "bcc": [addr.to_dict() for addr in self.bcc],
            "subject": self.subject,
            "body": self.body.to_dict(),
            "attachments": [
                att.to_dict(include_content=include_content)
                for att in self.attachments
            ],
            "headers": self.headers.to_dict(),
            "date": self.date.isoformat(),
            "size": self.size,
        }


@dataclass(frozen=True)
class IntakeResult:
    """
    Outcome of one pass through the intake pipeline.

    recovered is True when the email came from the fallback path; error
    then carries the parse failure message.
    """

    email: ParsedEmail
    attachments: Tuple[ProcessedAttachment, ...] = ()
    recovered: bool = False
    error: Optional[str] = None

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        result = self.email.to_dict(include_content=include_content)
        result["attachments"] = [
            att.to_dict(include_content=include_content)
            for att in self.attachments
        ]
        result["recovered"] = self.recovered
        if self.error:
            result["error"] = self.error
        return result
