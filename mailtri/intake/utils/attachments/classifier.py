"""
Attachment classification.

Each category has a predicate over (content type, filename). Rules are
tested in order and the first match wins, so an attachment is handled by
exactly one extractor.
"""

from enum import Enum
from typing import Callable, Optional, Tuple

from ...models import Attachment


class AttachmentCategory(Enum):
    """Extractor categories"""
    CALENDAR = "calendar"
    IMAGE = "image"
    DOCUMENT = "document"
    ARCHIVE = "archive"


CALENDAR_CONTENT_TYPE = "text/calendar"
CALENDAR_EXTENSION = ".ics"
IMAGE_CONTENT_TYPE_PREFIX = "image/"

DOCUMENT_CONTENT_TYPES = frozenset([
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument."
    "wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument."
    "presentationml.presentation",
    "text/plain",
    "text/csv",
    "application/rtf",
])

ARCHIVE_CONTENT_TYPES = frozenset([
    "application/zip",
    "application/x-tar",
    "application/gzip",
    "application/x-rar-compressed",
    "application/x-7z-compressed",
])


def base_content_type(content_type: Optional[str]) -> str:
    """'Text/Calendar; method=REQUEST' -> 'text/calendar'"""
    return (content_type or "").split(";", 1)[0].strip().lower()


def is_calendar(attachment: Attachment) -> bool:
    return (
        base_content_type(attachment.content_type) == CALENDAR_CONTENT_TYPE
        or (attachment.filename or "").lower().endswith(CALENDAR_EXTENSION)
    )


def is_image(attachment: Attachment) -> bool:
    return base_content_type(attachment.content_type).startswith(
        IMAGE_CONTENT_TYPE_PREFIX
    )


def is_document(attachment: Attachment) -> bool:
    return base_content_type(attachment.content_type) in DOCUMENT_CONTENT_TYPES


def is_archive(attachment: Attachment) -> bool:
    return base_content_type(attachment.content_type) in ARCHIVE_CONTENT_TYPES


CLASSIFICATION_RULES: Tuple[
    Tuple[AttachmentCategory, Callable[[Attachment], bool]], ...
] = (
    (AttachmentCategory.CALENDAR, is_calendar),
    (AttachmentCategory.IMAGE, is_image),
    (AttachmentCategory.DOCUMENT, is_document),
    (AttachmentCategory.ARCHIVE, is_archive),
)


def classify_attachment(
    attachment: Attachment
) -> Optional[AttachmentCategory]:
    """
    Return the first matching category, or None for an unrecognized type.
    """
    for category, matches in CLASSIFICATION_RULES:
        if matches(attachment):
            return category
    return None
