"""
Type-specific attachment metadata extractors.

Every extractor takes an Attachment and returns a metadata object, or
raises ExtractionError when the content is unusable.

- Calendar: VEVENT scan of the ICS text
- Image: magic-number sniffing and fixed-offset dimension reads
- Document and archive: classification from content type and filename
  only; the file itself is not opened
"""

import struct
from typing import Dict, List, Tuple

from ...exceptions import ExtractionError
from ...models import (
    ArchiveMetadata,
    Attachment,
    CalendarEvent,
    CalendarMetadata,
    DocumentMetadata,
    ImageMetadata,
)
from .classifier import base_content_type

# ICS property name -> CalendarEvent field
ICS_EVENT_FIELDS = {
    "SUMMARY": "summary",
    "DTSTART": "start",
    "DTEND": "end",
    "LOCATION": "location",
    "DESCRIPTION": "description",
}
ICS_BEGIN_EVENT = "BEGIN:VEVENT"
ICS_END_EVENT = "END:VEVENT"

PNG_SIGNATURE = b"\x89PNG"
JPEG_SIGNATURE = b"\xff\xd8"
GIF_SIGNATURE = b"GIF"

# IHDR width/height, big-endian uint32
PNG_DIMENSIONS = (">II", 16, 24)
# Logical screen width/height, little-endian uint16
GIF_DIMENSIONS = ("<HH", 6, 10)

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument."
    "wordprocessingml.document"
)
ZIP_CONTENT_TYPE = "application/zip"
TAR_CONTENT_TYPE = "application/x-tar"


def unfold_ics_lines(content: str) -> List[str]:
    """Join RFC 5545 folded lines (continuations start with space or tab)."""
    lines: List[str] = []
    for line in content.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if line[:1] in (" ", "\t") and lines:
            lines[-1] += line[1:]
        else:
            lines.append(line)
    return lines


def parse_ics_events(content: str) -> List[CalendarEvent]:
    """
    Scan ICS text for VEVENT blocks.

    BEGIN/END are treated as a flat boundary: a nested BEGIN:VEVENT starts
    a fresh event. Property parameters (DTSTART;TZID=...) are ignored and
    empty values are dropped.
    """
    events = []
    current: Dict[str, str] = {}
    in_event = False

    for line in unfold_ics_lines(content):
        trimmed = line.strip()
        marker = trimmed.upper()

        if marker == ICS_BEGIN_EVENT:
            in_event = True
            current = {}
        elif marker == ICS_END_EVENT:
            if in_event:
                events.append(CalendarEvent(**current))
                in_event = False
        elif in_event and ":" in trimmed:
            key, _, value = trimmed.partition(":")
            key = key.split(";", 1)[0].strip().upper()
            value = value.strip()
            if not value:
                continue
            field_name = ICS_EVENT_FIELDS.get(key)
            if field_name:
                current[field_name] = value

    return events


def extract_calendar_metadata(attachment: Attachment) -> CalendarMetadata:
    content = (attachment.content or b"").decode("utf-8", errors="replace")
    events = parse_ics_events(content)

    if not events and content.strip():
        raise ExtractionError("Invalid or corrupted ICS file")

    return CalendarMetadata(events=tuple(events))


def read_image_dimensions(content: bytes) -> Tuple[str, int, int]:
    """
    Sniff the image format and read its dimensions.

    Returns:
        (format, width, height); JPEG dimensions are not computed and are
        reported as zero, unknown formats as ('unknown', 0, 0)
    """
    if not content or len(content) < 4:
        return "unknown", 0, 0

    if content.startswith(PNG_SIGNATURE):
        fmt, offset, needed = PNG_DIMENSIONS
        if len(content) >= needed:
            width, height = struct.unpack_from(fmt, content, offset)
            return "png", width, height
        return "png", 0, 0

    if content.startswith(JPEG_SIGNATURE):
        # Needs SOF segment scanning
        return "jpeg", 0, 0

    if content.startswith(GIF_SIGNATURE):
        fmt, offset, needed = GIF_DIMENSIONS
        if len(content) >= needed:
            width, height = struct.unpack_from(fmt, content, offset)
            return "gif", width, height
        return "gif", 0, 0

    return "unknown", 0, 0


def extract_image_metadata(attachment: Attachment) -> ImageMetadata:
    fmt, width, height = read_image_dimensions(attachment.content)
    return ImageMetadata(
        width=width,
        height=height,
        format=fmt,
        size=attachment.size,
    )


def extract_document_metadata(attachment: Attachment) -> DocumentMetadata:
    """
    Classify as pdf, docx or generic document. Pages, author and title are
    not read from the file.
    """
    content_type = base_content_type(attachment.content_type)
    filename = (attachment.filename or "").lower()

    doc_type = "document"
    if content_type == PDF_CONTENT_TYPE or filename.endswith(".pdf"):
        doc_type = "pdf"
    if content_type == DOCX_CONTENT_TYPE or filename.endswith(".docx"):
        doc_type = "docx"

    return DocumentMetadata(type=doc_type, size=attachment.size)


def extract_archive_metadata(attachment: Attachment) -> ArchiveMetadata:
    """
    Classify as zip, tar or unknown. The archive is not opened, so file
    count and uncompressed size stay zero.
    """
    content_type = base_content_type(attachment.content_type)
    filename = (attachment.filename or "").lower()

    archive_format = "unknown"
    if content_type == ZIP_CONTENT_TYPE or filename.endswith(".zip"):
        archive_format = "zip"
    if content_type == TAR_CONTENT_TYPE or filename.endswith(".tar"):
        archive_format = "tar"

    return ArchiveMetadata(
        compressed_size=attachment.size,
        format=archive_format,
    )
