"""
mailtri - email parsing and attachment metadata core

Public entry points:
    parse_email(raw) -> ParsedEmail, raises ParsingFailure
    process_attachment(attachment) -> ProcessedAttachment
    process_attachments(attachments) -> list of ProcessedAttachment
    handle_parsing_error(error, raw) -> ParsedEmail, never raises
"""

from typing import Any, Iterable, List

from .intake.exceptions import (
    DecompositionError,
    ExtractionError,
    IntakeError,
    ParsingFailure,
)
from .intake.models import (
    ArchiveMetadata,
    Attachment,
    CalendarEvent,
    CalendarMetadata,
    DocumentMetadata,
    EmailAddress,
    EmailBody,
    HeaderMap,
    ImageMetadata,
    IntakeResult,
    ParsedEmail,
    ProcessedAttachment,
)
from .intake.utils.attachments import AttachmentProcessor
from .intake.utils.email import (
    EmailIntakeProcessor,
    EmailParser,
    ParserType,
    ParsingErrorHandler,
)

__version__ = "0.1.0"


def parse_email(raw_email: bytes) -> ParsedEmail:
    return EmailParser().parse_email(raw_email)


def process_attachment(attachment: Attachment) -> ProcessedAttachment:
    return AttachmentProcessor().process_attachment(attachment)


def process_attachments(
    attachments: Iterable[Attachment]
) -> List[ProcessedAttachment]:
    return AttachmentProcessor().process_attachments(attachments)


def handle_parsing_error(error: BaseException, raw_email: Any) -> ParsedEmail:
    return ParsingErrorHandler().handle_parsing_error(error, raw_email)


__all__ = [
    'ArchiveMetadata',
    'Attachment',
    'AttachmentProcessor',
    'CalendarEvent',
    'CalendarMetadata',
    'DecompositionError',
    'DocumentMetadata',
    'EmailAddress',
    'EmailBody',
    'EmailIntakeProcessor',
    'EmailParser',
    'ExtractionError',
    'HeaderMap',
    'ImageMetadata',
    'IntakeError',
    'IntakeResult',
    'ParsedEmail',
    'ParserType',
    'ParsingErrorHandler',
    'ParsingFailure',
    'ProcessedAttachment',
    'handle_parsing_error',
    'parse_email',
    'process_attachment',
    'process_attachments',
]
