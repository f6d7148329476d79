"""
Attachment processor: classification plus extraction, per item and per
batch.

process_attachment never raises. Extractor failures are recorded in the
result's error field; an attachment no rule matches comes back with
processed=False, no metadata and no error.
"""

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ...models import Attachment, AttachmentMetadata, ProcessedAttachment
from .classifier import AttachmentCategory, classify_attachment
from .extractors import (
    extract_archive_metadata,
    extract_calendar_metadata,
    extract_document_metadata,
    extract_image_metadata,
)

logger = logging.getLogger(__name__)

Extractor = Callable[[Attachment], AttachmentMetadata]

DEFAULT_EXTRACTORS: Dict[AttachmentCategory, Extractor] = {
    AttachmentCategory.CALENDAR: extract_calendar_metadata,
    AttachmentCategory.IMAGE: extract_image_metadata,
    AttachmentCategory.DOCUMENT: extract_document_metadata,
    AttachmentCategory.ARCHIVE: extract_archive_metadata,
}


class AttachmentProcessor:
    """
    Runs the extractor for each attachment's category.

    Attachments in a batch are processed sequentially; one failing item
    never affects the others.
    """

    def __init__(
        self,
        extractors: Optional[Mapping[AttachmentCategory, Extractor]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize attachment processor.

        Args:
            extractors: Overrides for the per-category extractors; missing
                categories keep the defaults
            logger: Logger for extraction diagnostics
        """
        self.extractors = dict(DEFAULT_EXTRACTORS)
        if extractors:
            self.extractors.update(extractors)
        self.logger = logger or logging.getLogger(__name__)

    def process_attachment(self, attachment: Attachment) -> ProcessedAttachment:
        """
        Classify and extract metadata for a single attachment.

        Args:
            attachment: Attachment to inspect

        Returns:
            ProcessedAttachment, never raises
        """
        try:
            category = classify_attachment(attachment)
            extractor = self.extractors.get(category) if category else None

            if extractor is None:
                self.logger.debug(
                    f"No extractor for {attachment.filename} "
                    f"({attachment.content_type})"
                )
                return ProcessedAttachment.from_attachment(attachment)

            metadata = extractor(attachment)
        except Exception as e:
            self.logger.warning(
                f"Failed to process attachment {attachment.filename}: {e}"
            )
            return ProcessedAttachment.from_attachment(
                attachment,
                processed=False,
                error=str(e) or e.__class__.__name__,
            )

        self.logger.debug(
            f"Processed {category.value} attachment {attachment.filename}"
        )
        return ProcessedAttachment.from_attachment(
            attachment, processed=True, metadata=metadata
        )

    def process_attachments(
        self, attachments: Iterable[Attachment]
    ) -> List[ProcessedAttachment]:
        """
        Process a batch of attachments, keeping input order.

        Returns:
            One ProcessedAttachment per input item
        """
        results = []
        for attachment in attachments or ():
            try:
                results.append(self.process_attachment(attachment))
            except Exception as e:
                self.logger.error(f"Unexpected attachment failure: {e}")
                results.append(self._failed_attachment(attachment, e))
        return results

    def _failed_attachment(
        self, attachment, error: Exception
    ) -> ProcessedAttachment:
        content = getattr(attachment, "content", b"") or b""
        return ProcessedAttachment(
            filename=getattr(attachment, "filename", None) or "unknown",
            content_type=(
                getattr(attachment, "content_type", None)
                or "application/octet-stream"
            ),
            size=getattr(attachment, "size", None) or len(content),
            content=content,
            cid=getattr(attachment, "cid", None),
            is_inline=bool(getattr(attachment, "is_inline", False)),
            processed=False,
            error=str(error) or error.__class__.__name__,
        )
