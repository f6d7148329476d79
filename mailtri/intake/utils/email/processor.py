"""
Email intake processor - the boundary between the calling pipeline and
the parsing core.

For each raw message:
1. Parse with EmailParser
2. On ParsingFailure, recover a record with ParsingErrorHandler
3. Process the attachments with AttachmentProcessor
4. Return an IntakeResult; nothing raises past this point

Why yield from iter_directory instead of returning a list?
Messages are parsed one at a time so a large inbox directory never has to
be held in memory at once.
"""

import logging
import os
from typing import Any, Iterator, Optional, Tuple, Union

from ...exceptions import ParsingFailure
from ...models import IntakeResult
from ..attachments import AttachmentProcessor
from .fallback import ParsingErrorHandler
from .parser import EmailParser
from .parsers import ParserType

logger = logging.getLogger(__name__)

EML_EXTENSION = ".eml"


class EmailIntakeProcessor:
    """
    Runs parse, fallback and attachment processing for raw messages.
    """

    def __init__(
        self,
        parser: Optional[EmailParser] = None,
        error_handler: Optional[ParsingErrorHandler] = None,
        attachment_processor: Optional[AttachmentProcessor] = None,
        parser_type: Union[ParserType, str, None] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize intake processor.

        Args:
            parser: Email parser (default: built from parser_type)
            error_handler: Fallback for unparseable input
            attachment_processor: Attachment metadata extraction
            parser_type: MIME backend used when parser is not given
            logger: Logger shared with the default collaborators
        """
        self.logger = logger or logging.getLogger(__name__)
        self.parser = parser or EmailParser(
            parser_type=parser_type, logger=self.logger
        )
        self.error_handler = error_handler or ParsingErrorHandler(
            logger=self.logger
        )
        self.attachment_processor = (
            attachment_processor or AttachmentProcessor(logger=self.logger)
        )

        self.logger.info(
            f"EmailIntakeProcessor initialized: "
            f"backend={type(self.parser.decomposer).__name__}"
        )

    def process(self, raw_email: Any) -> IntakeResult:
        """
        Process one raw message.

        Args:
            raw_email: Raw email bytes

        Returns:
            IntakeResult; recovered is True when the fallback produced it
        """
        try:
            email = self.parser.parse_email(raw_email)
        except ParsingFailure as e:
            self.logger.warning(f"Could not parse email, recovering: {e}")
            email = self.error_handler.handle_parsing_error(e, raw_email)
            return IntakeResult(email=email, recovered=True, error=str(e))

        attachments = ()
        if email.attachments:
            self.logger.info(
                f"Processing attachments: count={len(email.attachments)}"
            )
            attachments = tuple(
                self.attachment_processor.process_attachments(
                    email.attachments
                )
            )

        return IntakeResult(email=email, attachments=attachments)

    def process_file(self, file_path: str) -> IntakeResult:
        """
        Process an email file.

        Raises:
            OSError: the file cannot be read
        """
        with open(file_path, "rb") as f:
            raw_email = f.read()
        self.logger.debug(f"Processing email file: {file_path}")
        return self.process(raw_email)

    def iter_directory(
        self, directory: str
    ) -> Iterator[Tuple[str, IntakeResult]]:
        """
        Process every .eml file in a directory, in name order.

        Yields:
            (file_path, IntakeResult)
        """
        if not os.path.isdir(directory):
            self.logger.warning(f"Not a directory: {directory}")
            return

        for name in sorted(os.listdir(directory)):
            if not name.lower().endswith(EML_EXTENSION):
                continue
            file_path = os.path.join(directory, name)
            try:
                yield file_path, self.process_file(file_path)
            except OSError as e:
                self.logger.error(f"Skipping unreadable file {name}: {e}")
