from typing import Any, Dict, Optional


class IntakeError(Exception):
    """
    Base exception for the mail intake module
    """
    pass


class DecompositionError(IntakeError):
    """
    Raised when a MIME backend cannot split the payload into headers
    and parts
    """
    pass


class ExtractionError(IntakeError):
    """
    Raised by an attachment extractor when the content is unusable
    """
    pass


class ParsingFailure(IntakeError):
    """
    Raised when raw input cannot be interpreted as an email at all.

    The calling pipeline must catch it and hand the original bytes to
    ParsingErrorHandler.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message
