"""
Email utilities package

Subpackages and modules:
- parsers: MIME decomposition backends (enhanced, legacy)
- normalizers: address, subject, body and header normalization
- parser: EmailParser
- fallback: ParsingErrorHandler and its header scanner
- processor: intake orchestration
"""

from .fallback import HeaderScanner, ParsingErrorHandler
from .parser import EmailParser
from .parsers import ParserType, create_decomposer
from .processor import EmailIntakeProcessor

__all__ = [
    'EmailIntakeProcessor',
    'EmailParser',
    'HeaderScanner',
    'ParserType',
    'ParsingErrorHandler',
    'create_decomposer',
]
