"""
MIME decomposition backends

Parsers:
- enhanced: flanker-based backend (default)
- legacy: Python standard library backend

The flanker backend is imported on first use so that selecting the legacy
backend never requires flanker to be importable.
"""

import logging
from enum import Enum
from typing import Optional, Union

from .base import (
    DecomposedAddress,
    DecomposedPart,
    MimeDecomposer,
    MimeDecomposition,
    split_address_list,
)
from .legacy import LegacyDecomposer


class ParserType(Enum):
    """Email parser types"""
    LEGACY = "legacy"
    FLANKER = "flanker"


def create_decomposer(
    parser_type: Union[ParserType, str] = ParserType.FLANKER,
    logger: Optional[logging.Logger] = None
) -> MimeDecomposer:
    """
    Build the MIME backend for a parser type.

    Args:
        parser_type: 'flanker' or 'legacy', or the matching ParserType
        logger: Logger handed to the backend

    Raises:
        ValueError: unknown parser type
    """
    if isinstance(parser_type, str):
        parser_type = ParserType(parser_type.lower())

    if parser_type == ParserType.FLANKER:
        from .enhanced import FlankerDecomposer
        return FlankerDecomposer(logger=logger)
    return LegacyDecomposer(logger=logger)


__all__ = [
    'DecomposedAddress',
    'DecomposedPart',
    'LegacyDecomposer',
    'MimeDecomposer',
    'MimeDecomposition',
    'ParserType',
    'create_decomposer',
    'split_address_list',
]
