"""
Command line entry point.

Usage:
    Parse a single message:
        python -m mailtri message.eml

    Parse every .eml file in a directory with the legacy backend:
        python -m mailtri /var/mail/inbox --parser legacy

Prints one JSON document per message.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .core import settings
from .intake.utils.email import EmailIntakeProcessor, ParserType

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mailtri',
        description='Parse raw emails into normalized JSON records'
    )
    parser.add_argument(
        'path',
        help='Email file or directory of .eml files'
    )
    parser.add_argument(
        '--parser',
        choices=[parser_type.value for parser_type in ParserType],
        default=settings.MIME_PARSER,
        help='MIME backend (default: %(default)s)'
    )
    parser.add_argument(
        '--include-content',
        action='store_true',
        help='Include base64 attachment content in the output'
    )
    parser.add_argument(
        '--log-level',
        default=settings.LOG_LEVEL,
        help='Logging level (default: %(default)s)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr
    )

    if not os.path.exists(args.path):
        logger.error(f"Path not found: {args.path}")
        return 2

    processor = EmailIntakeProcessor(parser_type=args.parser)

    if os.path.isdir(args.path):
        results = processor.iter_directory(args.path)
    else:
        results = [(args.path, processor.process_file(args.path))]

    for file_path, result in results:
        document = result.to_dict(include_content=args.include_content)
        document['source'] = file_path
        print(json.dumps(document, ensure_ascii=False))

    return 0
