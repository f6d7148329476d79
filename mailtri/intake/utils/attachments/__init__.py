"""
Attachment utilities package

- classifier: category rules (first match wins)
- extractors: calendar, image, document and archive metadata
- processor: per-item and batch orchestration
"""

from .classifier import AttachmentCategory, classify_attachment
from .processor import AttachmentProcessor

__all__ = [
    'AttachmentCategory',
    'AttachmentProcessor',
    'classify_attachment',
]
