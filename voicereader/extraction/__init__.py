"""Document text extraction strategies.

This package contains the asynchronous document-job strategy and the
single-call inline OCR strategy. Both satisfy `DocumentExtractor`.
"""

from .base import DocumentExtractor
from .inline_extractor import InlineOcrExtractor
from .job_extractor import DocumentJobExtractor

__all__ = ["DocumentExtractor", "DocumentJobExtractor", "InlineOcrExtractor"]
