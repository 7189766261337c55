"""Text normalization and segmentation components.

This package provides deterministic markdown stripping and length-bounded
chunking used between extraction and speech synthesis.
"""

from .chunking import TextChunker
from .normalizer import TextNormalizer, strip_html_tags

__all__ = ["TextChunker", "TextNormalizer", "strip_html_tags"]
