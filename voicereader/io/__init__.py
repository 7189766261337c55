"""Input/output components for VoiceReader.

This package contains document loading, archive parsing, and output artifact
storage used by the pipeline.
"""

from .archive_reader import ArchiveReader, LocalFileHeader
from .documents import load_document, validate_media_type
from .storage import ArtifactStore

__all__ = [
    "ArchiveReader",
    "LocalFileHeader",
    "ArtifactStore",
    "load_document",
    "validate_media_type",
]
