"""Shared typed data models for VoiceReader.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    ArchiveEntry,
    AudioSegment,
    ConversionResult,
    ExtractionJob,
    JobState,
    JobStatusReport,
    SourceDocument,
    StitchedAudio,
    TextChunk,
)

__all__ = [
    "ArchiveEntry",
    "AudioSegment",
    "ConversionResult",
    "ExtractionJob",
    "JobState",
    "JobStatusReport",
    "SourceDocument",
    "StitchedAudio",
    "TextChunk",
]
