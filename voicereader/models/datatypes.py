"""Core datatypes shared across VoiceReader modules.

Responsibilities:
- Represent records exchanged between extraction, chunking, and synthesis stages.
- Provide explicit typing for the document job state machine.

Key types:
- `SourceDocument`, `JobState`, `ExtractionJob`, `JobStatusReport`, `ArchiveEntry`,
  `TextChunk`, `AudioSegment`, `StitchedAudio`, and `ConversionResult`.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """Uploaded document consumed once by extraction.

    Attributes:
        data: Raw document bytes.
        media_type: Declared media type (`application/pdf` or `image/*`).
        filename: Original filename, used for inline provider payloads.
    """

    data: bytes
    media_type: str
    filename: str = "document"

    @property
    def is_pdf(self) -> bool:
        """Return whether the document is a PDF."""

        return self.media_type == "application/pdf"

    @property
    def is_image(self) -> bool:
        """Return whether the document is an image."""

        return self.media_type.startswith("image/")

    def to_base64(self) -> str:
        """Return the document bytes as ASCII base64."""

        return base64.b64encode(self.data).decode("ascii")


class JobState(str, Enum):
    """Lifecycle states of a remote document extraction job."""

    CREATED = "created"
    UPLOADED = "uploaded"
    STARTED = "started"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further transition is possible."""

        return self in {JobState.COMPLETED, JobState.FAILED, JobState.TIMED_OUT}


@dataclass(slots=True)
class ExtractionJob:
    """Mutable record of one remote document job; written only by its orchestrator."""

    job_id: str
    upload_url: str
    download_url: str | None = None
    state: JobState = JobState.CREATED
    poll_attempts: int = 0


@dataclass(frozen=True, slots=True)
class JobStatusReport:
    """Parsed job status response."""

    state: str
    download_url: str | None = None


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """One decoded text entry from a ZIP-like archive."""

    name: str
    compression_method: int
    compressed_size: int
    uncompressed_size: int
    payload: bytes

    def text(self) -> str:
        """Decode the payload as UTF-8, replacing invalid sequences."""

        return self.payload.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class TextChunk:
    """A bounded text segment sent to the speech backend.

    Attributes:
        index: 1-based position in the chunk sequence.
        text: Trimmed, non-empty chunk text.
    """

    index: int
    text: str


@dataclass(frozen=True, slots=True)
class AudioSegment:
    """One self-contained WAV container synthesized from a chunk."""

    chunk_index: int
    data: bytes


@dataclass(frozen=True, slots=True)
class StitchedAudio:
    """Final WAV container built from all segments in chunk order.

    Attributes:
        data: Complete WAV bytes (header followed by PCM samples).
        segment_count: Number of segments stitched together.
        sample_bytes: Byte length of the concatenated sample region.
        duration_seconds: Playback duration derived from the header byte rate.
    """

    data: bytes
    segment_count: int
    sample_bytes: int
    duration_seconds: float = 0.0

    def to_base64(self) -> str:
        """Return the WAV bytes as ASCII base64."""

        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of a document-to-speech conversion."""

    text: str
    chunk_count: int
    audio: StitchedAudio
    text_path: Path | None = None
    audio_path: Path | None = None
