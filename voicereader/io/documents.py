"""Source document loading and media type validation.

Responsibilities:
- Read document bytes from disk into a `SourceDocument`.
- Resolve the media type from an explicit value, the file suffix, or magic bytes.
- Reject anything that is neither a PDF nor an image before any network call.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path

from ..errors import PipelineStageError, UnsupportedMediaTypeError
from ..models.datatypes import SourceDocument
from ..parsing import normalize_optional_string


_MAGIC_MEDIA_TYPES = (
    (b"%PDF", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)


def validate_media_type(media_type: str | None) -> str:
    """Return the normalized media type, or raise for non-PDF/non-image input."""

    normalized = (normalize_optional_string(media_type) or "").lower()
    if normalized == "application/pdf" or normalized.startswith("image/"):
        return normalized
    raise UnsupportedMediaTypeError(normalized)


def sniff_media_type(data: bytes) -> str | None:
    """Guess a media type from leading magic bytes."""

    for magic, media_type in _MAGIC_MEDIA_TYPES:
        if data.startswith(magic):
            return media_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def load_document(path: Path, media_type: str | None = None) -> SourceDocument:
    """Load a document from disk and validate its media type."""

    try:
        data = path.read_bytes()
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Input document not found: `{path}`.",
            hint="Verify the document path and rerun the command.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Failed to read input document `{path}`: {exc}",
        ) from exc

    resolved = normalize_optional_string(media_type)
    if resolved is None:
        guessed = mimetypes.guess_type(path.name)[0]
        if guessed is not None and (guessed == "application/pdf" or guessed.startswith("image/")):
            resolved = guessed
        else:
            resolved = sniff_media_type(data) or guessed
    return SourceDocument(
        data=data,
        media_type=validate_media_type(resolved),
        filename=path.name,
    )
