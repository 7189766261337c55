"""Unit tests for source document loading and media type resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from voicereader.errors import PipelineStageError, UnsupportedMediaTypeError
from voicereader.io.documents import load_document, sniff_media_type, validate_media_type


def test_pdf_suffix_resolves_media_type(tmp_path: Path) -> None:
    """The file suffix should determine the media type when it is known."""

    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.7")

    document = load_document(path)

    assert document.media_type == "application/pdf"
    assert document.filename == "report.pdf"
    assert document.data == b"%PDF-1.7"
    assert document.is_pdf is True


def test_explicit_media_type_wins(tmp_path: Path) -> None:
    """An explicit media type should override suffix guessing."""

    path = tmp_path / "scan.bin"
    path.write_bytes(b"anything")

    document = load_document(path, " IMAGE/PNG ")

    assert document.media_type == "image/png"
    assert document.is_image is True


def test_magic_bytes_used_when_suffix_is_unhelpful(tmp_path: Path) -> None:
    """Unknown suffixes should fall back to magic-byte sniffing."""

    path = tmp_path / "upload"
    path.write_bytes(b"\xff\xd8\xff\xe0rest-of-jpeg")

    assert load_document(path).media_type == "image/jpeg"


def test_unsupported_document_is_rejected(tmp_path: Path) -> None:
    """Text files should be rejected before any extraction."""

    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")

    with pytest.raises(UnsupportedMediaTypeError) as exc_info:
        load_document(path)

    assert exc_info.value.stage == "input"
    assert exc_info.value.media_type == "text/plain"


def test_missing_document_is_input_stage_error(tmp_path: Path) -> None:
    """Missing input paths should fail at the input stage with a hint."""

    with pytest.raises(PipelineStageError) as exc_info:
        load_document(tmp_path / "missing.pdf")

    assert exc_info.value.stage == "input"
    assert exc_info.value.hint is not None


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"%PDF-1.4", "application/pdf"),
        (b"\x89PNG\r\n\x1a\n....", "image/png"),
        (b"GIF89a...", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"RIFF\x00\x00\x00\x00WAVEfmt ", None),
        (b"plain", None),
    ],
)
def test_sniff_media_type(data: bytes, expected: str | None) -> None:
    """Magic-byte sniffing should identify PDFs and common image formats only."""

    assert sniff_media_type(data) == expected


@pytest.mark.parametrize("media_type", [None, "", "audio/wav", "application/zip"])
def test_validate_media_type_rejects_non_documents(media_type: str | None) -> None:
    """Only PDFs and images are valid inputs."""

    with pytest.raises(UnsupportedMediaTypeError):
        validate_media_type(media_type)
