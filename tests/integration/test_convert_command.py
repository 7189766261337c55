"""Integration tests for the end-to-end `voicereader convert` command."""

from __future__ import annotations

from pathlib import Path
import struct
from typing import Any, Callable

import pytest
from typer.testing import CliRunner

from voicereader.cli import app

TTS_URL = "https://api.sarvam.ai/text-to-speech"
UPLOAD_URL = "https://uploads.test/job-it?sig=1"
DOWNLOAD_URL = "https://downloads.test/job-it.zip"


@pytest.fixture
def pdf_document(tmp_path: Path) -> Path:
    path = tmp_path / "lesson.pdf"
    path.write_bytes(b"%PDF-1.4 integration")
    return path


def test_convert_writes_text_and_stitched_audio(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    pdf_document: Path,
    cli_session: Any,
    route_document_job: Callable[..., None],
    route_speech: Callable[..., bytes],
) -> None:
    """Convert should extract, chunk, synthesize, and write both artifacts."""

    monkeypatch.setenv("SARVAM_API_KEY", "env-sarvam-key")
    route_document_job(
        cli_session,
        [
            ("page-001.md", b"# Lesson One\n\nThe *quick* brown fox. It jumps over the dog."),
            ("image.png", b"\x89PNG"),
        ],
    )
    segment = route_speech(cli_session, frame_count=100)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        app,
        ["convert", str(pdf_document), "--out", str(out_dir), "--chunk-size", "25"],
    )

    assert result.exit_code == 0, result.output
    text_path = out_dir / "lesson.txt"
    audio_path = out_dir / "lesson.wav"
    assert text_path.read_text(encoding="utf-8") == (
        "Lesson One\n\nThe quick brown fox. It jumps over the dog.\n"
    )

    tts_calls = [call for call in cli_session.calls if call["url"] == TTS_URL]
    chunk_texts = [call["json"]["inputs"][0] for call in tts_calls]
    assert len(chunk_texts) > 1
    assert all(len(chunk) <= 25 for chunk in chunk_texts)
    assert all(call["json"]["speaker"] == "anushka" for call in tts_calls)

    audio = audio_path.read_bytes()
    sample_bytes = len(tts_calls) * (len(segment) - 44)
    assert len(audio) == 44 + sample_bytes
    assert struct.unpack_from("<I", audio, 40)[0] == sample_bytes
    assert struct.unpack_from("<I", audio, 4)[0] == 36 + sample_bytes

    assert cli_session.calls[0]["headers"]["api-subscription-key"] == "env-sarvam-key"
    assert UPLOAD_URL in cli_session.urls()
    assert DOWNLOAD_URL in cli_session.urls()
    assert "[progress] command=convert | 1/4 stage=extract" in result.output
    assert "[phase] level=INFO stage=tts event=complete" in result.output
    assert f"Chunks: {len(tts_calls)}" in result.output
    assert f"Audio: {audio_path}" in result.output


def test_convert_stores_cli_api_key_by_default(
    tmp_path: Path,
    pdf_document: Path,
    cli_session: Any,
    credential_stores: dict[str, Any],
    route_document_job: Callable[..., None],
    route_speech: Callable[..., bytes],
) -> None:
    """A CLI-provided key should be persisted unless `--no-store-api-key` is passed."""

    route_document_job(cli_session, [("page.md", b"Short text.")])
    route_speech(cli_session)

    result = CliRunner().invoke(
        app,
        ["convert", str(pdf_document), "--out", str(tmp_path / "out"), "--api-key", "cli-key"],
    )

    assert result.exit_code == 0, result.output
    assert credential_stores["sarvam"].get_api_key() == "cli-key"
    assert "Stored Sarvam API key in secure credential storage." in result.output
    assert all(
        call["headers"].get("api-subscription-key") == "cli-key"
        for call in cli_session.calls
        if call["url"].startswith("https://api.sarvam.ai")
    )


def test_convert_uses_stored_key_without_storing_again(
    tmp_path: Path,
    pdf_document: Path,
    cli_session: Any,
    credential_stores: dict[str, Any],
    route_document_job: Callable[..., None],
    route_speech: Callable[..., bytes],
) -> None:
    """A key already in secure storage should be used when no CLI key is given."""

    credential_stores["sarvam"].set_api_key("stored-key")
    route_document_job(cli_session, [("page.md", b"Short text.")])
    route_speech(cli_session)

    result = CliRunner().invoke(
        app, ["convert", str(pdf_document), "--out", str(tmp_path / "out")]
    )

    assert result.exit_code == 0, result.output
    assert "Stored Sarvam API key" not in result.output
    assert cli_session.calls[0]["headers"]["api-subscription-key"] == "stored-key"


def test_extract_command_writes_only_text(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    pdf_document: Path,
    cli_session: Any,
    route_document_job: Callable[..., None],
) -> None:
    """Extract should stop after writing `<stem>.txt`."""

    monkeypatch.setenv("SARVAM_API_KEY", "env-key")
    route_document_job(cli_session, [("page.html", b"<h1>Title</h1><p>Body &amp; more</p>")])
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(app, ["extract", str(pdf_document), "--out", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert (out_dir / "lesson.txt").read_text(encoding="utf-8") == "Title\n\nBody & more\n"
    assert not (out_dir / "lesson.wav").exists()
    assert TTS_URL not in cli_session.urls()
    assert "Characters: 18" in result.output


def test_synthesize_command_reads_text_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    cli_session: Any,
    route_speech: Callable[..., bytes],
) -> None:
    """Synthesize should narrate an existing text file with the chosen voice."""

    monkeypatch.setenv("SARVAM_API_KEY", "env-key")
    route_speech(cli_session)
    text_file = tmp_path / "notes.txt"
    text_file.write_text("Namaste. Swagat hai.", encoding="utf-8")
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        app,
        [
            "synthesize",
            str(text_file),
            "--out",
            str(out_dir),
            "--voice",
            "Karun",
            "--language",
            "hi-IN",
        ],
    )

    assert result.exit_code == 0, result.output
    assert (out_dir / "notes.wav").exists()
    payload = cli_session.calls[0]["json"]
    assert payload["speaker"] == "karun"
    assert payload["target_language_code"] == "hi-IN"
    assert payload["inputs"] == ["Namaste. Swagat hai."]
    assert "Chunks: 1" in result.output


def test_inline_mode_uses_ocr_key_and_chat_completions(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    cli_session: Any,
    route_speech: Callable[..., bytes],
) -> None:
    """Inline mode should read the image with one OCR call and then synthesize."""

    monkeypatch.setenv("SARVAM_API_KEY", "env-sarvam")
    monkeypatch.setenv("OPENAI_API_KEY", "env-ocr")
    cli_session.add(
        "POST",
        "https://api.openai.com/v1/chat/completions",
        json_body={"choices": [{"message": {"content": "Read from **image**."}}]},
    )
    route_speech(cli_session)
    image = tmp_path / "photo.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\nimage-bytes")
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        app, ["convert", str(image), "--out", str(out_dir), "--mode", "inline"]
    )

    assert result.exit_code == 0, result.output
    assert (out_dir / "photo.txt").read_text(encoding="utf-8") == "Read from image.\n"
    ocr_call = cli_session.calls[0]
    assert ocr_call["headers"]["Authorization"] == "Bearer env-ocr"
    assert ocr_call["json"]["messages"][0]["content"][1]["type"] == "image_url"
