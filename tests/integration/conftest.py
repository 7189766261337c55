"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

import base64
from typing import Any, Callable

import pytest

from voicereader import cli
from voicereader.pipeline import VoiceReaderPipeline


SARVAM_BASE_URL = "https://api.sarvam.ai"
JOBS_URL = f"{SARVAM_BASE_URL}/v1/document-intelligence/jobs"
TTS_URL = f"{SARVAM_BASE_URL}/text-to-speech"
UPLOAD_URL = "https://uploads.test/job-it?sig=1"
DOWNLOAD_URL = "https://downloads.test/job-it.zip"


class InMemoryCredentialStore:
    """Simple in-memory credential store used for CLI tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        """Initialize the store with an optional pre-seeded API key."""

        self._api_key = initial_api_key

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_api_key(self) -> str | None:
        """Return currently stored API key value."""

        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key value."""

        self._api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        """Clear API key and return whether one existed."""

        existed = self._api_key is not None
        self._api_key = None
        return existed


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove ambient credentials and make job polling immediate."""

    for key in ("SARVAM_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("VOICEREADER_POLL_INTERVAL_SECONDS", "0")


@pytest.fixture(autouse=True)
def credential_stores(monkeypatch: pytest.MonkeyPatch) -> dict[str, InMemoryCredentialStore]:
    """Replace OS keyring access with per-provider in-memory stores."""

    stores = {"sarvam": InMemoryCredentialStore(), "ocr": InMemoryCredentialStore()}
    monkeypatch.setattr(cli, "create_credential_store", lambda provider="sarvam": stores[provider])
    return stores


@pytest.fixture
def cli_session(monkeypatch: pytest.MonkeyPatch, fake_session: Any) -> Any:
    """Route every CLI-created pipeline through the in-memory HTTP session."""

    def _pipeline(**kwargs: Any) -> VoiceReaderPipeline:
        return VoiceReaderPipeline(session=fake_session, sleeper=lambda _seconds: None, **kwargs)

    monkeypatch.setattr(cli, "VoiceReaderPipeline", _pipeline)
    return fake_session


@pytest.fixture
def route_document_job(
    make_zip: Callable[..., bytes],
) -> Callable[..., None]:
    """Provide a helper queueing a complete document job on a fake session."""

    def _route(session: Any, pages: list[tuple[str, bytes]], *, final_state: str = "Completed") -> None:
        session.add("POST", JOBS_URL, json_body={"job_id": "job-it", "upload_url": UPLOAD_URL})
        session.add("PUT", UPLOAD_URL)
        session.add("POST", f"{JOBS_URL}/job-it/start", json_body={"job_state": "Accepted"})
        session.add("GET", f"{JOBS_URL}/job-it/status", json_body={"job_state": "Running"})
        session.add(
            "GET",
            f"{JOBS_URL}/job-it/status",
            json_body={"job_state": final_state, "download_url": DOWNLOAD_URL},
        )
        session.add("GET", DOWNLOAD_URL, content=make_zip(pages))

    return _route


@pytest.fixture
def route_speech(make_wav: Callable[..., bytes]) -> Callable[..., bytes]:
    """Provide a helper queueing a reusable speech response; returns the segment WAV."""

    def _route(session: Any, *, frame_count: int = 2205) -> bytes:
        wav = make_wav(frame_count=frame_count)
        session.add("POST", TTS_URL, json_body={"audios": [base64.b64encode(wav).decode("ascii")]})
        return wav

    return _route
