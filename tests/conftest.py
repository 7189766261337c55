"""Shared pytest fixtures for the full VoiceReader test suite."""

from __future__ import annotations

from collections import deque
import io
import json
from typing import Any, Callable
import wave
import zipfile

import pytest
import requests


class FakeResponse:
    """Minimal `requests.Response` double carrying a status and body bytes."""

    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        """Initialize response status and raw body."""

        self.status_code = status_code
        self.content = content

    def raise_for_status(self) -> None:
        """Raise `requests.HTTPError` for 4xx/5xx statuses like the real response."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeSession:
    """In-memory `requests.Session` double with per-route response queues.

    The last queued entry of a route is reused once the queue drains, which keeps
    polling tests short.
    """

    def __init__(self) -> None:
        """Initialize empty routes and call history."""

        self._routes: dict[tuple[str, str], deque[Any]] = {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def add(
        self,
        method: str,
        url: str,
        *,
        status: int = 200,
        json_body: Any = None,
        content: bytes = b"",
        error: Exception | None = None,
        hook: Callable[[], None] | None = None,
    ) -> None:
        """Queue one response (or raised error) for a method/URL pair."""

        if json_body is not None:
            content = json.dumps(json_body).encode("utf-8")
        entry = error if error is not None else FakeResponse(status, content)
        self._routes.setdefault((method.upper(), url), deque()).append((entry, hook))

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: bytes | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        """Record the call and return (or raise) the next queued entry."""

        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers or {}),
                "json": json,
                "data": data,
                "timeout": timeout,
            }
        )
        queue = self._routes.get((method.upper(), url))
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {url}")
        entry, hook = queue.popleft() if len(queue) > 1 else queue[0]
        if hook is not None:
            hook()
        if isinstance(entry, Exception):
            raise entry
        return entry

    def close(self) -> None:
        """Record session closure."""

        self.closed = True

    def urls(self) -> list[str]:
        """Return requested URLs in call order."""

        return [call["url"] for call in self.calls]


@pytest.fixture
def fake_session() -> FakeSession:
    """Provide a fresh in-memory HTTP session double."""

    return FakeSession()


def build_wav(frame_count: int = 100, sample: bytes = b"\x01\x00", sample_rate: int = 22050) -> bytes:
    """Build a mono 16-bit PCM WAV container with repeated sample bytes."""

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(sample * frame_count)
    return buffer.getvalue()


def build_zip(entries: list[tuple[str, bytes]], compression: int = zipfile.ZIP_STORED) -> bytes:
    """Build a ZIP archive from `(name, payload)` pairs."""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, payload in entries:
            archive.writestr(name, payload)
    return buffer.getvalue()


@pytest.fixture
def make_wav() -> Callable[..., bytes]:
    """Provide the WAV container builder."""

    return build_wav


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    """Provide the ZIP archive builder."""

    return build_zip
