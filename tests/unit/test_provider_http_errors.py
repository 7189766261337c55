"""Unit tests for provider HTTP error mapping and request shaping."""

from __future__ import annotations

from typing import Any

import pytest
import requests

from voicereader.cancellation import CancellationToken
from voicereader.errors import (
    OperationCancelledError,
    RateLimitedError,
    UpstreamRequestError,
)
from voicereader.providers import OpenAIVisionClient, SarvamSpeechClient
from voicereader.models.datatypes import SourceDocument


BASE_URL = "https://sarvam.test"
TTS_URL = f"{BASE_URL}/text-to-speech"


def _speech_client(session: Any) -> SarvamSpeechClient:
    return SarvamSpeechClient(api_key="sarvam-key", base_url=f"{BASE_URL}/", session=session)


def _synthesize(client: SarvamSpeechClient, **kwargs: Any) -> str | None:
    return client.synthesize_speech(text="Hello.", language_code="en-IN", speaker="anushka", **kwargs)


def test_speech_request_payload_and_headers(fake_session: Any) -> None:
    """Speech calls should post the documented JSON body with the subscription key."""

    fake_session.add("POST", TTS_URL, json_body={"audios": [" UklGRg== "]})

    audio = _synthesize(_speech_client(fake_session), pace=1.2, sample_rate=16000)

    assert audio == "UklGRg=="
    call = fake_session.calls[0]
    assert call["headers"] == {"api-subscription-key": "sarvam-key"}
    assert call["json"] == {
        "inputs": ["Hello."],
        "target_language_code": "en-IN",
        "speaker": "anushka",
        "pitch": 0.0,
        "pace": 1.2,
        "loudness": 1.5,
        "speech_sample_rate": 16000,
        "enable_preprocessing": True,
        "model": "bulbul:v2",
    }
    assert call["timeout"] == 60.0


@pytest.mark.parametrize("body", [{}, {"audios": []}, {"audios": [""]}, {"audios": [None]}])
def test_missing_audio_returns_none(fake_session: Any, body: dict[str, Any]) -> None:
    """Responses without a usable audio payload should yield `None`."""

    fake_session.add("POST", TTS_URL, json_body=body)

    assert _synthesize(_speech_client(fake_session)) is None


@pytest.mark.parametrize("status_code", [401, 403])
def test_auth_failures_are_classified(fake_session: Any, status_code: int) -> None:
    """401/403 responses should be tagged as invalid API key failures."""

    fake_session.add(
        "POST",
        TTS_URL,
        status=status_code,
        json_body={"error": {"message": "Invalid key sk-abcdefghijklmnop"}},
    )

    with pytest.raises(UpstreamRequestError) as exc_info:
        _synthesize(_speech_client(fake_session))

    error = exc_info.value
    assert error.failure_kind == "invalid_api_key"
    assert error.status_code == status_code
    assert error.step == "tts"
    assert "authentication failed" in error.detail
    assert "sk-abcdefghijklmnop" not in error.detail
    assert "[redacted-key]" in error.detail
    assert error.hint is not None


def test_rate_limit_maps_to_rate_limited_error(fake_session: Any) -> None:
    """HTTP 429 should be the retryable `RateLimitedError`."""

    fake_session.add("POST", TTS_URL, status=429, content=b"Too many requests")

    with pytest.raises(RateLimitedError) as exc_info:
        _synthesize(_speech_client(fake_session))

    assert exc_info.value.failure_kind == "rate_limited"
    assert "Too many requests" in exc_info.value.detail


def test_gateway_timeout_is_classified_as_timeout(fake_session: Any) -> None:
    """HTTP 504 should be reported as a timeout failure."""

    fake_session.add("POST", TTS_URL, status=504)

    with pytest.raises(UpstreamRequestError) as exc_info:
        _synthesize(_speech_client(fake_session))

    assert exc_info.value.failure_kind == "timeout"
    assert exc_info.value.detail.endswith("(HTTP 504).")


def test_long_error_body_is_truncated(fake_session: Any) -> None:
    """Provider messages should be compacted and capped."""

    fake_session.add("POST", TTS_URL, status=500, content=("word " * 200).encode("utf-8"))

    with pytest.raises(UpstreamRequestError) as exc_info:
        _synthesize(_speech_client(fake_session))

    message = exc_info.value.detail.split(": ", 1)[1]
    assert len(message) < 200
    assert message.endswith("...")


@pytest.mark.parametrize(
    ("error", "failure_kind"),
    [
        (requests.Timeout("read timed out"), "timeout"),
        (requests.ConnectionError("connection refused"), "transport"),
    ],
)
def test_transport_errors_are_classified(
    fake_session: Any, error: Exception, failure_kind: str
) -> None:
    """Transport-level failures should not carry a status code."""

    fake_session.add("POST", TTS_URL, error=error)

    with pytest.raises(UpstreamRequestError) as exc_info:
        _synthesize(_speech_client(fake_session))

    assert exc_info.value.failure_kind == failure_kind
    assert exc_info.value.status_code is None


def test_invalid_json_body_is_malformed(fake_session: Any) -> None:
    """A non-JSON success body should be a malformed-response error."""

    fake_session.add("POST", TTS_URL, content=b"<html>oops</html>")

    with pytest.raises(UpstreamRequestError) as exc_info:
        _synthesize(_speech_client(fake_session))

    assert exc_info.value.failure_kind == "malformed_response"


def test_cancel_during_request_leaves_injected_session_open(fake_session: Any) -> None:
    """Cancelling mid-request should surface a cancellation without closing a caller session."""

    token = CancellationToken()
    fake_session.add(
        "POST",
        TTS_URL,
        error=requests.ConnectionError("connection aborted"),
        hook=token.cancel,
    )

    with pytest.raises(OperationCancelledError) as exc_info:
        _synthesize(_speech_client(fake_session), cancel_token=token)

    assert fake_session.closed is False
    assert exc_info.value.step == "tts"


def test_already_cancelled_token_skips_request(fake_session: Any) -> None:
    """No request should be issued once the token is cancelled."""

    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelledError):
        _synthesize(_speech_client(fake_session), cancel_token=token)

    assert fake_session.calls == []


def test_bearer_tokens_are_redacted_from_ocr_errors(fake_session: Any) -> None:
    """Echoed bearer tokens should never reach the error detail."""

    fake_session.add(
        "POST",
        "https://ocr.test/v1/chat/completions",
        status=400,
        json_body={"error": {"message": "bad header Bearer abcdefghijklmnopqrstuvwxyz"}},
    )
    client = OpenAIVisionClient(api_key="key", base_url="https://ocr.test/v1", session=fake_session)
    document = SourceDocument(data=b"%PDF", media_type="application/pdf")

    with pytest.raises(UpstreamRequestError) as exc_info:
        client.extract_document_text(model="m", instruction="read", document=document)

    assert "abcdefghijklmnopqrstuvwxyz" not in exc_info.value.detail
    assert "Bearer [redacted-token]" in exc_info.value.detail
    assert exc_info.value.failure_kind == "http_error"
