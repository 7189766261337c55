"""Unit tests for voice catalog lookups."""

from __future__ import annotations

import pytest

from voicereader.tts import LANGUAGES, SPEAKERS, voice_profile


def test_voice_profile_normalizes_speaker_and_carries_tuning() -> None:
    """Speaker IDs should be case-insensitive and tuning values preserved."""

    profile = voice_profile(" Abhilash ", "ta-IN", pace=1.3, pitch=0.2, loudness=1.0)

    assert profile.provider_voice_id == "abhilash"
    assert profile.name == "Abhilash"
    assert profile.gender == "male"
    assert profile.language == "ta-IN"
    assert (profile.pace, profile.pitch, profile.loudness) == (1.3, 0.2, 1.0)


def test_catalog_contains_default_voice_and_language() -> None:
    """The default speaker and language should be listed."""

    assert "anushka" in SPEAKERS
    assert "en-IN" in LANGUAGES


@pytest.mark.parametrize(("voice", "language"), [("nobody", "en-IN"), ("anushka", "xx-XX")])
def test_unknown_voice_or_language_is_rejected(voice: str, language: str) -> None:
    """Unsupported speakers or languages should raise `ValueError`."""

    with pytest.raises(ValueError, match="Unsupported"):
        voice_profile(voice, language)
