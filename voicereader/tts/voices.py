"""Voice profile models and the speech voice catalog.

Responsibilities:
- Represent provider voice identities and tuning metadata.
- List the speakers and language codes accepted by the speech backend.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile used by the speech synthesizer.

    Attributes:
        name: Human-readable profile name.
        provider_voice_id: Provider-native speaker identifier.
        language: BCP-47 language code, for example `en-IN`.
        gender: Speaker gender label shown in the voice catalog.
        pace: Relative speaking rate multiplier.
        pitch: Pitch offset.
        loudness: Loudness multiplier.
    """

    name: str
    provider_voice_id: str
    language: str
    gender: str = "female"
    pace: float = 1.0
    pitch: float = 0.0
    loudness: float = 1.5


DEFAULT_VOICE_ID = "anushka"
DEFAULT_LANGUAGE = "en-IN"

SPEAKERS: dict[str, str] = {
    "anushka": "female",
    "manisha": "female",
    "vidya": "female",
    "arya": "female",
    "abhilash": "male",
    "karun": "male",
    "hitesh": "male",
}

LANGUAGES: dict[str, str] = {
    "en-IN": "English (India)",
    "hi-IN": "Hindi",
    "bn-IN": "Bengali",
    "ta-IN": "Tamil",
    "te-IN": "Telugu",
    "kn-IN": "Kannada",
    "ml-IN": "Malayalam",
    "mr-IN": "Marathi",
    "gu-IN": "Gujarati",
    "pa-IN": "Punjabi",
    "od-IN": "Odia",
}


def voice_profile(
    voice_id: str,
    language: str,
    *,
    pace: float = 1.0,
    pitch: float = 0.0,
    loudness: float = 1.5,
) -> VoiceProfile:
    """Build a `VoiceProfile` for a catalog speaker.

    Raises:
        ValueError: If the speaker or language code is not in the catalog.
    """

    normalized_voice = voice_id.strip().lower()
    if normalized_voice not in SPEAKERS:
        raise ValueError(
            f"Unsupported voice `{voice_id}`. Supported: {', '.join(sorted(SPEAKERS))}."
        )
    if language not in LANGUAGES:
        raise ValueError(
            f"Unsupported language `{language}`. Supported: {', '.join(sorted(LANGUAGES))}."
        )
    return VoiceProfile(
        name=normalized_voice.capitalize(),
        provider_voice_id=normalized_voice,
        language=language,
        gender=SPEAKERS[normalized_voice],
        pace=pace,
        pitch=pitch,
        loudness=loudness,
    )
