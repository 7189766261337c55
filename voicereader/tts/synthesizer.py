"""Speech synthesizer interfaces and Sarvam-backed implementation.

Responsibilities:
- Define protocol for chunk-level speech synthesis.
- Decode provider audio payloads into self-contained WAV segments.
"""

from __future__ import annotations

import base64
import binascii
from typing import Protocol

from ..cancellation import CancellationToken
from ..errors import NoAudioGeneratedError
from ..models.datatypes import AudioSegment, TextChunk
from ..providers.sarvam_client import SarvamSpeechClient
from .voices import VoiceProfile


class SpeechSynthesizer(Protocol):
    """Protocol for TTS provider implementations."""

    def require_credentials(self) -> None:
        """Raise `ConfigurationError` when the provider key is missing."""

    def synthesize_chunk(
        self,
        chunk: TextChunk,
        voice: VoiceProfile,
        cancel_token: CancellationToken | None = None,
    ) -> AudioSegment:
        """Synthesize one WAV segment from a text chunk."""


class SarvamSpeechSynthesizer:
    """Sarvam-backed synthesizer returning one WAV container per chunk."""

    def __init__(
        self,
        client: SarvamSpeechClient,
        *,
        model: str = "bulbul:v2",
        sample_rate: int = 22050,
        enable_preprocessing: bool = True,
    ) -> None:
        """Initialize speech client and request settings."""

        self.client = client
        self.model = model
        self.sample_rate = sample_rate
        self.enable_preprocessing = enable_preprocessing

    def require_credentials(self) -> None:
        """Raise `ConfigurationError` when the Sarvam key is missing."""

        self.client.require_api_key()

    def synthesize_chunk(
        self,
        chunk: TextChunk,
        voice: VoiceProfile,
        cancel_token: CancellationToken | None = None,
    ) -> AudioSegment:
        """Request speech for one chunk and decode the returned WAV bytes."""

        encoded = self.client.synthesize_speech(
            text=chunk.text,
            language_code=voice.language,
            speaker=voice.provider_voice_id,
            model=self.model,
            sample_rate=self.sample_rate,
            pace=voice.pace,
            pitch=voice.pitch,
            loudness=voice.loudness,
            enable_preprocessing=self.enable_preprocessing,
            cancel_token=cancel_token,
        )
        if encoded is None:
            raise NoAudioGeneratedError(f"No audio generated for chunk {chunk.index}.")
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise NoAudioGeneratedError(
                f"Speech response for chunk {chunk.index} is not valid base64 audio."
            ) from exc
        if not data:
            raise NoAudioGeneratedError(f"No audio generated for chunk {chunk.index}.")
        return AudioSegment(chunk_index=chunk.index, data=data)
