"""Chunk-by-chunk synthesis and WAV reassembly.

Responsibilities:
- Synthesize chunks sequentially, in order, failing fast on the first error.
- Stitch the returned WAV segments into one container with corrected sizes.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from loguru import logger

from ..audio.wav import stitch_wav_segments, wav_duration_seconds
from ..cancellation import CancellationToken
from ..errors import NoAudioGeneratedError
from ..models.datatypes import AudioSegment, StitchedAudio, TextChunk
from .synthesizer import SpeechSynthesizer
from .voices import VoiceProfile


class SynthesisStitcher:
    """Turn ordered text chunks into a single stitched WAV payload."""

    def __init__(self, synthesizer: SpeechSynthesizer) -> None:
        """Initialize with the chunk-level synthesizer."""

        self.synthesizer = synthesizer

    def synthesize(
        self,
        chunks: Sequence[TextChunk],
        voice: VoiceProfile,
        language: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> StitchedAudio:
        """Synthesize every chunk and return the stitched audio.

        Args:
            chunks: Ordered, non-empty chunk sequence.
            voice: Speaker profile; its language is overridden by `language` when given.
            language: Target language code.
            cancel_token: Optional token checked before each chunk request.
        """

        if not chunks:
            raise NoAudioGeneratedError("No text chunks to synthesize.")
        self.synthesizer.require_credentials()
        if language is not None and language != voice.language:
            voice = replace(voice, language=language)

        token = cancel_token if cancel_token is not None else CancellationToken()
        segments: list[AudioSegment] = []
        for chunk in chunks:
            token.raise_if_cancelled("tts")
            segment = self.synthesizer.synthesize_chunk(chunk, voice, cancel_token=token)
            logger.debug(
                "Synthesized chunk {}/{} ({} bytes)",
                chunk.index,
                len(chunks),
                len(segment.data),
            )
            segments.append(segment)

        return self.stitch(segments)

    @staticmethod
    def stitch(segments: Sequence[AudioSegment]) -> StitchedAudio:
        """Concatenate WAV segments into a single container."""

        try:
            data, sample_bytes = stitch_wav_segments([segment.data for segment in segments])
            duration = wav_duration_seconds(data)
        except ValueError as exc:
            raise NoAudioGeneratedError(str(exc), stage="stitch") from exc
        return StitchedAudio(
            data=data,
            segment_count=len(segments),
            sample_bytes=sample_bytes,
            duration_seconds=duration,
        )
