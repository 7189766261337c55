"""WAV container parsing and stitching components."""

from .wav import WAV_HEADER_SIZE, WavHeader, stitch_wav_segments, wav_duration_seconds

__all__ = ["WAV_HEADER_SIZE", "WavHeader", "stitch_wav_segments", "wav_duration_seconds"]
