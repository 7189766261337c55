"""Canonical WAV header handling and lossless segment stitching.

Responsibilities:
- Decode and encode the fixed 44-byte PCM WAV header as a named record.
- Concatenate several WAV containers into one with corrected size fields.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import io
import struct
from typing import Sequence
import wave


WAV_HEADER_SIZE = 44
_RIFF_SIZE_BASE = 36


@dataclass(frozen=True, slots=True)
class WavHeader:
    """Canonical 44-byte RIFF/WAVE header with a single `fmt ` and `data` chunk.

    Attributes:
        riff_id: `b"RIFF"` for a valid container.
        riff_size: Container size minus 8 bytes (offset 4).
        wave_id: `b"WAVE"` for a valid container.
        fmt_id: `b"fmt "` chunk identifier.
        fmt_size: Format chunk size (16 for PCM).
        audio_format: `1` for PCM.
        channels: Channel count.
        sample_rate: Frames per second.
        byte_rate: Bytes per second of audio.
        block_align: Bytes per frame.
        bits_per_sample: Sample width in bits.
        data_id: `b"data"` chunk identifier.
        data_size: Sample region size in bytes (offset 40).
    """

    riff_id: bytes
    riff_size: int
    wave_id: bytes
    fmt_id: bytes
    fmt_size: int
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_id: bytes
    data_size: int

    FORMAT = "<4sI4s4sIHHIIHH4sI"

    @classmethod
    def unpack(cls, data: bytes) -> WavHeader:
        """Decode the header from the first 44 bytes of a container."""

        if len(data) < WAV_HEADER_SIZE:
            raise ValueError(
                f"WAV container is {len(data)} bytes; expected at least {WAV_HEADER_SIZE}."
            )
        return cls(*struct.unpack_from(cls.FORMAT, data, 0))

    def pack(self) -> bytes:
        """Encode the header back to 44 little-endian bytes."""

        return struct.pack(
            self.FORMAT,
            self.riff_id,
            self.riff_size,
            self.wave_id,
            self.fmt_id,
            self.fmt_size,
            self.audio_format,
            self.channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
            self.data_id,
            self.data_size,
        )

    def with_sample_bytes(self, sample_bytes: int) -> WavHeader:
        """Return a copy whose size fields describe `sample_bytes` of samples."""

        return replace(
            self,
            riff_size=_RIFF_SIZE_BASE + sample_bytes,
            data_size=sample_bytes,
        )

    def duration_seconds(self, sample_bytes: int) -> float:
        """Return playback duration for a sample region of `sample_bytes`."""

        if self.byte_rate <= 0:
            return 0.0
        return sample_bytes / float(self.byte_rate)


def stitch_wav_segments(segments: Sequence[bytes]) -> tuple[bytes, int]:
    """Concatenate WAV containers and return the stitched bytes with the sample byte count.

    A single segment is returned unchanged. Otherwise the first header is the
    template, every header is dropped from the sample stream, and the RIFF and
    data size fields are patched to the concatenated length.
    """

    if not segments:
        raise ValueError("At least one WAV segment is required.")
    if len(segments) == 1:
        only = segments[0]
        return only, max(0, len(only) - WAV_HEADER_SIZE)

    template = WavHeader.unpack(segments[0])
    samples = bytearray()
    for segment in segments:
        if len(segment) < WAV_HEADER_SIZE:
            raise ValueError(
                f"WAV container is {len(segment)} bytes; expected at least {WAV_HEADER_SIZE}."
            )
        samples += segment[WAV_HEADER_SIZE:]

    header = template.with_sample_bytes(len(samples))
    return header.pack() + bytes(samples), len(samples)


def wav_duration_seconds(data: bytes) -> float:
    """Compute WAV duration in seconds, falling back to the raw header byte rate."""

    try:
        with wave.open(io.BytesIO(data), "rb") as wav_file:
            frame_count = wav_file.getnframes()
            sample_rate = wav_file.getframerate()
    except (wave.Error, EOFError):
        header = WavHeader.unpack(data)
        return header.duration_seconds(max(0, len(data) - WAV_HEADER_SIZE))
    if sample_rate <= 0:
        return 0.0
    return frame_count / float(sample_rate)
