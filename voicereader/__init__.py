"""Top-level package for VoiceReader.

This package converts PDF and image documents into narrated WAV audio by
extracting text through an OCR backend and synthesizing it in chunks. The main
orchestration entry point is `VoiceReaderPipeline`.
"""

from .pipeline import VoiceReaderPipeline

__all__ = ["VoiceReaderPipeline", "__version__"]

__version__ = "0.1.0"
