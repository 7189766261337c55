"""VoiceReader pipeline package.

This package contains the orchestration facade and its runtime and telemetry
helpers.
"""

from .orchestrator import VoiceReaderPipeline

__all__ = ["VoiceReaderPipeline"]
