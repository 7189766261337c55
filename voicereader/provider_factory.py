"""Provider factory helpers for extraction and speech stages.

Responsibilities:
- Resolve the configured extraction mode to a concrete strategy.
- Keep orchestration independent from concrete provider class construction.
"""

from __future__ import annotations

import requests

from .config import ResolvedCredentials, VoiceReaderConfig
from .extraction import DocumentExtractor, DocumentJobExtractor, InlineOcrExtractor
from .providers.openai_client import OpenAIVisionClient
from .providers.sarvam_client import SarvamDocumentJobClient, SarvamSpeechClient
from .tts.stitcher import SynthesisStitcher
from .tts.synthesizer import SarvamSpeechSynthesizer


class ProviderFactory:
    """Factory for provider-backed stage clients used by the pipeline."""

    @staticmethod
    def create_extractor(
        config: VoiceReaderConfig,
        credentials: ResolvedCredentials,
        session: requests.Session | None = None,
    ) -> DocumentExtractor:
        """Create the extraction strategy for `config.extraction_mode`."""

        if config.extraction_mode == "job":
            client = SarvamDocumentJobClient(
                api_key=credentials.sarvam_api_key,
                base_url=config.sarvam_base_url,
                timeout_seconds=config.request_timeout_seconds,
                session=session,
            )
            return DocumentJobExtractor(
                client,
                poll_interval_seconds=config.poll_interval_seconds,
                max_poll_attempts=config.max_poll_attempts,
            )
        if config.extraction_mode == "inline":
            vision_client = OpenAIVisionClient(
                api_key=credentials.ocr_api_key,
                base_url=config.ocr_base_url,
                timeout_seconds=config.request_timeout_seconds,
                session=session,
            )
            return InlineOcrExtractor(vision_client, model=config.ocr_model)
        raise ValueError(f"Unsupported extraction mode `{config.extraction_mode}`.")

    @staticmethod
    def create_stitcher(
        config: VoiceReaderConfig,
        credentials: ResolvedCredentials,
        session: requests.Session | None = None,
    ) -> SynthesisStitcher:
        """Create the chunk synthesizer and stitcher for the speech backend."""

        client = SarvamSpeechClient(
            api_key=credentials.sarvam_api_key,
            base_url=config.sarvam_base_url,
            timeout_seconds=config.request_timeout_seconds,
            session=session,
        )
        synthesizer = SarvamSpeechSynthesizer(
            client,
            model=config.tts_model,
            sample_rate=config.sample_rate,
            enable_preprocessing=config.enable_preprocessing,
        )
        return SynthesisStitcher(synthesizer)
