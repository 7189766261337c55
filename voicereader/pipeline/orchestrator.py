"""Pipeline orchestration for VoiceReader.

Responsibilities:
- Define the stage order for the document-to-speech flow.
- Wire extraction, chunking, and synthesis behind one facade.
- Persist extracted text and stitched audio for CLI runs.

Key types:
- `VoiceReaderPipeline`: orchestration facade.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import requests
from loguru import logger

from ..cancellation import CancellationToken
from ..config import VoiceReaderConfig
from ..errors import PipelineStageError
from ..io.documents import load_document
from ..io.storage import ArtifactStore
from ..models.datatypes import ConversionResult, SourceDocument, StitchedAudio, TextChunk
from ..provider_factory import ProviderFactory
from ..telemetry.logger import RunLogger
from ..text.chunking import TextChunker
from .runtime import PipelineRuntimeMixin
from .telemetry import PipelineTelemetryMixin


class VoiceReaderPipeline(PipelineRuntimeMixin, PipelineTelemetryMixin):
    """Coordinate all stages for a single document-to-speech conversion."""

    def __init__(
        self,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, int, int], None] | None = None,
        *,
        provider_factory: ProviderFactory | None = None,
        session: requests.Session | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize optional logging, progress hooks, and provider wiring.

        Args:
            run_logger: Structured phase logger.
            stage_progress_callback: Called with `(stage, index, total)` on stage start.
            provider_factory: Factory building extraction and speech clients.
            session: Optional shared HTTP session passed to provider clients.
            sleeper: Replacement for the cancellable backoff wait.
        """

        self._run_logger = run_logger
        self._stage_progress_callback = stage_progress_callback
        self._provider_factory = provider_factory or ProviderFactory()
        self._session = session
        self._sleeper = sleeper
        self._chunker = TextChunker()

    def extract_text(
        self,
        config: VoiceReaderConfig,
        document: SourceDocument,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Extract normalized plain text from a document."""

        self._validate_config(config)
        credentials = self._resolve_credentials(
            config, need_extraction=True, need_synthesis=False
        )
        token = cancel_token if cancel_token is not None else CancellationToken()
        extractor = self._provider_factory.create_extractor(
            config, credentials, session=self._session
        )
        return self._run_stage(
            "extract",
            lambda: self._with_rate_limit_retry(
                config,
                "extract",
                lambda: extractor.extract(document, config.language, cancel_token=token),
                token,
            ),
            mode=config.extraction_mode,
            media_type=document.media_type,
        )

    def synthesize_text(
        self,
        config: VoiceReaderConfig,
        text: str,
        cancel_token: CancellationToken | None = None,
    ) -> tuple[StitchedAudio, int]:
        """Chunk text and synthesize it into one stitched WAV payload.

        Returns:
            The stitched audio and the number of chunks synthesized.
        """

        self._validate_config(config)
        credentials = self._resolve_credentials(
            config, need_extraction=False, need_synthesis=True
        )
        voice = self._resolve_voice(config)
        token = cancel_token if cancel_token is not None else CancellationToken()

        chunks = self._run_stage(
            "chunk",
            lambda: self._chunk(text, config),
            max_chars=config.chunk_size_chars,
        )
        stitcher = self._provider_factory.create_stitcher(
            config, credentials, session=self._session
        )
        audio = self._run_stage(
            "tts",
            lambda: self._with_rate_limit_retry(
                config,
                "tts",
                lambda: stitcher.synthesize(
                    chunks, voice, config.language, cancel_token=token
                ),
                token,
            ),
            chunks=len(chunks),
            voice=voice.provider_voice_id,
        )
        return audio, len(chunks)

    def convert(
        self,
        config: VoiceReaderConfig,
        document: SourceDocument,
        cancel_token: CancellationToken | None = None,
    ) -> ConversionResult:
        """Run extract, chunk, and synthesize for one document."""

        self._validate_config(config)
        # Both keys are checked up front so a missing speech key fails before OCR runs.
        self._resolve_credentials(config, need_extraction=True, need_synthesis=True)
        text = self.extract_text(config, document, cancel_token=cancel_token)
        audio, chunk_count = self.synthesize_text(config, text, cancel_token=cancel_token)
        return ConversionResult(text=text, chunk_count=chunk_count, audio=audio)

    def run(
        self,
        config: VoiceReaderConfig,
        input_path: Path,
        media_type: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ConversionResult:
        """Convert a document file and write `<stem>.txt` and `<stem>.wav`."""

        document = load_document(input_path, media_type)
        result = self.convert(config, document, cancel_token=cancel_token)
        store = ArtifactStore(config.output_dir)
        text_path, audio_path = self._run_stage(
            "write",
            lambda: (
                store.write_text(input_path.stem, result.text),
                store.write_audio(input_path.stem, result.audio.data),
            ),
        )
        return ConversionResult(
            text=result.text,
            chunk_count=result.chunk_count,
            audio=result.audio,
            text_path=text_path,
            audio_path=audio_path,
        )

    def run_extract(
        self,
        config: VoiceReaderConfig,
        input_path: Path,
        media_type: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> tuple[str, Path]:
        """Extract a document file's text and write `<stem>.txt`."""

        document = load_document(input_path, media_type)
        text = self.extract_text(config, document, cancel_token=cancel_token)
        store = ArtifactStore(config.output_dir)
        text_path = self._run_stage(
            "write",
            lambda: store.write_text(input_path.stem, text),
        )
        return text, text_path

    def run_synthesize(
        self,
        config: VoiceReaderConfig,
        text_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> ConversionResult:
        """Synthesize a UTF-8 text file and write `<stem>.wav`."""

        try:
            text = text_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PipelineStageError(
                stage="input",
                detail=f"Cannot read text file `{text_path}`: {exc}",
                hint="Provide an existing UTF-8 text file.",
            ) from exc
        audio, chunk_count = self.synthesize_text(config, text, cancel_token=cancel_token)
        store = ArtifactStore(config.output_dir)
        audio_path = self._run_stage(
            "write",
            lambda: store.write_audio(text_path.stem, audio.data),
        )
        return ConversionResult(
            text=text.strip(),
            chunk_count=chunk_count,
            audio=audio,
            audio_path=audio_path,
        )

    def _chunk(self, text: str, config: VoiceReaderConfig) -> list[TextChunk]:
        """Split text into speech-sized chunks."""

        chunks = self._chunker.chunk(text, config.chunk_size_chars)
        if not chunks:
            raise PipelineStageError(
                stage="chunk",
                detail="No text to synthesize.",
                hint="Provide non-empty text.",
            )
        logger.debug(
            "Split {} chars into {} chunks (max {})",
            len(text),
            len(chunks),
            config.chunk_size_chars,
        )
        return chunks
