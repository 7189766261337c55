"""Runtime configuration helpers for the VoiceReader pipeline.

Responsibilities:
- Validate pipeline configuration before execution.
- Resolve API keys with precedence rules and fail fast when one is missing.
- Retry rate-limited stages with exponential, cancellable backoff.
"""

from __future__ import annotations

from collections.abc import Callable
import os
from typing import TypeVar

from ..cancellation import CancellationToken
from ..config import ResolvedCredentials, RuntimeConfigSources, VoiceReaderConfig
from ..errors import ConfigurationError, RateLimitedError
from ..tts.voices import VoiceProfile, voice_profile

_StageResult = TypeVar("_StageResult")


class PipelineRuntimeMixin:
    """Provide runtime/config helper methods for pipeline orchestration."""

    def _validate_config(self, config: VoiceReaderConfig) -> None:
        """Validate top-level configuration before any stage runs."""

        config.validate()

    def _resolve_credentials(
        self,
        config: VoiceReaderConfig,
        *,
        need_extraction: bool,
        need_synthesis: bool,
    ) -> ResolvedCredentials:
        """Resolve API keys and require the ones this run needs."""

        env_source = config.runtime_sources.env or os.environ
        runtime_sources = RuntimeConfigSources(
            cli=config.runtime_sources.cli,
            secure=config.runtime_sources.secure,
            env=env_source,
        )
        credentials = config.resolve_api_keys(runtime_sources)
        config.require_credentials(
            credentials,
            need_extraction=need_extraction,
            need_synthesis=need_synthesis,
        )
        return credentials

    def _resolve_voice(self, config: VoiceReaderConfig) -> VoiceProfile:
        """Build the configured voice profile or raise a configuration error."""

        try:
            return voice_profile(
                config.tts_voice,
                config.language,
                pace=config.pace,
                pitch=config.pitch,
                loudness=config.loudness,
            )
        except ValueError as exc:
            raise ConfigurationError(
                str(exc),
                hint="Run `voicereader voices` to list supported voices and languages.",
            ) from exc

    def _with_rate_limit_retry(
        self,
        config: VoiceReaderConfig,
        stage_name: str,
        action: Callable[[], _StageResult],
        cancel_token: CancellationToken,
    ) -> _StageResult:
        """Run `action`, retrying only `RateLimitedError` with doubling backoff."""

        attempt = 0
        while True:
            try:
                return action()
            except RateLimitedError:
                if attempt >= config.rate_limit_retries:
                    raise
                delay = config.rate_limit_backoff_seconds * (2**attempt)
                attempt += 1
                if self._run_logger is not None:
                    self._run_logger.log_stage_retry(stage_name, attempt, delay)
                self._backoff(delay, stage_name, cancel_token)

    def _backoff(self, seconds: float, stage_name: str, cancel_token: CancellationToken) -> None:
        if self._sleeper is None:
            cancel_token.wait(seconds, stage_name)
            return
        self._sleeper(seconds)
        cancel_token.raise_if_cancelled(stage_name)
