"""Configuration model and loaders for VoiceReader.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider API keys.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `VoiceReaderConfig`: normalized runtime settings for a conversion run.
- `ResolvedCredentials`: API keys resolved for one run.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `VoiceReaderConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError
from .parsing import (
    normalize_optional_string,
    parse_float,
    parse_permissive_boolean,
    parse_positive_int,
)


EXTRACTION_MODES = frozenset({"job", "inline"})
SARVAM_API_KEY_ENV = "SARVAM_API_KEY"
OCR_API_KEY_ENV = "OPENAI_API_KEY"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResolvedCredentials:
    """API keys resolved for one run; never persisted or logged."""

    sarvam_api_key: str | None = None
    ocr_api_key: str | None = None


@dataclass(slots=True)
class VoiceReaderConfig:
    """Runtime configuration for one conversion run.

    Attributes:
        output_dir: Directory receiving `<stem>.txt` and `<stem>.wav`.
        extraction_mode: `job` (asynchronous document job) or `inline` (single OCR call).
        language: BCP-47 language code used for OCR and speech.
        tts_voice: Speaker identifier.
        tts_model: Speech model identifier.
        sample_rate: Output sample rate in Hz.
        pace: Speaking rate multiplier.
        pitch: Pitch offset.
        loudness: Loudness multiplier.
        enable_preprocessing: Whether the speech backend normalizes text first.
        chunk_size_chars: Maximum characters per speech request.
        poll_interval_seconds: Wait between document job status polls.
        max_poll_attempts: Status polls before the job times out.
        request_timeout_seconds: Per-request HTTP timeout.
        ocr_model: Model used for inline OCR.
        ocr_base_url: OpenAI-compatible API base URL for inline OCR.
        sarvam_base_url: Base URL for the document job and speech APIs.
        rate_limit_retries: Retries of a stage that hit HTTP 429.
        rate_limit_backoff_seconds: Base backoff, doubled per retry.
        sarvam_api_key: Optional Sarvam API key.
        ocr_api_key: Optional inline OCR API key.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    output_dir: Path = field(default_factory=lambda: Path("out"))
    extraction_mode: str = "job"
    language: str = "en-IN"
    tts_voice: str = "anushka"
    tts_model: str = "bulbul:v2"
    sample_rate: int = 22050
    pace: float = 1.0
    pitch: float = 0.0
    loudness: float = 1.5
    enable_preprocessing: bool = True
    chunk_size_chars: int = 480
    poll_interval_seconds: float = 2.0
    max_poll_attempts: int = 60
    request_timeout_seconds: float = 60.0
    ocr_model: str = "gpt-4.1-mini"
    ocr_base_url: str = "https://api.openai.com/v1"
    sarvam_base_url: str = "https://api.sarvam.ai"
    rate_limit_retries: int = 0
    rate_limit_backoff_seconds: float = 5.0
    sarvam_api_key: str | None = None
    ocr_api_key: str | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        if self.extraction_mode not in EXTRACTION_MODES:
            supported = ", ".join(sorted(EXTRACTION_MODES))
            raise ConfigurationError(
                f"Unsupported `extraction_mode` value `{self.extraction_mode}`; "
                f"supported: {supported}."
            )
        for field_name in (
            "language",
            "tts_voice",
            "tts_model",
            "ocr_model",
            "ocr_base_url",
            "sarvam_base_url",
        ):
            self._require_non_empty(getattr(self, field_name), field_name)
        for field_name in ("sample_rate", "chunk_size_chars", "max_poll_attempts"):
            if getattr(self, field_name) <= 0:
                raise ConfigurationError(f"`{field_name}` must be a positive integer.")
        for field_name in ("pace", "loudness", "request_timeout_seconds"):
            if getattr(self, field_name) <= 0:
                raise ConfigurationError(f"`{field_name}` must be a positive number.")
        if self.poll_interval_seconds < 0:
            raise ConfigurationError("`poll_interval_seconds` must not be negative.")
        if self.rate_limit_retries < 0:
            raise ConfigurationError("`rate_limit_retries` must not be negative.")
        if self.rate_limit_backoff_seconds < 0:
            raise ConfigurationError("`rate_limit_backoff_seconds` must not be negative.")

    def resolve_api_keys(
        self, sources: RuntimeConfigSources | None = None
    ) -> ResolvedCredentials:
        """Resolve provider API keys with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        return ResolvedCredentials(
            sarvam_api_key=self._resolve_optional_runtime_value(
                key="sarvam_api_key",
                env_key=SARVAM_API_KEY_ENV,
                default_value=self.sarvam_api_key,
                sources=resolved_sources,
            ),
            ocr_api_key=self._resolve_optional_runtime_value(
                key="ocr_api_key",
                env_key=OCR_API_KEY_ENV,
                default_value=self.ocr_api_key,
                sources=resolved_sources,
            ),
        )

    def require_credentials(
        self,
        credentials: ResolvedCredentials,
        *,
        need_extraction: bool,
        need_synthesis: bool,
    ) -> None:
        """Fail before any network call when a key needed by this run is absent."""

        need_sarvam = need_synthesis or (need_extraction and self.extraction_mode == "job")
        if need_sarvam and credentials.sarvam_api_key is None:
            raise ConfigurationError(
                "Missing Sarvam API key.",
                hint=(
                    f"Set `{SARVAM_API_KEY_ENV}`, use `--api-key`, or store one with "
                    "`voicereader credentials --set-api-key`."
                ),
            )
        need_ocr = need_extraction and self.extraction_mode == "inline"
        if need_ocr and credentials.ocr_api_key is None:
            raise ConfigurationError(
                "Missing OCR API key for inline extraction.",
                hint=(
                    f"Set `{OCR_API_KEY_ENV}`, use `--ocr-api-key`, or store one with "
                    "`voicereader credentials --provider ocr --set-api-key`."
                ),
            )

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in deterministic order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, env_key)
        if env_value is not None:
            return env_value

        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that runtime string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `VoiceReaderConfig` from external sources."""

    _STRING_KEYS = frozenset(
        {
            "extraction_mode",
            "language",
            "tts_voice",
            "tts_model",
            "ocr_model",
            "ocr_base_url",
            "sarvam_base_url",
            "sarvam_api_key",
            "ocr_api_key",
        }
    )
    _POSITIVE_INT_KEYS = frozenset({"sample_rate", "chunk_size_chars", "max_poll_attempts"})
    _FLOAT_KEYS = frozenset(
        {
            "pace",
            "pitch",
            "loudness",
            "poll_interval_seconds",
            "request_timeout_seconds",
            "rate_limit_backoff_seconds",
        }
    )
    _SUPPORTED_YAML_KEYS = (
        _STRING_KEYS
        | _POSITIVE_INT_KEYS
        | _FLOAT_KEYS
        | {"output_dir", "enable_preprocessing", "rate_limit_retries"}
    )
    _ENV_KEYS: Mapping[str, str] = {
        "VOICEREADER_OUTPUT_DIR": "output_dir",
        "VOICEREADER_EXTRACTION_MODE": "extraction_mode",
        "VOICEREADER_LANGUAGE": "language",
        "VOICEREADER_TTS_VOICE": "tts_voice",
        "VOICEREADER_TTS_MODEL": "tts_model",
        "VOICEREADER_SAMPLE_RATE": "sample_rate",
        "VOICEREADER_CHUNK_SIZE_CHARS": "chunk_size_chars",
        "VOICEREADER_POLL_INTERVAL_SECONDS": "poll_interval_seconds",
        "VOICEREADER_MAX_POLL_ATTEMPTS": "max_poll_attempts",
        "VOICEREADER_OCR_MODEL": "ocr_model",
        "VOICEREADER_OCR_BASE_URL": "ocr_base_url",
        SARVAM_API_KEY_ENV: "sarvam_api_key",
        OCR_API_KEY_ENV: "ocr_api_key",
    }
    _RUNTIME_ENV_KEYS = frozenset({SARVAM_API_KEY_ENV, OCR_API_KEY_ENV})

    @staticmethod
    def from_yaml(path: Path) -> VoiceReaderConfig:
        """Create a validated config from a YAML file."""

        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config file `{path}`: {exc}") from exc
        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"YAML config `{path}` is not valid YAML.") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigurationError(
                f"YAML config `{path}` must contain a top-level mapping/object."
            )
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> VoiceReaderConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for env_key, field_name in ConfigLoader._ENV_KEYS.items():
            if env_key not in env_map:
                continue
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[field_name] = value

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }
        return ConfigLoader._build_config_from_mapping(
            payload,
            source_label="Environment",
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any],
        source_label: str,
        runtime_sources: RuntimeConfigSources | None = None,
    ) -> VoiceReaderConfig:
        """Build and validate a config from a flat field mapping."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(str(key) for key in unknown)
            raise ConfigurationError(f"{source_label} includes unsupported key(s): {key_list}.")

        values: dict[str, Any] = {}
        for key, raw_value in payload.items():
            try:
                parsed = ConfigLoader._parse_field(key, raw_value)
            except ValueError as exc:
                raise ConfigurationError(f"{source_label} field {exc}") from exc
            if parsed is not None:
                values[key] = parsed

        config = VoiceReaderConfig(**values)
        if runtime_sources is not None:
            config.runtime_sources = runtime_sources
        config.validate()
        return config

    @staticmethod
    def _parse_field(key: str, raw_value: Any) -> Any:
        """Parse one payload value according to its field kind."""

        if key == "output_dir":
            value = normalize_optional_string(raw_value)
            return Path(value) if value is not None else None
        if key in ConfigLoader._STRING_KEYS:
            return normalize_optional_string(raw_value)
        if key in ConfigLoader._POSITIVE_INT_KEYS:
            return parse_positive_int(raw_value, key)
        if key in ConfigLoader._FLOAT_KEYS:
            return parse_float(raw_value, key)
        if key == "rate_limit_retries":
            if raw_value in (0, "0"):
                return 0
            return parse_positive_int(raw_value, key)
        if key == "enable_preprocessing":
            parsed = parse_permissive_boolean(raw_value)
            if parsed is None:
                raise ValueError(
                    f"`{key}` must be a boolean value "
                    "(`true`/`false`, `1`/`0`, `yes`/`no`)."
                )
            return parsed
        raise ValueError(f"`{key}` is not supported.")
