"""Command-line interface for VoiceReader.

Responsibilities:
- Expose user-facing commands for conversion, extraction, and synthesis.
- Convert CLI arguments into `VoiceReaderConfig` and run the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_conversion_summary,
    echo_voice_catalog,
    exit_with_command_error,
)
from .cli_runtime import resolve_api_key_runtime_sources
from .config import ConfigLoader, RuntimeConfigSources, VoiceReaderConfig
from .credentials import create_credential_store, provider_credential
from .errors import PipelineStageError
from .parsing import normalize_optional_string
from .pipeline import VoiceReaderPipeline
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="voicereader",
    no_args_is_help=True,
    help="VoiceReader CLI: turn PDFs and images into narrated audio.",
)

OutOption = Annotated[
    Path | None,
    typer.Option("--out", help="Output directory (overrides config file value)."),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
ModeOption = Annotated[
    str | None,
    typer.Option(
        "--mode",
        help="Extraction mode: `job` (document job) or `inline` (single OCR call).",
    ),
]
LanguageOption = Annotated[
    str | None,
    typer.Option("--language", help="Language code, for example `en-IN` or `hi-IN`."),
]
VoiceOption = Annotated[
    str | None,
    typer.Option("--voice", help="Speaker id; see `voicereader voices`."),
]
ChunkSizeOption = Annotated[
    int | None,
    typer.Option("--chunk-size", min=1, help="Maximum characters per speech request."),
]
MediaTypeOption = Annotated[
    str | None,
    typer.Option("--media-type", help="Override the detected document media type."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Sarvam API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
OcrApiKeyOption = Annotated[
    str | None,
    typer.Option("--ocr-api-key", help="OCR API key override for `--mode inline`."),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option(
        "--prompt-api-key",
        help="Prompt for needed API keys with hidden input (never echoed).",
    ),
]
StoreApiKeyOption = Annotated[
    bool,
    typer.Option(
        "--store-api-key/--no-store-api-key",
        help="Persist CLI-entered API keys to secure credential storage.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Include debug diagnostics in run logs."),
]


class BuildProgressIndicator:
    """Render deterministic per-stage progress lines for long-running commands."""

    _SPINNER_FRAMES = "|/-\\"

    def __init__(self, command_name: str) -> None:
        """Initialize progress indicator metadata for a command invocation."""

        self._command_name = command_name

    def on_stage_start(self, stage_name: str, stage_index: int, stage_total: int) -> None:
        """Print one progress line for a stage start transition."""

        spinner = self._SPINNER_FRAMES[(stage_index - 1) % len(self._SPINNER_FRAMES)]
        typer.echo(
            f"[progress] command={self._command_name} "
            f"{spinner} {stage_index}/{stage_total} stage={stage_name}"
        )


def _resolve_command_config(
    config_file: Path | None,
    out: Path | None,
    mode: str | None,
    language: str | None,
    voice: str | None,
    chunk_size: int | None,
) -> VoiceReaderConfig:
    """Resolve effective command config from YAML or env defaults and CLI overrides."""

    if config_file is not None:
        base_config = ConfigLoader.from_yaml(config_file)
    else:
        base_config = ConfigLoader.from_env()

    overrides: dict[str, object] = {}
    if out is not None:
        overrides["output_dir"] = out
    normalized_mode = normalize_optional_string(mode)
    if normalized_mode is not None:
        overrides["extraction_mode"] = normalized_mode.lower()
    normalized_language = normalize_optional_string(language)
    if normalized_language is not None:
        overrides["language"] = normalized_language
    normalized_voice = normalize_optional_string(voice)
    if normalized_voice is not None:
        overrides["tts_voice"] = normalized_voice.lower()
    if chunk_size is not None:
        overrides["chunk_size_chars"] = chunk_size
    return replace(base_config, **overrides)


def _apply_runtime_sources(
    base_config: VoiceReaderConfig,
    runtime_cli_values: dict[str, str],
    runtime_secure_values: dict[str, str],
) -> VoiceReaderConfig:
    """Attach runtime source mappings while keeping base config defaults intact."""

    return replace(
        base_config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        ),
    )


def _prepare_config(
    *,
    config_file: Path | None,
    out: Path | None,
    mode: str | None,
    language: str | None,
    voice: str | None,
    chunk_size: int | None,
    api_key: str | None,
    ocr_api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    need_extraction: bool,
    need_synthesis: bool,
) -> VoiceReaderConfig:
    """Build the run config and collect the API keys the command needs."""

    base_config = _resolve_command_config(
        config_file=config_file,
        out=out,
        mode=mode,
        language=language,
        voice=voice,
        chunk_size=chunk_size,
    )
    base_config.validate()

    providers: list[str] = []
    if need_synthesis or (need_extraction and base_config.extraction_mode == "job"):
        providers.append("sarvam")
    if need_extraction and base_config.extraction_mode == "inline":
        providers.append("ocr")

    runtime_cli_values, runtime_secure_values = resolve_api_key_runtime_sources(
        api_key=api_key,
        ocr_api_key=ocr_api_key,
        prompt_api_key=prompt_api_key,
        store_api_key=store_api_key,
        providers=tuple(providers),
        credential_store_factory=create_credential_store,
    )
    return _apply_runtime_sources(base_config, runtime_cli_values, runtime_secure_values)


def _create_pipeline(command_name: str, verbose: bool) -> VoiceReaderPipeline:
    progress = BuildProgressIndicator(command_name=command_name)
    return VoiceReaderPipeline(
        run_logger=RunLogger(level="DEBUG" if verbose else "INFO"),
        stage_progress_callback=progress.on_stage_start,
    )


@app.command("convert")
def convert_command(
    document: Annotated[Path, typer.Argument(help="Path to a PDF or image document.")],
    out: OutOption = None,
    config_file: ConfigOption = None,
    mode: ModeOption = None,
    language: LanguageOption = None,
    voice: VoiceOption = None,
    chunk_size: ChunkSizeOption = None,
    media_type: MediaTypeOption = None,
    api_key: ApiKeyOption = None,
    ocr_api_key: OcrApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    verbose: VerboseOption = False,
) -> None:
    """Extract text from a document and narrate it to a WAV file."""

    try:
        config = _prepare_config(
            config_file=config_file,
            out=out,
            mode=mode,
            language=language,
            voice=voice,
            chunk_size=chunk_size,
            api_key=api_key,
            ocr_api_key=ocr_api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            need_extraction=True,
            need_synthesis=True,
        )
        pipeline = _create_pipeline("convert", verbose)
        result = pipeline.run(config, document, media_type=media_type)
    except Exception as exc:
        exit_with_command_error("convert", exc)

    echo_conversion_summary(result)


@app.command("extract")
def extract_command(
    document: Annotated[Path, typer.Argument(help="Path to a PDF or image document.")],
    out: OutOption = None,
    config_file: ConfigOption = None,
    mode: ModeOption = None,
    language: LanguageOption = None,
    media_type: MediaTypeOption = None,
    api_key: ApiKeyOption = None,
    ocr_api_key: OcrApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    verbose: VerboseOption = False,
) -> None:
    """Run only text extraction and write `<stem>.txt`."""

    try:
        config = _prepare_config(
            config_file=config_file,
            out=out,
            mode=mode,
            language=language,
            voice=None,
            chunk_size=None,
            api_key=api_key,
            ocr_api_key=ocr_api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            need_extraction=True,
            need_synthesis=False,
        )
        pipeline = _create_pipeline("extract", verbose)
        text, text_path = pipeline.run_extract(config, document, media_type=media_type)
    except Exception as exc:
        exit_with_command_error("extract", exc)

    typer.echo(f"Text: {text_path}")
    typer.echo(f"Characters: {len(text)}")


@app.command("synthesize")
def synthesize_command(
    text_file: Annotated[Path, typer.Argument(help="Path to a UTF-8 text file.")],
    out: OutOption = None,
    config_file: ConfigOption = None,
    language: LanguageOption = None,
    voice: VoiceOption = None,
    chunk_size: ChunkSizeOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    verbose: VerboseOption = False,
) -> None:
    """Run only chunking and speech synthesis and write `<stem>.wav`."""

    try:
        config = _prepare_config(
            config_file=config_file,
            out=out,
            mode=None,
            language=language,
            voice=voice,
            chunk_size=chunk_size,
            api_key=api_key,
            ocr_api_key=None,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            need_extraction=False,
            need_synthesis=True,
        )
        pipeline = _create_pipeline("synthesize", verbose)
        result = pipeline.run_synthesize(config, text_file)
    except Exception as exc:
        exit_with_command_error("synthesize", exc)

    echo_conversion_summary(result)


@app.command("voices")
def voices_command() -> None:
    """List supported speakers and language codes."""

    echo_voice_catalog()


@app.command("credentials")
def credentials_command(
    provider: Annotated[
        str,
        typer.Option("--provider", help="Credential to manage: `sarvam` or `ocr`."),
    ] = "sarvam",
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored CLI credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )
    try:
        credential = provider_credential(provider)
    except ValueError as exc:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail=str(exc),
                hint="Use `--provider sarvam` or `--provider ocr`.",
            ),
        )

    label = credential.label
    credential_store = create_credential_store(credential.provider)
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                f"{label} API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo(f"{label} API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        if removed:
            typer.echo(f"Stored {label} API key cleared from secure credential storage.")
        else:
            typer.echo(f"No stored {label} API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    has_stored_key = credential_store.get_api_key() is not None
    status = "present" if has_stored_key else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored {label} API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
