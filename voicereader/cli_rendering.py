"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
conversion summaries, and the voice catalog listing.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import ConversionResult
from .tts.voices import DEFAULT_LANGUAGE, DEFAULT_VOICE_ID, LANGUAGES, SPEAKERS


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_conversion_summary(result: ConversionResult) -> None:
    """Print written output paths and audio metadata."""

    if result.text_path is not None:
        typer.echo(f"Text: {result.text_path}")
    if result.audio_path is not None:
        typer.echo(f"Audio: {result.audio_path}")
    typer.echo(f"Chunks: {result.chunk_count}")
    typer.echo(f"Duration (s): {result.audio.duration_seconds:.2f}")


def echo_voice_catalog() -> None:
    """Print deterministic speaker and language rows."""

    typer.echo("Voices:")
    for voice_id in sorted(SPEAKERS):
        marker = " (default)" if voice_id == DEFAULT_VOICE_ID else ""
        typer.echo(f"  {voice_id} [{SPEAKERS[voice_id]}]{marker}")
    typer.echo("Languages:")
    for code in sorted(LANGUAGES):
        marker = " (default)" if code == DEFAULT_LANGUAGE else ""
        typer.echo(f"  {code} {LANGUAGES[code]}{marker}")
