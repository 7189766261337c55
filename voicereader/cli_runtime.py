"""CLI runtime resolution helpers.

This module isolates API-key prompting, runtime source assembly, and secure
API-key persistence from the command wiring layer.
"""

from __future__ import annotations

from typing import Callable, Protocol

from keyring.errors import KeyringError
import typer

from .credentials import PROVIDER_CREDENTIALS, create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Subset of `CredentialStore` needed to resolve runtime keys."""

    def get_api_key(self) -> str | None:
        """Return currently stored API key, if available."""

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value in secure storage."""


def _set_runtime_cli_value(
    runtime_cli_values: dict[str, str],
    key: str,
    value: str | None,
) -> None:
    """Set a normalized runtime CLI value when user input is present."""

    normalized = normalize_optional_string(value)
    if normalized is not None:
        runtime_cli_values[key] = normalized


def _prompt_api_key(provider: str) -> str | None:
    """Prompt for one API key with hidden input; blank input skips."""

    return normalize_optional_string(
        typer.prompt(
            f"{PROVIDER_CREDENTIALS[provider].label} API key (hidden; leave blank to skip)",
            default="",
            hide_input=True,
            show_default=False,
        )
    )


def resolve_api_key_runtime_sources(
    api_key: str | None,
    ocr_api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    providers: tuple[str, ...] = ("sarvam",),
    credential_store_factory: Callable[[str], CredentialStoreProtocol] = create_credential_store,
) -> tuple[dict[str, str], dict[str, str]]:
    """Resolve CLI and secure runtime source mappings for provider API keys.

    Args:
        api_key: Sarvam key passed on the command line.
        ocr_api_key: OCR key passed on the command line.
        prompt_api_key: Prompt for each needed key not passed explicitly.
        store_api_key: Persist keys entered in this run to secure storage.
        providers: Providers whose keys this command needs (`sarvam`, `ocr`).
        credential_store_factory: Builds the credential store for one provider.
    """

    runtime_cli_values: dict[str, str] = {}
    _set_runtime_cli_value(runtime_cli_values, "sarvam_api_key", api_key)
    _set_runtime_cli_value(runtime_cli_values, "ocr_api_key", ocr_api_key)

    runtime_secure_values: dict[str, str] = {}
    for provider in providers:
        credential = PROVIDER_CREDENTIALS[provider]
        runtime_key = credential.runtime_key
        entered_in_run = runtime_key in runtime_cli_values
        if prompt_api_key and not entered_in_run:
            prompted = _prompt_api_key(provider)
            if prompted is not None:
                runtime_cli_values[runtime_key] = prompted
                entered_in_run = True

        credential_store = credential_store_factory(provider)
        stored_api_key = credential_store.get_api_key()
        if stored_api_key is not None:
            runtime_secure_values[runtime_key] = stored_api_key

        if entered_in_run and store_api_key:
            try:
                credential_store.set_api_key(runtime_cli_values[runtime_key])
            except (RuntimeError, ValueError, KeyringError) as exc:
                raise PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store {credential.label} API key securely: {exc}",
                    hint=(
                        "Install and configure a keyring backend, or rerun with "
                        "`--no-store-api-key` for one-off usage."
                    ),
                ) from exc
            typer.echo(f"Stored {credential.label} API key in secure credential storage.")

    return runtime_cli_values, runtime_secure_values
