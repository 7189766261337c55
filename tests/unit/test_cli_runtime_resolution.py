"""Unit tests for CLI API-key runtime resolution helpers."""

from __future__ import annotations

import pytest

from voicereader import cli_runtime
from voicereader.cli_runtime import resolve_api_key_runtime_sources
from voicereader.errors import PipelineStageError


class InMemoryCredentialStore:
    """In-memory credential store implementation for runtime-resolution tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        """Initialize the store with an optional initial API key."""

        self._api_key = initial_api_key
        self.stored_values: list[str] = []

    def get_api_key(self) -> str | None:
        """Return currently stored API key value."""

        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value and keep a history for assertions."""

        self._api_key = api_key
        self.stored_values.append(api_key)


class FailingCredentialStore:
    """Credential store that raises when persisting API key values."""

    def get_api_key(self) -> str | None:
        """Return no pre-existing secure API key."""

        return None

    def set_api_key(self, api_key: str) -> None:
        """Raise deterministic storage failure used for error-path assertions."""

        raise RuntimeError("no keyring backend")


def test_resolver_collects_cli_and_secure_values() -> None:
    """Resolver should normalize CLI overrides and include secure fallbacks per provider."""

    stores = {
        "sarvam": InMemoryCredentialStore("secure-sarvam"),
        "ocr": InMemoryCredentialStore("secure-ocr"),
    }

    cli_values, secure_values = resolve_api_key_runtime_sources(
        api_key=None,
        ocr_api_key="  cli-ocr  ",
        prompt_api_key=False,
        store_api_key=False,
        providers=("sarvam", "ocr"),
        credential_store_factory=stores.__getitem__,
    )

    assert cli_values == {"ocr_api_key": "cli-ocr"}
    assert secure_values == {"sarvam_api_key": "secure-sarvam", "ocr_api_key": "secure-ocr"}
    assert stores["ocr"].stored_values == []


def test_resolver_stores_cli_key_when_requested() -> None:
    """Keys passed in this run should be persisted when storage is enabled."""

    store = InMemoryCredentialStore()

    cli_values, secure_values = resolve_api_key_runtime_sources(
        api_key=" new-key ",
        ocr_api_key=None,
        prompt_api_key=False,
        store_api_key=True,
        credential_store_factory=lambda _provider: store,
    )

    assert cli_values == {"sarvam_api_key": "new-key"}
    assert secure_values == {}
    assert store.stored_values == ["new-key"]


def test_resolver_prompts_for_missing_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prompting should fill only keys not passed explicitly."""

    prompts: list[str] = []

    def fake_prompt(text: str, **_kwargs: object) -> str:
        prompts.append(text)
        return " prompted-ocr "

    monkeypatch.setattr(cli_runtime.typer, "prompt", fake_prompt)
    store = InMemoryCredentialStore()

    cli_values, _ = resolve_api_key_runtime_sources(
        api_key="cli-sarvam",
        ocr_api_key=None,
        prompt_api_key=True,
        store_api_key=False,
        providers=("sarvam", "ocr"),
        credential_store_factory=lambda _provider: store,
    )

    assert len(prompts) == 1
    assert prompts[0].startswith("OCR API key")
    assert cli_values == {"sarvam_api_key": "cli-sarvam", "ocr_api_key": "prompted-ocr"}


def test_resolver_maps_storage_failure_to_credentials_stage() -> None:
    """Storage failures should be reported at the credentials stage with a hint."""

    with pytest.raises(PipelineStageError) as exc_info:
        resolve_api_key_runtime_sources(
            api_key="key",
            ocr_api_key=None,
            prompt_api_key=False,
            store_api_key=True,
            credential_store_factory=lambda _provider: FailingCredentialStore(),
        )

    assert exc_info.value.stage == "credentials"
    assert "no keyring backend" in exc_info.value.detail
    assert exc_info.value.hint is not None
    assert "--no-store-api-key" in exc_info.value.hint
