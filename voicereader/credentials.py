"""Secure per-provider API key storage for the VoiceReader CLI.

Responsibilities:
- Describe each provider credential (keyring account, runtime key, label, env var).
- Persist and remove provider API keys in the OS keyring.
- Never log or echo secret values.

Key types:
- `ProviderCredential`: static description of one provider's API key.
- `CredentialStore`: protocol used by CLI runtime resolution and commands.
- `KeyringCredentialStore`: `keyring`-backed implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import keyring
from keyring.backends import fail
from keyring.errors import PasswordDeleteError

from .parsing import normalize_optional_string


KEYRING_SERVICE_NAME = "voicereader"


@dataclass(frozen=True, slots=True)
class ProviderCredential:
    """Static description of one provider API key.

    Attributes:
        provider: CLI provider name (`sarvam` or `ocr`).
        runtime_key: Key used in runtime source mappings and as keyring account.
        label: Human-readable name used in prompts and status lines.
        env_var: Environment variable consulted during key resolution.
    """

    provider: str
    runtime_key: str
    label: str
    env_var: str


PROVIDER_CREDENTIALS: dict[str, ProviderCredential] = {
    "sarvam": ProviderCredential("sarvam", "sarvam_api_key", "Sarvam", "SARVAM_API_KEY"),
    "ocr": ProviderCredential("ocr", "ocr_api_key", "OCR", "OPENAI_API_KEY"),
}


def provider_credential(provider: str) -> ProviderCredential:
    """Return the credential description for a provider name (case-insensitive)."""

    normalized = provider.strip().lower()
    try:
        return PROVIDER_CREDENTIALS[normalized]
    except KeyError:
        supported = ", ".join(sorted(PROVIDER_CREDENTIALS))
        raise ValueError(
            f"Unsupported credential provider `{provider}`; supported: {supported}."
        ) from None


class CredentialStore(Protocol):
    """Secure storage operations for one provider API key."""

    def is_available(self) -> bool:
        """Return whether secure storage can be used."""

    def get_api_key(self) -> str | None:
        """Return the stored key, or `None` when absent."""

    def set_api_key(self, api_key: str) -> None:
        """Persist a key."""

    def clear_api_key(self) -> bool:
        """Delete the stored key and report whether one existed."""


@dataclass(slots=True)
class KeyringCredentialStore:
    """Provider API key stored under the `voicereader` keyring service."""

    credential: ProviderCredential
    service_name: str = KEYRING_SERVICE_NAME

    def is_available(self) -> bool:
        """Return `False` when only keyring's fail backend is configured."""

        return not isinstance(keyring.get_keyring(), fail.Keyring)

    def get_api_key(self) -> str | None:
        if not self.is_available():
            return None
        return normalize_optional_string(
            keyring.get_password(self.service_name, self.credential.runtime_key)
        )

    def set_api_key(self, api_key: str) -> None:
        """Persist a stripped key, raising when storage is unusable or the key is blank."""

        if not self.is_available():
            raise RuntimeError(
                "Secure credential storage is unavailable because no keyring backend "
                "is configured."
            )
        normalized = normalize_optional_string(api_key)
        if normalized is None:
            raise ValueError("API key must be a non-empty string.")
        keyring.set_password(self.service_name, self.credential.runtime_key, normalized)

    def clear_api_key(self) -> bool:
        if self.get_api_key() is None:
            return False
        try:
            keyring.delete_password(self.service_name, self.credential.runtime_key)
        except PasswordDeleteError:
            return False
        return True


def create_credential_store(provider: str = "sarvam") -> CredentialStore:
    """Create the keyring-backed store for a provider (`sarvam` or `ocr`)."""

    return KeyringCredentialStore(provider_credential(provider))
