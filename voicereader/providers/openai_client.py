"""OpenAI-compatible chat-completions client for inline document OCR.

Responsibilities:
- Send one multimodal chat-completions request with the document inlined.
- Normalize assistant message extraction across content shapes.
"""

from __future__ import annotations

from typing import Any

from ..cancellation import CancellationToken
from ..models.datatypes import SourceDocument
from .http_client import ProviderHTTPClient


DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIVisionClient(ProviderHTTPClient):
    """Minimal requests-based client for multimodal chat completions."""

    provider_name = "OCR"
    api_key_env_var = "OPENAI_API_KEY"

    def __init__(self, *, base_url: str = DEFAULT_OPENAI_BASE_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def extract_document_text(
        self,
        *,
        model: str,
        instruction: str,
        document: SourceDocument,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Return the assistant text produced for an inline document."""

        self.require_api_key()
        payload = {
            "model": model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instruction},
                        self._document_part(document),
                    ],
                }
            ],
            "temperature": 0.0,
        }
        response = self._request(
            "ocr",
            "POST",
            f"{self.base_url}/chat/completions",
            cancel_token=cancel_token,
            json_payload=payload,
        )
        return self._extract_message_text(self._json_response("ocr", response))

    @staticmethod
    def _document_part(document: SourceDocument) -> dict[str, Any]:
        """Build the content part carrying the document as a base64 data URL."""

        data_url = f"data:{document.media_type};base64,{document.to_base64()}"
        if document.is_pdf:
            return {
                "type": "file",
                "file": {"filename": document.filename, "file_data": data_url},
            }
        return {"type": "image_url", "image_url": {"url": data_url}}

    def _extract_message_text(self, payload: dict[str, Any]) -> str:
        """Extract first assistant message text from a chat-completions payload."""

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise self._malformed("ocr", None, "response missing non-empty `choices` list.")

        first_choice = choices[0]
        if not isinstance(first_choice, dict):
            raise self._malformed("ocr", None, "response `choices[0]` is malformed.")

        message = first_choice.get("message")
        if not isinstance(message, dict):
            raise self._malformed("ocr", None, "response missing `choices[0].message` object.")

        return self._message_content_to_text(message.get("content")).strip()

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert message content variants into a plain text string."""

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") == "text" and isinstance(item.get("text"), str):
                    parts.append(item["text"])
            return "".join(parts)
        return ""
