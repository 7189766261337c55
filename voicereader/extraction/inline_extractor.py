"""Single-call inline OCR extraction.

Responsibilities:
- Send the whole document to a multimodal OCR model in one request.
- Normalize the returned text exactly like the document-job strategy.
"""

from __future__ import annotations

from loguru import logger

from ..cancellation import CancellationToken
from ..errors import NoTextExtractedError, UnsupportedMediaTypeError
from ..models.datatypes import SourceDocument
from ..providers.openai_client import OpenAIVisionClient
from ..text.normalizer import TextNormalizer
from .prompts import PromptLibrary


class InlineOcrExtractor:
    """Extract text with one multimodal chat-completions call."""

    def __init__(
        self,
        client: OpenAIVisionClient,
        *,
        model: str = "gpt-4.1-mini",
        prompt_library: PromptLibrary | None = None,
        normalizer: TextNormalizer | None = None,
    ) -> None:
        """Initialize the OCR client, model and text collaborators."""

        self.client = client
        self.model = model
        self.prompt_library = prompt_library or PromptLibrary()
        self.normalizer = normalizer or TextNormalizer()

    def extract(
        self,
        document: SourceDocument,
        language: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Return normalized text read from the inline document."""

        if not (document.is_pdf or document.is_image):
            raise UnsupportedMediaTypeError(document.media_type)
        self.client.require_api_key()

        raw_text = self.client.extract_document_text(
            model=self.model,
            instruction=self.prompt_library.ocr_instruction(language),
            document=document,
            cancel_token=cancel_token,
        )
        logger.debug("Inline OCR returned {} chars", len(raw_text))
        normalized = self.normalizer.normalize(raw_text)
        if not normalized:
            raise NoTextExtractedError()
        return normalized
