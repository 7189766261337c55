"""Prompt templates for inline document OCR."""

from __future__ import annotations


class PromptLibrary:
    """Build prompt strings for OCR requests."""

    def ocr_instruction(self, language: str) -> str:
        """Return the instruction sent alongside an inline document."""

        return (
            "Extract all readable text from the attached document in reading order. "
            f"The document language is `{language}`. "
            "Return only the raw extracted text with no commentary, explanations, "
            "or formatting notes."
        )
