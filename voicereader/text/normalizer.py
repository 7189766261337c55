"""Markdown-to-plain-text normalization.

Responsibilities:
- Strip markdown markup emitted by document OCR into speakable prose.
- Keep normalization deterministic and idempotent.
"""

from __future__ import annotations

import html
import re
from typing import Protocol


class NormalizerRule(Protocol):
    """Protocol for markdown stripping rules."""

    def apply(self, text: str) -> str:
        """Apply a single normalization transformation."""


class DropFencedCodeBlocks:
    """Remove fenced code blocks, including their contents."""

    _PATTERN = re.compile(r"```[\s\S]*?```")

    def apply(self, text: str) -> str:
        return self._PATTERN.sub("", text)


class UnwrapInlineCode:
    """Replace inline code spans with their inner text."""

    _PATTERN = re.compile(r"`([^`\n]+)`")

    def apply(self, text: str) -> str:
        return self._PATTERN.sub(r"\1", text)


class DropImages:
    """Remove image syntax entirely, alt text included."""

    _PATTERN = re.compile(r"!\[[^\]]*\]\([^)]*\)")

    def apply(self, text: str) -> str:
        return self._PATTERN.sub("", text)


class CollapseLinks:
    """Replace `[text](url)` links with their text."""

    _PATTERN = re.compile(r"\[([^\]]+)\]\([^)]*\)")

    def apply(self, text: str) -> str:
        return self._PATTERN.sub(r"\1", text)


class StripHeadings:
    """Remove ATX heading markers at line start."""

    _PATTERN = re.compile(r"(?m)^[ \t]{0,3}#{1,6}(?:[ \t]+|$)")

    def apply(self, text: str) -> str:
        return self._PATTERN.sub("", text)


class DropHorizontalRules:
    """Remove lines consisting only of three or more `-`, `*`, or `_`."""

    _PATTERN = re.compile(r"(?m)^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$")

    def apply(self, text: str) -> str:
        return self._PATTERN.sub("", text)


class CollapseEmphasis:
    """Replace bold and italic markers with their inner text."""

    _PATTERNS = (
        re.compile(r"\*\*([^*\n]+)\*\*"),
        re.compile(r"__([^_\n]+)__"),
        re.compile(r"\*([^*\n]+)\*"),
        re.compile(r"_([^_\n]+)_"),
    )

    def apply(self, text: str) -> str:
        for pattern in self._PATTERNS:
            text = pattern.sub(r"\1", text)
        return text


class CollapseBlankLines:
    """Collapse three or more consecutive newlines to a single blank line."""

    def apply(self, text: str) -> str:
        text = re.sub(r"(?m)[ \t]+$", "", text)
        return re.sub(r"\n{3,}", "\n\n", text)


class TextNormalizer:
    """Apply markdown stripping rules until the text reaches a fixed point."""

    def __init__(self, rules: list[NormalizerRule] | None = None) -> None:
        """Initialize with custom rules or the default rule sequence."""

        self.rules = rules or [
            DropFencedCodeBlocks(),
            UnwrapInlineCode(),
            DropImages(),
            CollapseLinks(),
            StripHeadings(),
            DropHorizontalRules(),
            CollapseEmphasis(),
            CollapseBlankLines(),
        ]

    def normalize(self, text: str) -> str:
        """Return plain prose with markdown markup removed.

        Every rule only removes characters, so repeated passes terminate; running
        to a fixed point makes `normalize(normalize(x)) == normalize(x)` hold even
        when one rule exposes markup for an earlier one.
        """

        current = text.strip()
        while True:
            updated = current
            for rule in self.rules:
                updated = rule.apply(updated)
            updated = updated.strip()
            if updated == current:
                return current
            current = updated


_HTML_BLOCK_TAGS = re.compile(r"(?i)</?(?:p|div|br|h[1-6]|li|tr|section|article)\b[^>]*>")
_HTML_TAGS = re.compile(r"<[^>]+>")
_HTML_DROPPED_ELEMENTS = re.compile(r"(?is)<(script|style)\b[^>]*>.*?</\1>")


def strip_html_tags(text: str) -> str:
    """Convert an HTML fragment to text, keeping block boundaries as newlines."""

    text = _HTML_DROPPED_ELEMENTS.sub("", text)
    text = _HTML_BLOCK_TAGS.sub("\n", text)
    text = _HTML_TAGS.sub("", text)
    return html.unescape(text)
