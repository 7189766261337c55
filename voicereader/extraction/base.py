"""Protocol shared by document text extraction strategies."""

from __future__ import annotations

from typing import Protocol

from ..cancellation import CancellationToken
from ..models.datatypes import SourceDocument


class DocumentExtractor(Protocol):
    """Protocol for strategies that turn a document into normalized plain text."""

    def extract(
        self,
        document: SourceDocument,
        language: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Return non-empty normalized text extracted from `document`."""
