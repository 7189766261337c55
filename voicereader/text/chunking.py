"""Length-bounded text segmentation for the speech backend.

Responsibilities:
- Split arbitrarily long text into chunks no longer than the request limit.
- Prefer sentence boundaries, then word boundaries, then a hard cut.
"""

from __future__ import annotations

from ..models.datatypes import TextChunk


class TextChunker:
    """Create ordered, non-empty chunks bounded by `max_length` characters."""

    _SENTENCE_TERMINATORS = (". ", "? ", "! ")
    _MIN_BOUNDARY_RATIO = 0.5

    def chunk(self, text: str, max_length: int) -> list[TextChunk]:
        """Split text into 1-indexed chunks.

        Args:
            text: Source text; surrounding whitespace is ignored.
            max_length: Maximum chunk length in characters.

        Returns:
            Chunks whose lengths never exceed `max_length`. Empty input yields `[]`.
        """

        if max_length < 1:
            raise ValueError("`max_length` must be a positive integer.")

        chunks: list[TextChunk] = []
        remaining = text.strip()
        while len(remaining) > max_length:
            cut = self._cut_index(remaining, max_length)
            chunks.append(TextChunk(index=len(chunks) + 1, text=remaining[:cut].strip()))
            remaining = remaining[cut:].strip()
        if remaining:
            chunks.append(TextChunk(index=len(chunks) + 1, text=remaining))
        return chunks

    def _cut_index(self, text: str, max_length: int) -> int:
        """Return the exclusive end index for the next chunk."""

        min_boundary = max_length * self._MIN_BOUNDARY_RATIO

        # Terminator must sit below `max_length` so the kept prefix fits.
        sentence_end = max(
            text.rfind(terminator, 0, max_length + 1)
            for terminator in self._SENTENCE_TERMINATORS
        )
        if sentence_end > min_boundary:
            return sentence_end + 1

        space = text.rfind(" ", 0, max_length + 1)
        if space > min_boundary:
            return space

        return max_length
