"""Output artifact storage.

Responsibilities:
- Map a document stem to its `<stem>.txt` transcript and `<stem>.wav` narration.
- Write artifacts atomically so an interrupted run never leaves a partial file.
"""

from __future__ import annotations

from pathlib import Path

from ..errors import PipelineStageError


class ArtifactStore:
    """Filesystem store rooted at the configured output directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root output directory."""

        self.root = root

    def text_path(self, stem: str) -> Path:
        """Return the transcript path for a document stem."""

        return self.root / f"{stem}.txt"

    def audio_path(self, stem: str) -> Path:
        """Return the narration path for a document stem."""

        return self.root / f"{stem}.wav"

    def write_text(self, stem: str, text: str) -> Path:
        """Write the transcript as UTF-8 with exactly one trailing newline."""

        content = text.rstrip("\n") + "\n"
        return self._write_atomic(self.text_path(stem), content.encode("utf-8"))

    def write_audio(self, stem: str, data: bytes) -> Path:
        """Write stitched WAV bytes."""

        return self._write_atomic(self.audio_path(stem), data)

    def _write_atomic(self, path: Path, data: bytes) -> Path:
        staging = path.with_name(f".{path.name}.partial")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            staging.write_bytes(data)
            staging.replace(path)
        except OSError as exc:
            if staging.exists():
                staging.unlink()
            raise PipelineStageError(
                stage="write",
                detail=f"Failed to write `{path}`: {exc}",
                hint="Check that the output directory is writable.",
            ) from exc
        return path
