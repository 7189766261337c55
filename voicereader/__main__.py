"""Module entrypoint for running VoiceReader as ``python -m voicereader``."""

from __future__ import annotations

from voicereader.cli import main


if __name__ == "__main__":
    main()
