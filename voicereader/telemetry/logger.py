"""Structured run logging on top of `loguru`.

Responsibilities:
- Emit one `[phase]` line per stage event with sorted, shell-safe context.
- Surface module debug diagnostics on the same sink only when verbose.
"""

from __future__ import annotations

import re
import sys
from typing import Any, TextIO

from loguru import logger


_PHASE_FORMAT = "[phase] level={level} stage={extra[stage]} event={extra[event]}{extra[context]}"
_DEBUG_FORMAT = "[debug] {name}: {message}"
_UNSAFE_TOKEN_CHARACTERS = re.compile(r"[^\w.:/-]")


def _context_token(value: object) -> str:
    """Render one context value as a single whitespace-free token."""

    raw = str(value).strip()
    return _UNSAFE_TOKEN_CHARACTERS.sub("_", raw) if raw else "none"


def _is_phase_record(record: dict[str, Any]) -> bool:
    return "stage" in record["extra"]


class RunLogger:
    """Emit deterministic phase logs for CLI-observable pipeline activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Replace loguru handlers with phase (and, at `DEBUG`, diagnostic) sinks.

        Args:
            sink: Stream receiving log lines, stdout by default.
            level: Minimum level for phase events.
        """

        target = sink or sys.stdout
        logger.remove()
        logger.add(
            target,
            format=_PHASE_FORMAT,
            level=level,
            colorize=False,
            filter=_is_phase_record,
        )
        if logger.level(level).no <= logger.level("DEBUG").no:
            logger.add(
                target,
                format=_DEBUG_FORMAT,
                level="DEBUG",
                colorize=False,
                filter=lambda record: not _is_phase_record(record),
            )

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        rendered = "".join(
            f" {key}={_context_token(context[key])}" for key in sorted(context)
        )
        logger.bind(stage=stage, event=event, context=rendered).log(level, event)

    def log_stage_start(self, stage: str, **context: object) -> None:
        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        self._emit("INFO", "complete", stage, **context)

    def log_stage_retry(self, stage: str, attempt: int, delay_seconds: float) -> None:
        """Emit a rate-limit retry event."""

        self._emit(
            "WARNING",
            "retry",
            stage,
            attempt=attempt,
            delay_seconds=f"{delay_seconds:g}",
        )

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage failure with the error class name, never its message."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)
