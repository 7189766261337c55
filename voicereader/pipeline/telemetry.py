"""Stage telemetry helper methods for the VoiceReader pipeline.

Responsibilities:
- Report stage progress as `(stage, index, total)` for the CLI indicator.
- Emit start, complete, and failure events with per-stage context.
- Time each stage so completion events carry `elapsed_ms`.
"""

from __future__ import annotations

from collections.abc import Callable
import time
from typing import TypeVar

from ..errors import PipelineStageError

_StageResult = TypeVar("_StageResult")


class PipelineTelemetryMixin:
    """Wrap named pipeline stages with progress callbacks and phase logs."""

    _PHASE_SEQUENCE = ("extract", "chunk", "tts", "write")

    def _notify_progress(self, stage_name: str) -> None:
        """Forward a stage start to the progress callback when the stage is sequenced."""

        if self._stage_progress_callback is None or stage_name not in self._PHASE_SEQUENCE:
            return
        self._stage_progress_callback(
            stage_name,
            self._PHASE_SEQUENCE.index(stage_name) + 1,
            len(self._PHASE_SEQUENCE),
        )

    def _run_stage(
        self,
        stage_name: str,
        action: Callable[[], _StageResult],
        **context: object,
    ) -> _StageResult:
        """Run one named stage, logging its context, duration, and failure kind.

        Failures are re-raised unchanged. When the error names a more specific
        step (for example `status` inside `extract`), the failure event carries it.
        """

        self._notify_progress(stage_name)
        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage_name, **context)

        started = time.perf_counter()
        try:
            result = action()
        except Exception as exc:
            if self._run_logger is not None:
                failure_context: dict[str, object] = {}
                if isinstance(exc, PipelineStageError) and exc.stage != stage_name:
                    failure_context["step"] = exc.stage
                self._run_logger.log_stage_failure(
                    stage_name, type(exc).__name__, **failure_context
                )
            raise

        if self._run_logger is not None:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            self._run_logger.log_stage_complete(stage_name, elapsed_ms=elapsed_ms)
        return result
