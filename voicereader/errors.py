"""Domain exceptions for pipeline and CLI diagnostics.

Every failure surfaced by the conversion pipeline is a `PipelineStageError`
subclass, so callers can render the failing stage uniformly while still
branching on the specific error kind (for example retrying only
`RateLimitedError`).
"""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class ConfigurationError(PipelineStageError):
    """Raised when required configuration (such as an API credential) is missing or invalid."""

    def __init__(self, detail: str, *, hint: str | None = None) -> None:
        super().__init__(stage="config", detail=detail, hint=hint)


class UnsupportedMediaTypeError(PipelineStageError):
    """Raised when the input document is neither a PDF nor an image."""

    def __init__(self, media_type: str) -> None:
        super().__init__(
            stage="input",
            detail=f"Unsupported media type `{media_type or 'unknown'}`.",
            hint="Provide a PDF (`application/pdf`) or an image (`image/*`) document.",
        )
        self.media_type = media_type


class UpstreamRequestError(PipelineStageError):
    """Raised when a remote call fails or returns a non-success status.

    Attributes:
        step: Remote step name (`create`, `upload`, `start`, `status`, `download`,
            `ocr`, or `tts`).
        status_code: Upstream HTTP status code, or `None` for transport failures.
        failure_kind: Deterministic failure classification for diagnostics.
    """

    def __init__(
        self,
        detail: str,
        *,
        step: str,
        status_code: int | None = None,
        failure_kind: str = "http_error",
        hint: str | None = None,
    ) -> None:
        super().__init__(stage=step, detail=detail, hint=hint)
        self.step = step
        self.status_code = status_code
        self.failure_kind = failure_kind


class RateLimitedError(UpstreamRequestError):
    """Raised on HTTP 429; the only upstream condition a caller should retry."""

    def __init__(self, detail: str, *, step: str) -> None:
        super().__init__(
            detail,
            step=step,
            status_code=429,
            failure_kind="rate_limited",
            hint="Wait before retrying; the provider is throttling requests.",
        )


class JobFailedError(PipelineStageError):
    """Raised when the document job backend reports a failed job."""

    def __init__(self, job_id: str, state: str) -> None:
        super().__init__(
            stage="status",
            detail=f"Document job `{job_id}` reported state `{state}`.",
            hint="Verify the document is readable and the language code is supported.",
        )
        self.job_id = job_id
        self.state = state


class JobTimedOutError(PipelineStageError):
    """Raised when the poll budget is exhausted before the job reaches a terminal state."""

    def __init__(self, job_id: str, attempts: int, interval_seconds: float) -> None:
        super().__init__(
            stage="status",
            detail=(
                f"Document job `{job_id}` did not complete after {attempts} polls "
                f"({attempts * interval_seconds:g}s)."
            ),
            hint="Retry later or raise `max_poll_attempts` for large documents.",
        )
        self.job_id = job_id
        self.attempts = attempts
        self.interval_seconds = interval_seconds


class NoTextExtractedError(PipelineStageError):
    """Raised when extraction succeeded but produced no text."""

    def __init__(self, detail: str = "No text extracted from document.") -> None:
        super().__init__(
            stage="extract",
            detail=detail,
            hint="Check that the document contains legible text.",
        )


class NoAudioGeneratedError(PipelineStageError):
    """Raised when synthesis succeeded but returned no usable audio."""

    def __init__(self, detail: str, *, stage: str = "tts") -> None:
        super().__init__(stage=stage, detail=detail)


class OperationCancelledError(PipelineStageError):
    """Raised when the caller cancels a conversion while a step is in flight."""

    def __init__(self, step: str) -> None:
        super().__init__(stage=step, detail=f"Operation cancelled during `{step}`.")
        self.step = step
