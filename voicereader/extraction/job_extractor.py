"""Asynchronous document-job text extraction.

Responsibilities:
- Drive the create, upload, start, poll, and download job state machine.
- Bound polling by attempt count and keep every wait cancellable.
- Turn the downloaded result archive into normalized plain text.
"""

from __future__ import annotations

from typing import Callable, Protocol

from loguru import logger

from ..cancellation import CancellationToken
from ..errors import (
    JobFailedError,
    JobTimedOutError,
    NoTextExtractedError,
    UnsupportedMediaTypeError,
    UpstreamRequestError,
)
from ..io.archive_reader import ArchiveReader
from ..models.datatypes import ExtractionJob, JobState, JobStatusReport, SourceDocument
from ..text.normalizer import TextNormalizer, strip_html_tags


_COMPLETED_STATES = frozenset({"completed", "succeeded"})
_PENDING_STATES = frozenset(
    {"pending", "queued", "accepted", "started", "processing", "running", "in_progress"}
)


class DocumentJobClient(Protocol):
    """Protocol for the remote calls the job state machine needs."""

    def require_api_key(self) -> None:
        """Raise `ConfigurationError` when no credential is configured."""

    def create_job(
        self,
        language_code: str,
        *,
        output_format: str = "md",
        cancel_token: CancellationToken | None = None,
    ) -> ExtractionJob:
        """Create a remote job."""

    def upload(
        self,
        upload_url: str,
        data: bytes,
        media_type: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Upload the document payload."""

    def start_job(self, job_id: str, *, cancel_token: CancellationToken | None = None) -> None:
        """Start processing."""

    def job_status(
        self,
        job_id: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> JobStatusReport:
        """Query job status."""

    def download(
        self,
        download_url: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> bytes:
        """Fetch the result archive."""


class DocumentJobExtractor:
    """Extract text through a poll-based remote document intelligence job.

    The `sleeper` hook replaces the cancellable wait between polls; it receives
    the interval in seconds. The `job_listener` hook receives each job record
    right after creation, so callers can observe its state without the
    extractor keeping it.
    """

    def __init__(
        self,
        client: DocumentJobClient,
        *,
        poll_interval_seconds: float = 2.0,
        max_poll_attempts: int = 60,
        archive_reader: ArchiveReader | None = None,
        normalizer: TextNormalizer | None = None,
        sleeper: Callable[[float], None] | None = None,
        job_listener: Callable[[ExtractionJob], None] | None = None,
    ) -> None:
        """Initialize polling bounds and the archive/text collaborators."""

        if max_poll_attempts < 1:
            raise ValueError("`max_poll_attempts` must be a positive integer.")
        if poll_interval_seconds < 0:
            raise ValueError("`poll_interval_seconds` must be non-negative.")
        self.client = client
        self.poll_interval_seconds = poll_interval_seconds
        self.max_poll_attempts = max_poll_attempts
        self.archive_reader = archive_reader or ArchiveReader()
        self.normalizer = normalizer or TextNormalizer()
        self._sleeper = sleeper
        self._job_listener = job_listener

    def extract(
        self,
        document: SourceDocument,
        language: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Run one document job to completion and return its normalized text."""

        if not (document.is_pdf or document.is_image):
            raise UnsupportedMediaTypeError(document.media_type)
        token = cancel_token if cancel_token is not None else CancellationToken()
        self.client.require_api_key()

        job = self.client.create_job(language, cancel_token=token)
        if self._job_listener is not None:
            self._job_listener(job)
        try:
            self.client.upload(
                job.upload_url,
                document.data,
                document.media_type,
                cancel_token=token,
            )
            job.state = JobState.UPLOADED
            self.client.start_job(job.job_id, cancel_token=token)
            job.state = JobState.STARTED
            self._poll_until_terminal(job, token)
        except UpstreamRequestError:
            job.state = JobState.FAILED
            raise

        if job.download_url is None:
            raise UpstreamRequestError(
                f"Document job `{job.job_id}` completed without a download URL.",
                step="download",
                failure_kind="malformed_response",
            )
        archive = self.client.download(job.download_url, cancel_token=token)
        return self.collect_text(archive)

    def collect_text(self, archive: bytes) -> str:
        """Join the text entries of a result archive and normalize them."""

        parts: list[str] = []
        for entry in self.archive_reader.read_entries(archive):
            text = entry.text()
            if entry.name.lower().endswith(".html"):
                text = strip_html_tags(text)
            logger.debug("Collected archive entry {} ({} chars)", entry.name, len(text))
            parts.append(text)

        normalized = self.normalizer.normalize("\n\n".join(parts).strip())
        if not normalized:
            raise NoTextExtractedError()
        return normalized

    def _poll_until_terminal(self, job: ExtractionJob, token: CancellationToken) -> None:
        """Poll job status until completion, failure, or the attempt budget runs out."""

        while job.poll_attempts < self.max_poll_attempts:
            self._wait(token)
            job.poll_attempts += 1
            report = self.client.job_status(job.job_id, cancel_token=token)
            state = report.state.strip().lower()
            logger.debug(
                "Document job {} poll {}/{} state={}",
                job.job_id,
                job.poll_attempts,
                self.max_poll_attempts,
                state,
            )
            if state in _COMPLETED_STATES:
                job.state = JobState.COMPLETED
                job.download_url = report.download_url
                return
            if state not in _PENDING_STATES:
                job.state = JobState.FAILED
                raise JobFailedError(job.job_id, report.state)
            job.state = JobState.PROCESSING

        job.state = JobState.TIMED_OUT
        raise JobTimedOutError(job.job_id, job.poll_attempts, self.poll_interval_seconds)

    def _wait(self, token: CancellationToken) -> None:
        if self._sleeper is None:
            token.wait(self.poll_interval_seconds, "status")
            return
        self._sleeper(self.poll_interval_seconds)
        token.raise_if_cancelled("status")
