"""Sarvam HTTP clients for document intelligence jobs and speech synthesis.

Responsibilities:
- Wrap each document-job REST call (create, upload, start, status, download).
- Send text-to-speech requests and return the encoded audio payload.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from ..cancellation import CancellationToken
from ..models.datatypes import ExtractionJob, JobStatusReport
from .http_client import ProviderHTTPClient


DEFAULT_SARVAM_BASE_URL = "https://api.sarvam.ai"
_JOBS_PATH = "/v1/document-intelligence/jobs"


class _SarvamClient(ProviderHTTPClient):
    """Shared Sarvam authentication settings."""

    provider_name = "Sarvam"
    api_key_env_var = "SARVAM_API_KEY"

    def __init__(self, *, base_url: str = DEFAULT_SARVAM_BASE_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    def _auth_headers(self) -> dict[str, str]:
        return {"api-subscription-key": self.api_key}

    @staticmethod
    def _optional_string(payload: dict[str, Any], key: str) -> str | None:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


class SarvamDocumentJobClient(_SarvamClient):
    """Client for the asynchronous document intelligence job API."""

    def create_job(
        self,
        language_code: str,
        *,
        output_format: str = "md",
        cancel_token: CancellationToken | None = None,
    ) -> ExtractionJob:
        """Create a job and return its record in the `created` state."""

        self.require_api_key()
        response = self._request(
            "create",
            "POST",
            f"{self.base_url}{_JOBS_PATH}",
            cancel_token=cancel_token,
            json_payload={"language_code": language_code, "output_format": output_format},
        )
        payload = self._json_response("create", response)
        job_id = self._optional_string(payload, "job_id")
        upload_url = self._optional_string(payload, "upload_url")
        if job_id is None or upload_url is None:
            raise self._malformed(
                "create", response, "response is missing `job_id` or `upload_url`."
            )
        logger.debug("Created document job {}", job_id)
        return ExtractionJob(job_id=job_id, upload_url=upload_url)

    def upload(
        self,
        upload_url: str,
        data: bytes,
        media_type: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """PUT the raw document bytes to the pre-signed upload URL."""

        self._request(
            "upload",
            "PUT",
            upload_url,
            cancel_token=cancel_token,
            authenticated=False,
            headers={"Content-Type": media_type},
            data=data,
        )

    def start_job(self, job_id: str, *, cancel_token: CancellationToken | None = None) -> None:
        """Ask the backend to begin processing an uploaded job."""

        self.require_api_key()
        self._request(
            "start",
            "POST",
            f"{self.base_url}{_JOBS_PATH}/{job_id}/start",
            cancel_token=cancel_token,
        )

    def job_status(
        self,
        job_id: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> JobStatusReport:
        """Return the backend-reported state and, once finished, the download URL."""

        self.require_api_key()
        response = self._request(
            "status",
            "GET",
            f"{self.base_url}{_JOBS_PATH}/{job_id}/status",
            cancel_token=cancel_token,
        )
        payload = self._json_response("status", response)
        state = self._optional_string(payload, "job_state")
        if state is None:
            raise self._malformed("status", response, "response is missing `job_state`.")
        return JobStatusReport(
            state=state,
            download_url=self._optional_string(payload, "download_url"),
        )

    def download(
        self,
        download_url: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> bytes:
        """Fetch the result archive bytes from a pre-signed URL."""

        response = self._request(
            "download",
            "GET",
            download_url,
            cancel_token=cancel_token,
            authenticated=False,
        )
        return bytes(response.content)


class SarvamSpeechClient(_SarvamClient):
    """Client for the Sarvam text-to-speech endpoint."""

    def synthesize_speech(
        self,
        *,
        text: str,
        language_code: str,
        speaker: str,
        model: str = "bulbul:v2",
        sample_rate: int = 22050,
        pace: float = 1.0,
        pitch: float = 0.0,
        loudness: float = 1.5,
        enable_preprocessing: bool = True,
        cancel_token: CancellationToken | None = None,
    ) -> str | None:
        """Return the first base64 audio payload, or `None` when the response carries none."""

        self.require_api_key()
        payload = {
            "inputs": [text],
            "target_language_code": language_code,
            "speaker": speaker,
            "pitch": pitch,
            "pace": pace,
            "loudness": loudness,
            "speech_sample_rate": sample_rate,
            "enable_preprocessing": enable_preprocessing,
            "model": model,
        }
        response = self._request(
            "tts",
            "POST",
            f"{self.base_url}/text-to-speech",
            cancel_token=cancel_token,
            json_payload=payload,
        )
        body = self._json_response("tts", response)
        audios = body.get("audios")
        if not isinstance(audios, list) or not audios:
            return None
        first = audios[0]
        if not isinstance(first, str) or not first.strip():
            return None
        return first.strip()
