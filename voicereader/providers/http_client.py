"""Shared HTTP client behavior for OCR and speech providers.

Responsibilities:
- Issue `requests` calls with consistent timeouts and credential checks.
- Map transport and HTTP failures into step-tagged `UpstreamRequestError`s.
- Stop waiting on in-flight calls when the request's cancellation token fires.
- Close only sessions the client created; injected sessions stay open.
"""

from __future__ import annotations

from concurrent.futures import Future
import json
import re
import socket
import threading
from typing import Any

import requests

from ..cancellation import CancellationToken
from ..errors import (
    ConfigurationError,
    OperationCancelledError,
    RateLimitedError,
    UpstreamRequestError,
)


class ProviderHTTPClient:
    """Base `requests` client used by provider-specific clients."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180
    provider_name = "provider"
    api_key_env_var = "API_KEY"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        timeout_seconds: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize HTTP settings and the underlying session."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def require_api_key(self) -> None:
        """Require API key presence before issuing provider requests."""

        if not self.api_key:
            raise ConfigurationError(
                f"Missing {self.provider_name} API key.",
                hint=(
                    f"Set `{self.api_key_env_var}`, pass it on the command line, or store it "
                    "with `voicereader credentials --set-api-key`."
                ),
            )

    def _auth_headers(self) -> dict[str, str]:
        """Return provider authentication headers."""

        return {}

    def _request(
        self,
        step: str,
        method: str,
        url: str,
        *,
        cancel_token: CancellationToken | None = None,
        authenticated: bool = True,
        headers: dict[str, str] | None = None,
        json_payload: dict[str, Any] | None = None,
        data: bytes | None = None,
    ) -> requests.Response:
        """Execute one HTTP call and map failures to step-tagged errors."""

        token = cancel_token if cancel_token is not None else CancellationToken()
        token.raise_if_cancelled(step)

        request_headers = dict(self._auth_headers()) if authenticated else {}
        request_headers.update(headers or {})
        try:
            response = self._send_abortable(
                step,
                token,
                method,
                url,
                headers=request_headers,
                json=json_payload,
                data=data,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._http_error_to_upstream_error(step, exc) from exc
        except (requests.RequestException, TimeoutError) as exc:
            if token.cancelled:
                raise OperationCancelledError(step) from exc
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = f"{self.provider_name} `{step}` request timed out."
            else:
                detail = (
                    f"{self.provider_name} `{step}` request transport error: "
                    f"{self._short_message(str(exc))}"
                )
            raise UpstreamRequestError(
                detail,
                step=step,
                failure_kind=failure_kind,
                hint="Check internet/proxy connectivity and retry the command.",
            ) from exc

        token.raise_if_cancelled(step)
        return response

    def _send_abortable(
        self,
        step: str,
        token: CancellationToken,
        method: str,
        url: str,
        **request_kwargs: Any,
    ) -> requests.Response:
        """Run the blocking call on a worker thread and stop waiting once cancelled.

        A cancelled call is abandoned; its worker ends at the request timeout.
        """

        session = self.session
        future: Future[requests.Response] = Future()
        settled = threading.Event()
        future.add_done_callback(lambda _future: settled.set())

        def send() -> None:
            future.set_running_or_notify_cancel()
            try:
                future.set_result(session.request(method, url, **request_kwargs))
            except Exception as exc:
                future.set_exception(exc)

        threading.Thread(target=send, name=f"voicereader-{step}", daemon=True).start()
        with token.on_cancel(settled.set):
            settled.wait()

        if token.cancelled:
            self._discard_session(session)
            raise OperationCancelledError(step)
        return future.result()

    def _discard_session(self, session: requests.Session) -> None:
        """Close a client-owned session left behind by an abandoned call."""

        if not self._owns_session or session is not self.session:
            return
        self.session = requests.Session()
        session.close()

    def _json_response(self, step: str, response: requests.Response) -> dict[str, Any]:
        """Parse a JSON object response body or raise a malformed-response error."""

        try:
            payload = json.loads(bytes(response.content).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise self._malformed(step, response, "returned invalid JSON payload.") from exc
        if not isinstance(payload, dict):
            raise self._malformed(step, response, "returned a non-object JSON payload.")
        return payload

    def _malformed(
        self,
        step: str,
        response: requests.Response | None,
        message: str,
    ) -> UpstreamRequestError:
        """Build an error for successful responses with unusable content."""

        return UpstreamRequestError(
            f"{self.provider_name} `{step}` {message}",
            step=step,
            status_code=response.status_code if response is not None else None,
            failure_kind="malformed_response",
        )

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> str:
        """Extract a concise provider-facing message from an error body."""

        if not body:
            return ""

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body))

        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()
            elif isinstance(error_payload, str) and error_payload.strip():
                message = error_payload.strip()

        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message))

    @staticmethod
    def _classify_http_failure(status_code: int) -> str:
        """Classify HTTP errors into deterministic diagnostic kinds."""

        if status_code in {401, 403}:
            return "invalid_api_key"
        if status_code in {408, 504}:
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    def _http_error_to_upstream_error(
        self,
        step: str,
        exc: requests.HTTPError,
    ) -> UpstreamRequestError:
        """Convert HTTP errors into step-tagged upstream errors."""

        status_code = exc.response.status_code if exc.response is not None else 0
        provider_message = self._extract_provider_message(self._decode_error_body(exc))
        suffix = f": {provider_message}" if provider_message else "."

        if status_code == 429:
            return RateLimitedError(
                f"{self.provider_name} rate limit exceeded at `{step}` (HTTP 429){suffix}",
                step=step,
            )

        failure_kind = self._classify_http_failure(status_code)
        headline = {
            "invalid_api_key": f"{self.provider_name} authentication failed",
            "timeout": f"{self.provider_name} request timed out",
        }.get(failure_kind, f"{self.provider_name} request failed")
        hint = (
            f"Verify the {self.provider_name} API key and retry."
            if failure_kind == "invalid_api_key"
            else None
        )
        return UpstreamRequestError(
            f"{headline} at `{step}` (HTTP {status_code}){suffix}",
            step=step,
            status_code=status_code,
            failure_kind=failure_kind,
            hint=hint,
        )
