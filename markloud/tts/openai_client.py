"""OpenAI HTTP client for the speech endpoint.

Responsibilities:
- Send one `/audio/speech` request per text chunk via `requests`.
- Classify failures into retryable and permanent `SynthesisError`s.
- Keep credentials out of error messages.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

from ..errors import SynthesisError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_SECONDS = 90.0


class OpenAISpeechClient:
    """Minimal requests-based OpenAI speech HTTP client for TTS synthesis."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize OpenAI HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        response_format: str = "aac",
        speed: float = 1.0,
        instructions: str = "",
    ) -> bytes:
        """Return synthesized audio bytes from OpenAI `/audio/speech`.

        `speed` is sent only when it differs from the provider default of 1.0,
        and `instructions` only when non-blank.
        """

        self._require_api_key()

        payload: dict[str, Any] = {
            "model": model,
            "input": text,
            "voice": voice,
            "response_format": response_format,
        }
        if speed > 0 and speed != 1.0:
            payload["speed"] = speed
        if instructions.strip():
            payload["instructions"] = instructions

        audio = self._post_json_bytes(endpoint_path="/audio/speech", payload=payload)
        if not audio:
            raise SynthesisError(
                "OpenAI speech response is empty.",
                failure_kind="empty_response",
            )
        return audio

    def _require_api_key(self) -> None:
        """Require API key presence before issuing OpenAI requests."""

        if not self.api_key:
            raise SynthesisError(
                "Missing OpenAI API key. Set `OPENAI_API_KEY`, pass `--api-key`, or run "
                "`markloud credentials --set-api-key`.",
                failure_kind="invalid_api_key",
            )

    def _post_json_bytes(self, *, endpoint_path: str, payload: dict[str, Any]) -> bytes:
        """POST a JSON payload and return raw response bytes, mapping failures."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_synthesis_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "OpenAI request timed out."
            else:
                detail = f"OpenAI request transport error: {self._short_message(str(exc))}"
            raise SynthesisError(detail, retryable=True, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise SynthesisError(
                "OpenAI request timed out.",
                retryable=True,
                failure_kind="timeout",
            ) from exc

    @staticmethod
    def is_retryable_status(status_code: int) -> bool:
        """Return whether an HTTP failure status is transient."""

        return status_code == 429 or status_code >= 500

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        try:
            return bytes(response.content[:2048]).decode("utf-8", errors="replace").strip()
        except (TypeError, AttributeError):
            return ""

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

        compact = " ".join(cls._redact_sensitive_tokens(text).split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider-facing message and optional provider error code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                code_value = error_payload.get("code")
                if isinstance(code_value, str) and code_value.strip():
                    provider_code = code_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        return cls._short_message(message if message is not None else body), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify OpenAI HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""

        if status_code == 401 or "api key" in message_lower:
            return "invalid_api_key"
        if normalized_code == "insufficient_quota":
            return "insufficient_quota"
        if status_code == 429:
            return "rate_limited"
        if normalized_code == "model_not_found":
            return "invalid_model"
        if status_code >= 500:
            return "server_error"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_synthesis_error(cls, exc: requests.HTTPError) -> SynthesisError:
        """Convert HTTP errors into normalized synthesis errors with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        failure_kind = cls._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": "OpenAI authentication failed",
            "insufficient_quota": "OpenAI quota is insufficient for this request",
            "rate_limited": "OpenAI rate limit reached",
            "invalid_model": "OpenAI rejected the selected model",
            "server_error": "OpenAI server error",
        }.get(failure_kind, "OpenAI request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        return SynthesisError(
            detail,
            retryable=cls.is_retryable_status(status_code),
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )
