"""Chunk-level speech synthesis with bounded retries.

Responsibilities:
- Define the protocol the file processor depends on.
- Provide the OpenAI-backed implementation and its retry policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import sleep
from typing import Callable, Protocol

from loguru import logger

from ..config import ConversionConfig
from ..errors import SynthesisError
from .openai_client import OpenAISpeechClient


class SpeechSynthesizer(Protocol):
    """Protocol for TTS provider implementations."""

    def synthesize(self, config: ConversionConfig, text: str) -> bytes:
        """Synthesize one chunk of text and return its audio bytes.

        Raises:
            SynthesisError: When the chunk cannot be synthesized.
        """


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt budget and quadratic backoff for retryable synthesis failures.

    The delay before attempt `n` (n >= 2) is `n * n * base_delay_seconds`.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 0.3
    sleeper: Callable[[float], None] = sleep

    def delay_before(self, attempt: int) -> float:
        """Return the backoff delay preceding a 1-based attempt number."""

        if attempt < 2:
            return 0.0
        return attempt * attempt * self.base_delay_seconds

    def call(self, operation: Callable[[], bytes], *, label: str = "synthesis") -> bytes:
        """Run `operation`, retrying only errors flagged as retryable.

        Raises:
            SynthesisError: The first non-retryable error, or the last error
                once the attempt budget is exhausted.
        """

        attempts = max(1, self.max_attempts)
        last_error: SynthesisError | None = None
        for attempt in range(1, attempts + 1):
            if attempt > 1:
                delay = self.delay_before(attempt)
                logger.debug(
                    "retrying {} attempt={}/{} delay={:.2f}s", label, attempt, attempts, delay
                )
                self.sleeper(delay)
            try:
                return operation()
            except SynthesisError as exc:
                last_error = exc
                if not exc.retryable:
                    raise
        if last_error is None:
            raise SynthesisError(f"{label} made no attempts.")
        raise last_error


class OpenAISpeechSynthesizer:
    """OpenAI-backed synthesizer returning raw audio bytes per chunk."""

    def __init__(
        self,
        api_key: str | None = None,
        retry_policy: RetryPolicy | None = None,
        client: OpenAISpeechClient | None = None,
    ) -> None:
        """Initialize the HTTP client and retry policy.

        When `api_key` is omitted the key carried by each call's config is used.
        """

        self.api_key = api_key
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = client

    def synthesize(self, config: ConversionConfig, text: str) -> bytes:
        """Synthesize one chunk, retrying transient provider failures."""

        client = self._client_for(config)

        def _request() -> bytes:
            return client.synthesize_speech(
                model=config.model,
                voice=config.voice,
                text=text,
                response_format=config.response_format,
                speed=config.speed,
                instructions=config.instructions,
            )

        return self.retry_policy.call(_request, label=f"openai:tts:{config.model}")

    def _client_for(self, config: ConversionConfig) -> OpenAISpeechClient:
        """Return the injected client or one bound to the configured credential."""

        if self._client is not None:
            return self._client
        return OpenAISpeechClient(api_key=self.api_key or config.api_key)
