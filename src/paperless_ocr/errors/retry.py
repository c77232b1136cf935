"""Retry engine: backoff policy, error classification, and tenacity wiring."""

from __future__ import annotations

import asyncio
import json
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, model_validator
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt

from paperless_ocr.errors.exceptions import (
    ConfigurationError,
    NetworkError,
    PaperlessOcrError,
    error_for_kind,
)
from paperless_ocr.types import ErrorKind

logger = logging.getLogger(__name__)

MAX_RETRIES_LIMIT = 20


@dataclass(frozen=True)
class Retry:
    wait: float


@dataclass(frozen=True)
class GiveUp:
    pass


RetryDecision = Retry | GiveUp


class RetryPolicy(BaseModel):
    """Backoff configuration. Delays are in seconds.

    Invalid combinations raise ConfigurationError at construction; nothing is
    silently clamped.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    exponential_backoff: bool = True
    jitter_factor: float = 0.1

    @model_validator(mode="after")
    def _check_bounds(self) -> RetryPolicy:
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        if self.max_retries > MAX_RETRIES_LIMIT:
            raise ConfigurationError(f"max_retries cannot exceed {MAX_RETRIES_LIMIT}")
        if self.base_delay < 0:
            raise ConfigurationError("base_delay must be >= 0")
        if self.base_delay > self.max_delay:
            raise ConfigurationError("max_delay must be >= base_delay")
        if not 0.0 <= self.jitter_factor <= 1.0:
            raise ConfigurationError("jitter_factor must be between 0.0 and 1.0")
        return self

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def base_wait(self, attempt_number: int) -> float:
        """Pre-jitter wait after the ``attempt_number``-th failed attempt (1-based)."""
        if not self.exponential_backoff:
            return min(self.base_delay, self.max_delay)
        # Cap the exponent; 2**64 seconds is past any sane max_delay anyway
        exponent = min(max(attempt_number - 1, 0), 64)
        return min(self.max_delay, self.base_delay * (2**exponent))

    def compute_wait(self, attempt_number: int, rng: random.Random | None = None) -> float:
        wait = self.base_wait(attempt_number)
        if self.jitter_factor > 0:
            draw = (rng or random).uniform(-self.jitter_factor, self.jitter_factor)
            wait *= 1 + draw
        return min(max(wait, 0.0), self.max_delay)

    def should_retry(self, attempt_number: int, kind: ErrorKind) -> bool:
        return attempt_number <= self.max_retries and kind.retryable

    def decide(
        self,
        attempt_number: int,
        kind: ErrorKind,
        rng: random.Random | None = None,
    ) -> RetryDecision:
        """Decide what to do after ``attempt_number`` failed with ``kind``."""
        if not self.should_retry(attempt_number, kind):
            return GiveUp()
        return Retry(self.compute_wait(attempt_number, rng))


# ── Classification ──


def classify_status(status: int) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    if status in (401, 403):
        return ErrorKind.AUTHENTICATION
    if status == 429:
        return ErrorKind.RATE_LIMIT
    if status == 408:
        return ErrorKind.NETWORK
    if 400 <= status < 500:
        return ErrorKind.VALIDATION
    if 500 <= status < 600:
        return ErrorKind.SERVER
    return ErrorKind.INTERNAL


def extract_error_message(body: str) -> str:
    """Pull the vendor's message out of an error body, falling back to the raw text."""
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip() or "Unknown error"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        for field in ("message", "detail"):
            if data.get(field):
                return str(data[field])
    return body.strip() or "Unknown error"


def error_from_response(status: int, body: str) -> PaperlessOcrError:
    kind = classify_status(status)
    message = extract_error_message(body)
    if kind is ErrorKind.INTERNAL:
        message = f"Unexpected HTTP status ({status}): {message}"
    else:
        message = f"HTTP {status}: {message}"
    return error_for_kind(kind)(message, http_status=status)


def classify_transport_error(exc: httpx.HTTPError) -> PaperlessOcrError:
    """Convert an httpx request failure into a retryable NetworkError."""
    if isinstance(exc, httpx.TimeoutException):
        return NetworkError(f"Request timed out: {exc}")
    if isinstance(exc, httpx.DecodingError):
        return NetworkError(f"Failed to decode response body: {exc}")
    return NetworkError(f"Connection failed: {exc}")


# ── tenacity wiring ──


def build_retrying(
    policy: RetryPolicy,
    *,
    rng: random.Random | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[PaperlessOcrError, int, float], None] | None = None,
) -> AsyncRetrying:
    """Build a tenacity controller that follows ``policy``.

    Only PaperlessOcrError subclasses with a retryable kind are retried; any
    other exception propagates on the first attempt.
    """

    def _retry(state: RetryCallState) -> bool:
        if state.outcome is None or not state.outcome.failed:
            return False
        exc = state.outcome.exception()
        if not isinstance(exc, PaperlessOcrError):
            return False
        return policy.should_retry(state.attempt_number, exc.kind)

    def _wait(state: RetryCallState) -> float:
        return policy.compute_wait(state.attempt_number, rng)

    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        wait = state.next_action.sleep if state.next_action else 0.0
        logger.warning(
            "%s (attempt %d/%d). Retrying in %.2fs",
            exc,
            state.attempt_number,
            policy.max_attempts,
            wait,
        )
        if on_retry is not None and isinstance(exc, PaperlessOcrError):
            on_retry(exc, state.attempt_number, wait)

    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=_wait,
        retry=_retry,
        sleep=sleep,
        before_sleep=_before_sleep,
        reraise=True,
    )
