"""Custom exception hierarchy for paperless-ocr."""

from __future__ import annotations

from typing import Any

from paperless_ocr.types import ErrorKind

_LABELS = {ErrorKind.FILE_IO: "File I/O"}


class PaperlessOcrError(Exception):
    """Base exception for all paperless-ocr errors.

    Every subclass carries a fixed ``kind`` so callers can branch on the
    category without string matching.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "",
        *,
        attempts: int | None = None,
        http_status: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.attempts = attempts
        self.http_status = http_status
        self.details = details

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def user_message(self) -> str:
        """Human-readable message; attempts are shown for rate-limit and network errors."""
        label = _LABELS.get(self.kind) or self.kind.value.replace("_", " ").capitalize()
        text = f"{label} error: {self.message}"
        if self.attempts and self.kind in (ErrorKind.RATE_LIMIT, ErrorKind.NETWORK):
            noun = "attempt" if self.attempts == 1 else "attempts"
            text += f" (after {self.attempts} {noun})"
        return text

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.kind.value,
            "message": self.user_message(),
            "details": self.details or self.message,
        }
        if self.attempts is not None:
            payload["attempts"] = self.attempts
        if self.http_status is not None:
            payload["http_status"] = self.http_status
        return payload


class ValidationError(PaperlessOcrError):
    """Bad input or a malformed response. Never retried."""

    kind = ErrorKind.VALIDATION


class FileIOError(PaperlessOcrError):
    """The input file could not be opened or read."""

    kind = ErrorKind.FILE_IO


class ConfigurationError(PaperlessOcrError):
    """Invalid configuration. Raised at construction, before any network call."""

    kind = ErrorKind.CONFIGURATION


class AuthenticationError(PaperlessOcrError):
    """The credential was rejected (401/403). Never retried."""

    kind = ErrorKind.AUTHENTICATION


class RateLimitError(PaperlessOcrError):
    """429 from the vendor. Retried per policy and counted separately."""

    kind = ErrorKind.RATE_LIMIT


class NetworkError(PaperlessOcrError):
    """Timeout or connection failure. Retried per policy."""

    kind = ErrorKind.NETWORK


class ServerError(PaperlessOcrError):
    """5xx from the vendor. Retried per policy."""

    kind = ErrorKind.SERVER


class CacheError(PaperlessOcrError):
    """Internal cache inconsistency. Logged and treated as a miss."""

    kind = ErrorKind.CACHE


class InternalError(PaperlessOcrError):
    """Unexpected condition inside the client."""

    kind = ErrorKind.INTERNAL


_BY_KIND: dict[ErrorKind, type[PaperlessOcrError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.FILE_IO: FileIOError,
    ErrorKind.CONFIGURATION: ConfigurationError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.CACHE: CacheError,
    ErrorKind.INTERNAL: InternalError,
}


def error_for_kind(kind: ErrorKind) -> type[PaperlessOcrError]:
    """Return the exception class that represents ``kind``."""
    return _BY_KIND[kind]
