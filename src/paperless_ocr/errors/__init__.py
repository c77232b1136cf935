"""Error handling: exception taxonomy and retry policy."""

from paperless_ocr.errors.exceptions import (
    AuthenticationError,
    CacheError,
    ConfigurationError,
    FileIOError,
    InternalError,
    NetworkError,
    PaperlessOcrError,
    RateLimitError,
    ServerError,
    ValidationError,
)

__all__ = [
    "PaperlessOcrError",
    "ValidationError",
    "FileIOError",
    "ConfigurationError",
    "AuthenticationError",
    "RateLimitError",
    "NetworkError",
    "ServerError",
    "CacheError",
    "InternalError",
]
