"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Default API settings
DEFAULT_BASE_URL = "https://api.mistral.ai"
DEFAULT_MODEL = "mistral-ocr-latest"
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_FILE_SIZE_MB = 100

# Default retry settings
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0
DEFAULT_EXPONENTIAL_BACKOFF = True
DEFAULT_JITTER_FACTOR = 0.1

# Default cache settings
DEFAULT_UPLOAD_CACHE_TTL = 3600.0  # 1 hour
DEFAULT_UPLOAD_CACHE_MAX_ENTRIES = 100
DEFAULT_OCR_CACHE_TTL = 7200.0  # 2 hours
DEFAULT_OCR_CACHE_MAX_ENTRIES = 200
DEFAULT_CACHE_DISABLED = False

# Default upload settings
DEFAULT_STREAMING_THRESHOLD = 50 * 1024 * 1024  # 50 MiB
DEFAULT_CHUNK_SIZE = 64 * 1024

# Default concurrency settings
DEFAULT_MAX_WORKERS = 4

# Log level
DEFAULT_LOG_LEVEL = "info"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a nested dictionary for merging."""
    return {
        "api_key": "",
        "api_base_url": DEFAULT_BASE_URL,
        "model": DEFAULT_MODEL,
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        "max_file_size_mb": DEFAULT_MAX_FILE_SIZE_MB,
        "log_level": DEFAULT_LOG_LEVEL,
        "streaming_threshold_bytes": DEFAULT_STREAMING_THRESHOLD,
        "chunk_size_bytes": DEFAULT_CHUNK_SIZE,
        "max_workers": DEFAULT_MAX_WORKERS,
        "retry_policy": {
            "max_retries": DEFAULT_MAX_RETRIES,
            "base_delay": DEFAULT_BASE_DELAY,
            "max_delay": DEFAULT_MAX_DELAY,
            "exponential_backoff": DEFAULT_EXPONENTIAL_BACKOFF,
            "jitter_factor": DEFAULT_JITTER_FACTOR,
        },
        "cache": {
            "disabled": DEFAULT_CACHE_DISABLED,
            "upload_ttl_seconds": DEFAULT_UPLOAD_CACHE_TTL,
            "upload_max_entries": DEFAULT_UPLOAD_CACHE_MAX_ENTRIES,
            "ocr_ttl_seconds": DEFAULT_OCR_CACHE_TTL,
            "ocr_max_entries": DEFAULT_OCR_CACHE_MAX_ENTRIES,
        },
    }
