"""Pydantic models for the resolved runtime configuration."""

from __future__ import annotations

from typing import Any

import httpx
import pydantic
from pydantic import BaseModel, Field, SecretStr, field_validator

from paperless_ocr.config.defaults import (
    DEFAULT_BASE_URL,
    DEFAULT_CACHE_DISABLED,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MODEL,
    DEFAULT_OCR_CACHE_MAX_ENTRIES,
    DEFAULT_OCR_CACHE_TTL,
    DEFAULT_STREAMING_THRESHOLD,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_UPLOAD_CACHE_MAX_ENTRIES,
    DEFAULT_UPLOAD_CACHE_TTL,
)
from paperless_ocr.errors.exceptions import ConfigurationError
from paperless_ocr.errors.retry import RetryPolicy

VALID_LOG_LEVELS = ("error", "warn", "info", "debug", "trace")


class CacheSettings(BaseModel):
    disabled: bool = DEFAULT_CACHE_DISABLED
    upload_ttl_seconds: float = Field(default=DEFAULT_UPLOAD_CACHE_TTL, gt=0)
    upload_max_entries: int = Field(default=DEFAULT_UPLOAD_CACHE_MAX_ENTRIES, ge=1)
    ocr_ttl_seconds: float = Field(default=DEFAULT_OCR_CACHE_TTL, gt=0)
    ocr_max_entries: int = Field(default=DEFAULT_OCR_CACHE_MAX_ENTRIES, ge=1)


class Settings(BaseModel):
    """Validated configuration consumed by the API client and the CLI."""

    api_key: SecretStr = SecretStr("")
    api_base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    log_level: str = DEFAULT_LOG_LEVEL
    streaming_threshold_bytes: int = Field(default=DEFAULT_STREAMING_THRESHOLD, gt=0)
    chunk_size_bytes: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("api_base_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except (httpx.InvalidURL, TypeError) as exc:
            raise ValueError("API base URL must be a valid URL") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("API base URL must be a valid URL")
        return value

    @field_validator("timeout_seconds")
    @classmethod
    def _check_timeout(cls, value: int) -> int:
        if not 1 <= value <= 300:
            raise ValueError("Timeout must be between 1 and 300 seconds")
        return value

    @field_validator("max_file_size_mb")
    @classmethod
    def _check_max_size(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("Max file size must be between 1 and 100 MB")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.lower()
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {', '.join(VALID_LOG_LEVELS)}")
        return value

    @field_validator("model")
    @classmethod
    def _check_model(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Model name must not be empty")
        return value

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Settings:
        """Build settings from a merged config dict, raising ConfigurationError."""
        try:
            return cls(**data)
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            message = first.get("msg", str(exc)).removeprefix("Value error, ")
            raise ConfigurationError(f"{location}: {message}" if location else message) from exc

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def require_api_key(self) -> str:
        key = self.api_key.get_secret_value()
        if not key:
            raise ConfigurationError(
                "API key must not be empty (use --api-key or PAPERLESS_OCR_API_KEY)"
            )
        return key

    def redacted_dump(self) -> dict[str, Any]:
        """Settings as a plain dict with the API key masked."""
        from paperless_ocr.api.auth import redact_key

        data = self.model_dump(mode="json")
        data["api_key"] = redact_key(self.api_key.get_secret_value())
        return data
