"""Shared Pydantic models and enums for paperless-ocr."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ── Enums ──


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    FILE_IO = "file_io"
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    SERVER = "server"
    CACHE = "cache"
    INTERNAL = "internal"

    @property
    def retryable(self) -> bool:
        match self:
            case ErrorKind.RATE_LIMIT | ErrorKind.NETWORK | ErrorKind.SERVER:
                return True
            case (
                ErrorKind.VALIDATION
                | ErrorKind.FILE_IO
                | ErrorKind.CONFIGURATION
                | ErrorKind.AUTHENTICATION
                | ErrorKind.CACHE
                | ErrorKind.INTERNAL
            ):
                return False

    @property
    def exit_code(self) -> int:
        match self:
            case ErrorKind.VALIDATION:
                return 2
            case ErrorKind.FILE_IO:
                return 3
            case ErrorKind.CONFIGURATION | ErrorKind.AUTHENTICATION:
                return 4
            case (
                ErrorKind.RATE_LIMIT
                | ErrorKind.NETWORK
                | ErrorKind.SERVER
                | ErrorKind.CACHE
                | ErrorKind.INTERNAL
            ):
                return 5


class UploadMode(StrEnum):
    IN_MEMORY = "in_memory"
    STREAMED = "streamed"


# ── Runtime models ──


class OcrUsage(BaseModel):
    pages_processed: int = 0
    doc_size_bytes: int = 0


class OcrOutcome(BaseModel):
    """Result of one upload-then-OCR operation."""

    text: str
    file_id: str
    model: str
    file_name: str
    file_size: int
    usage: OcrUsage = Field(default_factory=OcrUsage)
    duration: float = 0.0
    upload_cached: bool = False
    ocr_cached: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    @property
    def processing_time_ms(self) -> int:
        return int(self.duration * 1000)
