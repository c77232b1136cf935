"""Wire models for the Files and OCR endpoints, with response validation."""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from paperless_ocr.errors.exceptions import ValidationError

logger = logging.getLogger(__name__)

_FILE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_VALID_STATUSES = ("uploaded", "processing", "processed", "error")
_MAX_CLOCK_SKEW_SECONDS = 3600
_SIZE_TOLERANCE_RATIO = 0.10
_SIZE_TOLERANCE_BYTES = 1024
_MIN_DPI, _MAX_DPI = 50, 600


# ── Files API ──


class FileUploadResponse(BaseModel):
    """Body returned by ``POST /v1/files``."""

    model_config = ConfigDict(frozen=True)

    id: str
    object: str
    bytes: int
    created_at: int
    filename: str
    purpose: str
    status: str | None = None

    def validate_fields(self, now: float | None = None) -> None:
        """Raise ValidationError if any field is outside what the service may return."""
        if not self.id:
            raise ValidationError("File ID cannot be empty")
        if not _FILE_ID_PATTERN.match(self.id):
            raise ValidationError(f"Invalid file ID format: '{self.id}' contains invalid characters")
        if self.object != "file":
            raise ValidationError(f"Object must be 'file', got '{self.object}'")
        if self.bytes <= 0:
            raise ValidationError("File size must be positive")
        if self.created_at <= 0:
            raise ValidationError("Created timestamp must be positive")
        now = time.time() if now is None else now
        if self.created_at > now + _MAX_CLOCK_SKEW_SECONDS:
            raise ValidationError(
                f"Created timestamp is too far in the future: {self.created_at}"
            )
        if not self.filename:
            raise ValidationError("Filename cannot be empty")
        if "/" in self.filename or "\\" in self.filename:
            raise ValidationError(
                f"Filename cannot contain path separators: '{self.filename}'"
            )
        if self.purpose != "ocr":
            raise ValidationError(f"Purpose must be 'ocr', got '{self.purpose}'")
        if self.status is not None:
            if self.status not in _VALID_STATUSES:
                raise ValidationError(
                    f"Invalid status '{self.status}', must be one of: {', '.join(_VALID_STATUSES)}"
                )
            if self.status == "error":
                logger.warning("File upload status is 'error' for file: %s", self.id)

    def validate_against(self, uploaded_size: int, now: float | None = None) -> None:
        """Validate fields, then check the reported size against what was sent."""
        self.validate_fields(now)
        tolerance = max(uploaded_size * _SIZE_TOLERANCE_RATIO, _SIZE_TOLERANCE_BYTES)
        if abs(self.bytes - uploaded_size) > tolerance:
            raise ValidationError(
                f"Reported file size {self.bytes} does not match uploaded size {uploaded_size}"
            )


# ── OCR API ──


class DocumentChunk(BaseModel):
    type: Literal["file"] = "file"
    file_id: str


class OcrRequest(BaseModel):
    """Body sent to ``POST /v1/ocr``."""

    model: str
    document: DocumentChunk

    @classmethod
    def for_file(cls, file_id: str, model: str) -> OcrRequest:
        if not file_id:
            raise ValidationError("File ID cannot be empty")
        if not model:
            raise ValidationError("Model cannot be empty")
        return cls(model=model, document=DocumentChunk(file_id=file_id))


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    dpi: int
    height: int
    width: int


class Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    markdown: str
    images: list[Any] = Field(default_factory=list)
    dimensions: Dimensions


class UsageInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    pages_processed: int
    doc_size_bytes: int


class OcrResponse(BaseModel):
    """Body returned by ``POST /v1/ocr``."""

    model_config = ConfigDict(frozen=True)

    pages: list[Page]
    model: str
    document_annotation: str | None = None
    usage_info: UsageInfo

    @property
    def extracted_text(self) -> str:
        return "\n\n".join(page.markdown for page in self.pages)

    def validate_fields(self) -> None:
        if not self.model:
            raise ValidationError("Response model cannot be empty")
        if not self.model.startswith("mistral-"):
            raise ValidationError(
                f"Invalid model name format: expected 'mistral-*', got '{self.model}'"
            )
        if not self.pages:
            raise ValidationError("Response must contain at least one page")

        for i, page in enumerate(self.pages):
            if page.index != i:
                raise ValidationError(f"Page index mismatch: expected {i}, got {page.index}")
            if page.dimensions.width <= 0 or page.dimensions.height <= 0:
                raise ValidationError(
                    f"Invalid page dimensions: width={page.dimensions.width}, "
                    f"height={page.dimensions.height}"
                )
            if not page.markdown:
                logger.warning("Page %d has empty markdown content", page.index)
            if not _MIN_DPI <= page.dimensions.dpi <= _MAX_DPI:
                logger.warning("Unusual DPI value on page %d: %d", page.index, page.dimensions.dpi)

        if self.usage_info.pages_processed != len(self.pages):
            raise ValidationError(
                f"Usage info pages_processed ({self.usage_info.pages_processed}) "
                f"doesn't match actual pages ({len(self.pages)})"
            )
        if self.usage_info.doc_size_bytes <= 0:
            raise ValidationError(
                f"Invalid document size in usage info: {self.usage_info.doc_size_bytes} bytes"
            )


# ── Parsing ──


def parse_upload_response(body: bytes | str) -> FileUploadResponse:
    return _parse(FileUploadResponse, body, "file upload")


def parse_ocr_response(body: bytes | str) -> OcrResponse:
    return _parse(OcrResponse, body, "OCR")


def _parse(model: type[BaseModel], body: bytes | str, label: str) -> Any:
    """Decode a JSON body into ``model``; malformed bodies become ValidationError."""
    try:
        return model.model_validate_json(body)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        if first.get("type") == "json_invalid":
            raise ValidationError(f"Failed to parse {label} response: invalid JSON") from exc
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Malformed {label} response: {location or 'body'}: {first.get('msg', 'invalid')}"
        ) from exc
