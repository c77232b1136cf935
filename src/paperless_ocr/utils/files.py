"""Input file checks run before anything is sent over the network."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from paperless_ocr.config.defaults import DEFAULT_MAX_FILE_SIZE_MB
from paperless_ocr.errors.exceptions import FileIOError, ValidationError

logger = logging.getLogger(__name__)

_MIME_BY_EXTENSION = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
_MAGIC_BYTES = (
    (b"%PDF", "application/pdf"),
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
)
_PDF_HEAD_BYTES = 8192
_PDF_PASSWORD_MARKERS = (b"/Encrypt", b"/Filter/Standard")

SUPPORTED_EXTENSIONS = frozenset(_MIME_BY_EXTENSION)


class InputFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    size: int
    mime_type: str

    @property
    def name(self) -> str:
        return self.path.name


def validate_input_file(
    path: str | Path, max_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
) -> InputFile:
    """Check that ``path`` is a readable PDF/PNG/JPEG within the size limit."""
    path = Path(path)
    if not path.exists():
        raise FileIOError(f"File not found: {path}")
    if not path.is_file():
        raise ValidationError(f"Not a regular file: {path}")

    try:
        size = path.stat().st_size
    except OSError as e:
        raise FileIOError(f"Cannot stat {path}: {e}") from e

    if size == 0:
        raise ValidationError(f"File is empty: {path}")
    max_bytes = max_size_mb * 1024 * 1024
    if size > max_bytes:
        raise ValidationError(
            f"File size ({size / (1024 * 1024):.2f} MB) exceeds maximum allowed size "
            f"({max_size_mb} MB)"
        )

    mime_type = _MIME_BY_EXTENSION.get(path.suffix.lower())
    if mime_type is None:
        raise ValidationError(
            f"Unsupported file format: {path.suffix or '(none)'}. Supported: pdf, png, jpg, jpeg"
        )

    head = _read_head(path, _PDF_HEAD_BYTES)
    detected = _detect_mime(head)
    if detected is None:
        raise ValidationError(f"File does not appear to be a valid PDF, PNG, or JPEG file: {path}")
    if detected != mime_type:
        logger.warning(
            "Extension of %s suggests %s but content is %s", path.name, mime_type, detected
        )

    if detected == "application/pdf" and _looks_encrypted(head):
        raise ValidationError(
            "Password-protected PDF detected. Please provide an unprotected PDF file."
        )

    return InputFile(path=path, size=size, mime_type=detected)


def _read_head(path: Path, count: int) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read(count)
    except OSError as e:
        raise FileIOError(f"Cannot read {path}: {e}") from e


def _detect_mime(head: bytes) -> str | None:
    for magic, mime in _MAGIC_BYTES:
        if head.startswith(magic):
            return mime
    return None


def _looks_encrypted(head: bytes) -> bool:
    return any(marker in head for marker in _PDF_PASSWORD_MARKERS)
